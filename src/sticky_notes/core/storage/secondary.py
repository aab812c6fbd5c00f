"""Key-value mirror used as the fallback store."""

import sqlite3

from loguru import logger

from sticky_notes.config import SECONDARY_KEY
from sticky_notes.core.storage.result import Result, StorageError, StorageErrorKind
from sticky_notes.models.note import (
    NoteCollectionDocument,
    deserialize_document,
    serialize_document,
)
from sticky_notes.protocols import KeyValueProtocol


class KeyValueStore:
    """Keep the whole note collection as one JSON blob under a fixed key.

    No backups, no versions: a flat last-write-wins mirror for disaster recovery.
    """

    def __init__(self, kv: KeyValueProtocol, *, key: str = SECONDARY_KEY) -> None:
        self._kv = kv
        self.key = key

    def read(self) -> Result[NoteCollectionDocument]:
        """Return the stored document, or a failure carrying the empty document."""
        try:
            raw = self._kv.get(self.key)
            if raw is None:
                error = StorageError(
                    kind=StorageErrorKind.NOT_FOUND,
                    operation="kv-read",
                    message=f"no value under key {self.key!r}",
                )
                return Result.failure(error, value=NoteCollectionDocument.empty())
            doc = deserialize_document(raw)
        except (OSError, ValueError) as e:
            error = StorageError.from_exception("kv-read", e)
        except sqlite3.Error as e:
            error = StorageError(StorageErrorKind.IO, "kv-read", str(e))
        else:
            return Result.success(doc)

        logger.warning("Cannot read local backup: {}", error)
        return Result.failure(error, value=NoteCollectionDocument.empty())

    def write(self, doc: NoteCollectionDocument) -> Result[None]:
        """Overwrite the stored blob. Failures are logged and returned, never raised."""
        try:
            self._kv.set(self.key, serialize_document(doc))
        except (OSError, ValueError, sqlite3.Error) as e:
            error = StorageError(StorageErrorKind.IO, "kv-write", str(e))
            logger.error("Saving local backup failed: {}", error)
            return Result.failure(error)
        logger.debug("Mirrored {} notes to key {!r}", len(doc.notes), self.key)
        return Result.success()
