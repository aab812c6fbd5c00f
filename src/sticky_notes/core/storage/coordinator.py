"""Storage coordinator: backend fallback order and write scheduling."""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from sticky_notes.config import (
    DEBOUNCE_DELAY,
    PERIODIC_FLUSH_INTERVAL,
    SNAPSHOT_INTERVAL,
    StoragePaths,
)
from sticky_notes.core.storage.primary import FileStore
from sticky_notes.core.storage.result import Result, StorageError, StorageErrorKind
from sticky_notes.core.storage.secondary import KeyValueStore
from sticky_notes.models.note import NoteCollectionDocument
from sticky_notes.protocols import SchedulerProtocol

DEBOUNCE_KEY = "debounced-save"
FLUSH_KEY = "periodic-flush"
SNAPSHOT_KEY = "snapshot"


@dataclass(frozen=True)
class LoadResult:
    """What load() found, and whether it came from the key-value mirror."""

    document: NoteCollectionDocument
    recovered_from_secondary: bool = False


class StorageCoordinator:
    """Put the file store and the key-value mirror behind one contract.

    Reads go primary first, then the mirror. Writes go to the primary and are
    always mirrored. Whether the primary can be used is decided once, by the
    caller, and passed in as ``primary_available``.

    Three keyed timers live on the scheduler: the debounced save, the periodic
    flush of the pending document, and periodic snapshots.
    """

    def __init__(
        self,
        primary: FileStore,
        secondary: KeyValueStore,
        scheduler: SchedulerProtocol,
        *,
        primary_available: bool,
        debounce_delay: float = DEBOUNCE_DELAY,
        flush_interval: float = PERIODIC_FLUSH_INTERVAL,
        snapshot_interval: float = SNAPSHOT_INTERVAL,
    ) -> None:
        self.primary = primary
        self.secondary = secondary
        self.scheduler = scheduler
        self.primary_available = primary_available
        self.debounce_delay = debounce_delay
        self.flush_interval = flush_interval
        self.snapshot_interval = snapshot_interval

        # Document the armed debounce timer will write.
        self._debounced: NoteCollectionDocument | None = None
        # Latest uncommitted document, written by the periodic flush.
        self._pending: NoteCollectionDocument | None = None

        logger.debug(
            "Storage ready, primary {}",
            "available" if primary_available else "unavailable, key-value store only",
        )

    # --- Loading ---

    def _read_primary(self) -> NoteCollectionDocument:
        try:
            result = self.primary.read()
        except Exception:
            logger.exception("Unexpected failure reading notes file")
            return NoteCollectionDocument.empty()

        if result.error is not None:
            match result.error.kind:
                case StorageErrorKind.NOT_FOUND:
                    logger.debug("No notes file yet at {!r}", str(result.error.path))
                case StorageErrorKind.CORRUPT | StorageErrorKind.IO:
                    logger.warning("Notes file and its backup are unusable: {}", result.error)
                case _:
                    logger.warning("Notes file unavailable: {}", result.error)
        return result.unwrap_or(NoteCollectionDocument.empty())

    def _read_secondary(self) -> NoteCollectionDocument:
        try:
            result = self.secondary.read()
        except Exception:
            logger.exception("Unexpected failure reading local backup")
            return NoteCollectionDocument.empty()
        return result.unwrap_or(NoteCollectionDocument.empty())

    def load(self) -> LoadResult:
        """Load the collection, falling back to the mirror and repairing the primary.

        Never raises; the last resort is the empty document.
        """
        if not self.primary_available:
            return LoadResult(document=self._read_secondary())

        doc = self._read_primary()
        if not doc.is_empty():
            return LoadResult(document=doc)

        mirrored = self._read_secondary()
        if mirrored.is_empty():
            return LoadResult(document=doc)

        logger.info(
            "Notes file is empty, restoring {} notes from local backup", len(mirrored.notes)
        )
        repaired = self.primary.write(mirrored)
        if repaired.error is not None:
            logger.warning("Could not write restored notes back to file: {}", repaired.error)
        return LoadResult(document=mirrored, recovered_from_secondary=True)

    # --- Saving ---

    def save(self, doc: NoteCollectionDocument) -> Result[None]:
        """Write doc now. A pending debounced save of an older state is dropped.

        Returns:
            The primary's result when the primary is used, else the mirror's.
        """
        self.scheduler.cancel(DEBOUNCE_KEY)
        self._debounced = None
        return self._write(doc)

    def _write(self, doc: NoteCollectionDocument) -> Result[None]:
        if not self.primary_available:
            result = self.secondary.write(doc)
        else:
            result = self.primary.write(doc)
            # Mirror regardless of the primary's outcome.
            self.secondary.write(doc)

        if result.ok and doc is self._pending:
            self._pending = None
        return result

    def schedule_debounced_save(self, doc: NoteCollectionDocument) -> None:
        """Save doc after a quiet period; each call supersedes the previous one."""
        self._debounced = doc
        self.scheduler.schedule_once(DEBOUNCE_KEY, self.debounce_delay, self._fire_debounced)

    def _fire_debounced(self) -> None:
        doc = self._debounced
        if doc is not None:
            self.save(doc)

    def has_debounced_save(self) -> bool:
        return self._debounced is not None

    def flush(self) -> Result[None] | None:
        """Run a pending debounced save immediately. Returns None if nothing was pending."""
        doc = self._debounced
        if doc is None:
            return None
        logger.debug("Flushing pending debounced save")
        return self.save(doc)

    # --- Periodic flush ---

    def set_pending_document(self, doc: NoteCollectionDocument) -> None:
        self._pending = doc

    def clear_pending_document(self) -> None:
        self._pending = None

    @property
    def pending_document(self) -> NoteCollectionDocument | None:
        return self._pending

    def start_periodic_flush(self) -> None:
        self.scheduler.schedule_repeating(FLUSH_KEY, self.flush_interval, self._flush_pending)
        logger.debug("Periodic flush started, every {}s", self.flush_interval)

    def stop_periodic_flush(self) -> None:
        if self.scheduler.is_scheduled(FLUSH_KEY):
            self.scheduler.cancel(FLUSH_KEY)
            logger.debug("Periodic flush stopped")

    def _flush_pending(self) -> None:
        doc = self._pending
        if doc is None:
            return
        logger.debug("Periodic flush of pending notes")
        if doc is self._debounced:
            self.save(doc)
        else:
            # An armed debounce holds a newer document and must still fire.
            self._write(doc)

    # --- Snapshots ---

    def snapshot(self) -> Result[Path]:
        """Create a timestamped snapshot of the data file."""
        if not self.primary_available:
            error = StorageError(
                kind=StorageErrorKind.UNAVAILABLE,
                operation="snapshot",
                message="file storage is not available",
            )
            return Result.failure(error)
        return self.primary.snapshot()

    def start_periodic_snapshots(self) -> None:
        if not self.primary_available or self.scheduler.is_scheduled(SNAPSHOT_KEY):
            return
        self.scheduler.schedule_repeating(
            SNAPSHOT_KEY, self.snapshot_interval, self._periodic_snapshot
        )
        logger.debug("Periodic snapshots started, every {}s", self.snapshot_interval)

    def _periodic_snapshot(self) -> None:
        self.snapshot()

    def stop_periodic_snapshots(self) -> None:
        self.scheduler.cancel(SNAPSHOT_KEY)

    def paths(self) -> StoragePaths | None:
        if not self.primary_available:
            return None
        return self.primary.paths()

    def close(self) -> None:
        """Stop all timers and write out any pending debounced save."""
        self.stop_periodic_flush()
        self.stop_periodic_snapshots()
        self.flush()
