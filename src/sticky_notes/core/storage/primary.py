"""File-backed primary store with a rotating backup and timestamped snapshots."""

import os
import re
import shutil
from pathlib import Path

from loguru import logger

from sticky_notes.config import (
    BACKUP_FILE_NAME,
    SNAPSHOT_PREFIX,
    SNAPSHOT_SUFFIX,
    StorageConfig,
    StoragePaths,
)
from sticky_notes.core.storage.result import Result, StorageError, StorageErrorKind
from sticky_notes.models.note import (
    NoteCollectionDocument,
    deserialize_document,
    now_iso,
    serialize_document,
)


def _snapshot_stamp() -> str:
    """Filesystem-safe UTC timestamp, e.g. 2024-05-01T09-30-00-123Z."""
    return now_iso().replace(":", "-").replace(".", "-")


# Same-millisecond snapshots get "-1", "-2", ... after the stamp.
_COUNTER_RE = re.compile(r"^(.*Z)-(\d+)$")


def _snapshot_order(path: Path) -> tuple[str, int]:
    stem = path.name.removeprefix(SNAPSHOT_PREFIX).removesuffix(SNAPSHOT_SUFFIX)
    match = _COUNTER_RE.match(stem)
    if match:
        return match.group(1), int(match.group(2))
    return stem, 0


class FileStore:
    """Store the note collection as one pretty-printed JSON file.

    - Before each write, the current data file is copied to the rotating
      backup, so the backup always lags the data file by one generation.
    - The new contents go to a temp file which then replaces the data file,
      so an interrupted write leaves both the old data file and the backup intact.
    - Reads fall back from the data file to the backup, then to an empty document.

    No method raises on I/O or parse errors; failures come back as Result.
    """

    def __init__(self, config: StorageConfig) -> None:
        self.config = config
        self._last_stamp = ""
        self._stamp_count = 0
        logger.debug("File store ready, data dir {!r}", str(config.data_dir))

    def paths(self) -> StoragePaths:
        return self.config.paths()

    def _read_file(self, path: Path, operation: str) -> Result[NoteCollectionDocument]:
        try:
            with open(path, encoding="utf-8") as f:
                contents = f.read()
            doc = deserialize_document(contents)
        except (OSError, ValueError) as e:
            return Result.failure(StorageError.from_exception(operation, e, path))
        return Result.success(doc)

    def read(self) -> Result[NoteCollectionDocument]:
        """Read the data file, falling back to the rotating backup.

        Returns:
            Success with the stored document, or a failure whose value is the
            empty document when neither file could be read.
        """
        primary = self._read_file(self.config.data_file, "read")
        error = primary.error
        if error is None:
            return primary
        if error.kind is not StorageErrorKind.NOT_FOUND:
            logger.warning("Cannot read notes file: {}", error)

        backup = self._read_file(self.config.backup_file, "read-backup")
        if backup.ok:
            logger.info("Recovered notes from backup file {!r}", str(self.config.backup_file))
            return backup

        logger.info("No readable notes file found, starting with empty data")
        return Result.failure(error, value=NoteCollectionDocument.empty())

    def write(self, doc: NoteCollectionDocument) -> Result[None]:
        """Back up the current data file, then replace it with doc."""
        data_file = self.config.data_file
        tmp_file = data_file.with_name(data_file.name + ".tmp")
        try:
            self.config.data_dir.mkdir(parents=True, exist_ok=True)
            if data_file.exists():
                shutil.copyfile(data_file, self.config.backup_file)
            with open(tmp_file, "w", encoding="utf-8") as f:
                f.write(serialize_document(doc))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_file, data_file)
        except OSError as e:
            tmp_file.unlink(missing_ok=True)
            error = StorageError.from_exception("write", e, data_file)
            logger.error("Writing notes failed: {}", error)
            return Result.failure(error)

        logger.debug("Wrote {} notes to {!r}", len(doc.notes), str(data_file))
        return Result.success()

    def snapshot(self) -> Result[Path]:
        """Copy the data file to a timestamped snapshot and prune old snapshots."""
        try:
            self.config.data_dir.mkdir(parents=True, exist_ok=True)
            target = self._unique_snapshot_path(_snapshot_stamp())
            shutil.copyfile(self.config.data_file, target)
        except OSError as e:
            error = StorageError.from_exception("snapshot", e, self.config.data_file)
            logger.error("Creating snapshot failed: {}", error)
            return Result.failure(error)

        logger.info("Created snapshot {!r}", target.name)
        self._prune_snapshots()
        return Result.success(target)

    def _unique_snapshot_path(self, stamp: str) -> Path:
        """Snapshot path for stamp, numbered so no snapshot name is ever reused.

        The counter keeps rising within one stamp even after pruning deletes
        an earlier snapshot with that stamp.
        """
        if stamp == self._last_stamp:
            self._stamp_count += 1
        else:
            self._last_stamp = stamp
            self._stamp_count = 0
        while True:
            unique_str = f"-{self._stamp_count}" if self._stamp_count else ""
            target = self.config.snapshot_path(stamp + unique_str)
            if not target.exists():
                return target
            self._stamp_count += 1

    def list_snapshots(self) -> list[Path]:
        """Timestamped snapshots, newest first by modification time."""
        if not self.config.data_dir.is_dir():
            return []
        found: list[tuple[float, Path]] = []
        for path in self.config.data_dir.iterdir():
            name = path.name
            if name == BACKUP_FILE_NAME:
                continue
            if not (name.startswith(SNAPSHOT_PREFIX) and name.endswith(SNAPSHOT_SUFFIX)):
                continue
            found.append((path.stat().st_mtime, path))
        found.sort(key=lambda x: (x[0], _snapshot_order(x[1])), reverse=True)
        return [path for _mtime, path in found]

    def _prune_snapshots(self) -> None:
        try:
            snapshots = self.list_snapshots()
            to_delete = snapshots[self.config.max_backups :]
            for path in to_delete:
                logger.debug("Removing old snapshot {!r}", path.name)
                path.unlink()
        except OSError as e:
            logger.error("Pruning old snapshots failed: {}", e)
