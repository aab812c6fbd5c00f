"""Configuration constants for the sticky notes store."""

import os
from dataclasses import dataclass
from pathlib import Path

DATA_FILE_NAME: str = "notes.json"
BACKUP_FILE_NAME: str = "notes.backup.json"

# Timestamped snapshots are "notes.backup.<stamp>.json".
SNAPSHOT_PREFIX: str = "notes.backup."
SNAPSHOT_SUFFIX: str = ".json"

# Number of timestamped snapshots kept after pruning.
MAX_BACKUPS: int = 5

# Scheduling intervals, in seconds.
DEBOUNCE_DELAY: float = 1.0
PERIODIC_FLUSH_INTERVAL: float = 30.0
SNAPSHOT_INTERVAL: float = 30 * 60.0

# Key under which the secondary store keeps its single blob.
SECONDARY_KEY: str = "stickyNotes"

DEFAULT_DATA_DIR: Path = Path("~/.sticky-notes").expanduser()
DEFAULT_KV_PATH: Path = Path("~/.local/state/sticky-notes/local-storage.db").expanduser()


def resolve_data_directory() -> Path:
    """Return the per-user data directory, honouring $STICKY_NOTES_DIR."""
    override = os.environ.get("STICKY_NOTES_DIR")
    if override:
        return Path(override).expanduser()
    return DEFAULT_DATA_DIR


def resolve_kv_path() -> Path:
    """Return the secondary key-value database path, honouring $STICKY_NOTES_KV_PATH."""
    override = os.environ.get("STICKY_NOTES_KV_PATH")
    if override:
        return Path(override).expanduser()
    return DEFAULT_KV_PATH


def resolve_log_file() -> Path | None:
    """Return $STICKY_NOTES_LOG_FILE as a path, or None when file logging is off."""
    override = os.environ.get("STICKY_NOTES_LOG_FILE")
    return Path(override).expanduser() if override else None


@dataclass(frozen=True)
class StoragePaths:
    """Where the primary store keeps its files."""

    data_dir: Path
    data_file: Path
    backup_file: Path


@dataclass(frozen=True)
class StorageConfig:
    """Resolved storage settings for one store instance."""

    data_dir: Path
    max_backups: int = MAX_BACKUPS

    @classmethod
    def from_environment(cls, data_dir: Path | None = None) -> "StorageConfig":
        return cls(data_dir=data_dir or resolve_data_directory())

    @property
    def data_file(self) -> Path:
        return self.data_dir / DATA_FILE_NAME

    @property
    def backup_file(self) -> Path:
        return self.data_dir / BACKUP_FILE_NAME

    def snapshot_path(self, stamp: str) -> Path:
        """Path of a timestamped snapshot; ``stamp`` must already be filesystem-safe."""
        return self.data_dir / f"{SNAPSHOT_PREFIX}{stamp}{SNAPSHOT_SUFFIX}"

    def paths(self) -> StoragePaths:
        return StoragePaths(
            data_dir=self.data_dir,
            data_file=self.data_file,
            backup_file=self.backup_file,
        )


def primary_storage_available(config: StorageConfig) -> bool:
    """Check once whether the file-backed store can be used at all.

    True if the data directory exists and is writable, or if the nearest
    existing ancestor is writable so the directory can be created later.
    """
    candidate = config.data_dir
    while not candidate.exists():
        if candidate.parent == candidate:
            return False
        candidate = candidate.parent
    return candidate.is_dir() and os.access(candidate, os.W_OK | os.X_OK)
