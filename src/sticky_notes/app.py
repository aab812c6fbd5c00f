"""Composition root: wire stores, coordinator and manager together."""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from sticky_notes.config import (
    StorageConfig,
    primary_storage_available,
    resolve_kv_path,
)
from sticky_notes.core.notes.manager import NoteCollectionManager
from sticky_notes.core.scheduling.scheduler import AsyncioScheduler
from sticky_notes.core.storage.coordinator import StorageCoordinator
from sticky_notes.core.storage.kv import SqliteKeyValueStore
from sticky_notes.core.storage.primary import FileStore
from sticky_notes.core.storage.secondary import KeyValueStore
from sticky_notes.notifications import LoggingNotifier
from sticky_notes.protocols import KeyValueProtocol, NotifierProtocol, SchedulerProtocol


@dataclass
class NotesApp:
    """Everything one process needs to work with its notes."""

    config: StorageConfig
    coordinator: StorageCoordinator
    manager: NoteCollectionManager


def build_app(
    *,
    data_dir: Path | None = None,
    kv: KeyValueProtocol | None = None,
    scheduler: SchedulerProtocol | None = None,
    notifier: NotifierProtocol | None = None,
    primary_available: bool | None = None,
) -> NotesApp:
    """Build a NotesApp. Nothing is loaded until manager.initialize() is called.

    Args:
        data_dir: Primary data directory; defaults to the configured one.
        kv: Key-value store for the mirror; defaults to the SQLite store.
        scheduler: Timer implementation; defaults to the asyncio scheduler.
        notifier: Notification sink; defaults to logging.
        primary_available: Override the one-time file storage availability check.
    """
    config = StorageConfig.from_environment(data_dir)
    if primary_available is None:
        primary_available = primary_storage_available(config)
    if not primary_available:
        logger.warning(
            "Data directory {!r} is not writable, using local backup only", str(config.data_dir)
        )

    coordinator = StorageCoordinator(
        FileStore(config),
        KeyValueStore(kv if kv is not None else SqliteKeyValueStore(resolve_kv_path())),
        scheduler if scheduler is not None else AsyncioScheduler(),
        primary_available=primary_available,
    )
    manager = NoteCollectionManager(coordinator, notifier or LoggingNotifier())
    return NotesApp(config=config, coordinator=coordinator, manager=manager)
