"""Shared test fixtures."""

from pathlib import Path

import pytest

from sticky_notes.config import StorageConfig
from sticky_notes.core.notes.manager import NoteCollectionManager
from sticky_notes.core.storage.coordinator import StorageCoordinator
from sticky_notes.core.storage.primary import FileStore
from sticky_notes.core.storage.secondary import KeyValueStore
from sticky_notes.notifications import CollectingNotifier
from tests.unit.fakes import FakeFileStore, FakeKeyValueStore, FakeScheduler


@pytest.fixture
def storage_config(tmp_path: Path) -> StorageConfig:
    return StorageConfig(data_dir=tmp_path / "data")


@pytest.fixture
def file_store(storage_config: StorageConfig) -> FileStore:
    return FileStore(storage_config)


@pytest.fixture
def kv() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def fake_primary() -> FakeFileStore:
    return FakeFileStore()


@pytest.fixture
def coordinator(
    fake_primary: FakeFileStore, kv: FakeKeyValueStore, scheduler: FakeScheduler
) -> StorageCoordinator:
    """Coordinator over an in-memory primary, so tests can count writes."""
    return StorageCoordinator(
        fake_primary,  # type: ignore[arg-type]
        KeyValueStore(kv),
        scheduler,
        primary_available=True,
    )


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()


@pytest.fixture
def manager(
    coordinator: StorageCoordinator, notifier: CollectingNotifier
) -> NoteCollectionManager:
    mgr = NoteCollectionManager(coordinator, notifier)
    mgr.initialize()
    return mgr
