"""Tests for the key-value mirror and its SQLite store."""

from pathlib import Path

from sticky_notes.core.storage.kv import SqliteKeyValueStore
from sticky_notes.core.storage.result import StorageErrorKind
from sticky_notes.core.storage.secondary import KeyValueStore
from tests.unit.fakes import FakeKeyValueStore, make_document


def test_read_missing_key_returns_empty_document(kv: FakeKeyValueStore) -> None:
    result = KeyValueStore(kv).read()

    assert result.error is not None
    assert result.error.kind is StorageErrorKind.NOT_FOUND
    assert result.value is not None
    assert result.value.is_empty()
    assert result.value.next_id == 1


def test_read_corrupt_blob_returns_empty_document(kv: FakeKeyValueStore) -> None:
    kv.data["stickyNotes"] = "{oops"

    result = KeyValueStore(kv).read()

    assert result.error is not None
    assert result.error.kind is StorageErrorKind.CORRUPT
    assert result.value is not None
    assert result.value.is_empty()


def test_write_then_read_returns_same_document(kv: FakeKeyValueStore) -> None:
    store = KeyValueStore(kv)
    doc = make_document("alpha", "beta")

    assert store.write(doc).ok
    result = store.read()

    assert result.ok
    assert result.value == doc


def test_write_overwrites_previous_value(kv: FakeKeyValueStore) -> None:
    store = KeyValueStore(kv)
    store.write(make_document("old"))
    store.write(make_document("new"))

    assert list(kv.data) == ["stickyNotes"]
    assert store.read().value == make_document("new")


def test_write_failure_is_returned_not_raised(kv: FakeKeyValueStore) -> None:
    kv.fail_writes = True

    result = KeyValueStore(kv).write(make_document("alpha"))

    assert result.error is not None
    assert result.error.kind is StorageErrorKind.IO


def test_custom_key(kv: FakeKeyValueStore) -> None:
    KeyValueStore(kv, key="other").write(make_document("alpha"))

    assert "other" in kv.data


def test_sqlite_store_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "state" / "kv.db"
    first = SqliteKeyValueStore(path)
    first.set("k", "v1")
    first.set("k", "v2")
    first.close()

    second = SqliteKeyValueStore(path)

    assert second.get("k") == "v2"
    assert second.get("missing") is None


def test_sqlite_store_falls_back_to_memory_when_path_unusable(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")

    store = SqliteKeyValueStore(blocker / "kv.db")
    store.set("k", "v")

    assert store.path == ":memory:"
    assert store.get("k") == "v"


def test_mirror_on_sqlite_round_trips_document(tmp_path: Path) -> None:
    store = KeyValueStore(SqliteKeyValueStore(tmp_path / "kv.db"))
    doc = make_document("alpha")

    store.write(doc)

    assert store.read().value == doc
