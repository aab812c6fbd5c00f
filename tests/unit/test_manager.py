"""Tests for NoteCollectionManager."""

import pytest

from sticky_notes.core.notes.manager import NoteCollectionManager, migrate_timestamps
from sticky_notes.core.storage.coordinator import StorageCoordinator
from sticky_notes.core.storage.secondary import KeyValueStore
from sticky_notes.models.note import Note, NoteCollectionDocument
from sticky_notes.notifications import CollectingNotifier
from sticky_notes.util.timefmt import format_relative_time
from tests.unit.fakes import FakeFileStore, FakeKeyValueStore, FakeScheduler, make_document


def _manager_over(
    coordinator: StorageCoordinator, notifier: CollectingNotifier
) -> NoteCollectionManager:
    mgr = NoteCollectionManager(coordinator, notifier)
    mgr.initialize()
    return mgr


# --- initialize ---


def test_initialize_loads_notes_and_next_id(
    coordinator: StorageCoordinator, fake_primary: FakeFileStore, notifier: CollectingNotifier
) -> None:
    fake_primary.stored = make_document("alpha", "beta", next_id=10)

    mgr = _manager_over(coordinator, notifier)

    assert [n.title for n in mgr.get_all()] == ["alpha", "beta"]
    assert mgr.next_id == 10
    assert notifier.drain() == []


def test_initialize_fills_missing_timestamps(
    coordinator: StorageCoordinator, fake_primary: FakeFileStore, notifier: CollectingNotifier
) -> None:
    fake_primary.stored = NoteCollectionDocument(
        notes=[
            Note(id=1, title="legacy"),
            Note(id=2, title="half", updated_at="2024-02-02T00:00:00.000Z"),
        ],
        next_id=3,
    )

    mgr = _manager_over(coordinator, notifier)

    legacy, half = mgr.get_all()
    assert legacy.created_at is not None
    assert legacy.updated_at == legacy.created_at
    assert half.created_at == "2024-02-02T00:00:00.000Z"
    assert half.updated_at == "2024-02-02T00:00:00.000Z"


def test_migrate_timestamps_counts_changed_notes() -> None:
    notes = [
        Note(id=1, created_at="2024-01-01T00:00:00.000Z", updated_at="2024-01-02T00:00:00.000Z"),
        Note(id=2, created_at="2024-01-01T00:00:00.000Z"),
        Note(id=3),
    ]

    changed = migrate_timestamps(notes, "2024-06-01T00:00:00.000Z")

    assert changed == 2
    assert notes[0].updated_at == "2024-01-02T00:00:00.000Z"
    assert notes[1].updated_at == "2024-01-01T00:00:00.000Z"
    assert notes[2].created_at == "2024-06-01T00:00:00.000Z"


def test_initialize_reports_restore_from_mirror(
    coordinator: StorageCoordinator, kv: FakeKeyValueStore, notifier: CollectingNotifier
) -> None:
    KeyValueStore(kv).write(make_document("rescued"))

    mgr = _manager_over(coordinator, notifier)

    assert [n.title for n in mgr.get_all()] == ["rescued"]
    assert notifier.drain() == [{"level": "info", "message": "Notes restored from local backup"}]


def test_initialize_failure_starts_empty_and_notifies(
    coordinator: StorageCoordinator,
    notifier: CollectingNotifier,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def explode() -> None:
        raise RuntimeError("storage exploded")

    monkeypatch.setattr(coordinator, "load", explode)

    mgr = _manager_over(coordinator, notifier)

    assert mgr.get_all() == []
    assert mgr.next_id == 1
    assert notifier.drain() == [
        {"level": "error", "message": "Failed to load notes, check storage permissions"}
    ]


# --- create / ids ---


def test_create_saves_immediately_and_notifies(
    manager: NoteCollectionManager, fake_primary: FakeFileStore, notifier: CollectingNotifier
) -> None:
    note = manager.create(title="Groceries", content="milk")

    assert note.id == 1
    assert note.created_at == note.updated_at
    assert len(fake_primary.writes) == 1
    assert fake_primary.writes[0].notes[0].title == "Groceries"
    assert fake_primary.writes[0].next_id == 2
    assert notifier.drain() == [{"level": "success", "message": "New note created!"}]


def test_create_without_title_gets_numbered_title(manager: NoteCollectionManager) -> None:
    manager.create(title="first")

    assert manager.create().title == "Note 2"


def test_ids_are_never_reused_after_delete(manager: NoteCollectionManager) -> None:
    for _ in range(3):
        manager.create()
    manager.delete(3)

    assert manager.create().id == 4
    assert [n.id for n in manager.get_all()] == [1, 2, 4]


def test_create_with_failing_storage_reports_error(
    manager: NoteCollectionManager, fake_primary: FakeFileStore, notifier: CollectingNotifier
) -> None:
    fake_primary.fail_writes = True

    note = manager.create(title="kept anyway")

    assert manager.get_by_id(note.id) is note
    assert notifier.drain() == [
        {"level": "error", "message": "Save failed, notes kept in local backup"}
    ]


# --- update (autosave) ---


def test_update_is_debounced_into_one_silent_write(
    manager: NoteCollectionManager,
    fake_primary: FakeFileStore,
    scheduler: FakeScheduler,
    notifier: CollectingNotifier,
) -> None:
    note = manager.create(title="draft")
    notifier.drain()
    fake_primary.writes.clear()

    for text in ["h", "he", "hel", "hello"]:
        assert manager.update(note.id, {"content": text})
        scheduler.advance(0.3)
    assert fake_primary.writes == []
    assert manager.has_unsaved_changes()

    scheduler.advance(1.0)

    assert len(fake_primary.writes) == 1
    assert fake_primary.writes[0].notes[0].content == "hello"
    assert not manager.has_unsaved_changes()
    assert notifier.drain() == []


def test_update_unknown_note_returns_false(manager: NoteCollectionManager) -> None:
    assert manager.update(42, {"title": "nope"}) is False
    assert not manager.has_unsaved_changes()


def test_update_refreshes_updated_at(manager: NoteCollectionManager) -> None:
    note = manager.create(title="draft")
    note.updated_at = "2020-01-01T00:00:00.000Z"
    note.created_at = "2020-01-01T00:00:00.000Z"

    manager.update(note.id, {"title": "edited"})

    assert note.title == "edited"
    assert note.updated_at > "2020-01-01T00:00:00.000Z"


def test_manual_save_supersedes_pending_autosave(
    manager: NoteCollectionManager, fake_primary: FakeFileStore, scheduler: FakeScheduler
) -> None:
    note = manager.create(title="draft")
    fake_primary.writes.clear()

    manager.update(note.id, {"content": "typing"})
    manager.save_manually(note.id, {"content": "final"})
    scheduler.advance(5)

    assert [d.notes[0].content for d in fake_primary.writes] == ["final"]
    assert not manager.has_unsaved_changes()


# --- save_manually ---


def test_save_manually_writes_now_and_notifies(
    manager: NoteCollectionManager, fake_primary: FakeFileStore, notifier: CollectingNotifier
) -> None:
    note = manager.create(title="draft")
    notifier.drain()

    assert manager.save_manually(note.id, {"title": "done"})

    assert fake_primary.writes[-1].notes[0].title == "done"
    assert notifier.drain() == [{"level": "success", "message": "Note saved!"}]


def test_save_manually_ignores_protected_fields(manager: NoteCollectionManager) -> None:
    note = manager.create(title="draft")
    created_at = note.created_at

    manager.save_manually(
        note.id, {"id": 99, "createdAt": "1999-01-01T00:00:00.000Z", "color": "blue"}
    )

    assert note.id == 1
    assert note.created_at == created_at
    assert note.extra == {"color": "blue"}


def test_save_manually_unknown_note_returns_false(
    manager: NoteCollectionManager, notifier: CollectingNotifier
) -> None:
    assert manager.save_manually(7, {"title": "x"}) is False
    assert notifier.drain() == []


# --- delete ---


def test_delete_removes_note_and_saves(
    manager: NoteCollectionManager, fake_primary: FakeFileStore, notifier: CollectingNotifier
) -> None:
    manager.create(title="a")
    manager.create(title="b")
    notifier.drain()

    assert manager.delete(1)

    assert [n.title for n in manager.get_all()] == ["b"]
    assert [n.title for n in fake_primary.writes[-1].notes] == ["b"]
    assert fake_primary.writes[-1].next_id == 3
    assert notifier.drain() == [{"level": "success", "message": "Note deleted!"}]


def test_delete_unknown_note_returns_false(
    manager: NoteCollectionManager, fake_primary: FakeFileStore
) -> None:
    assert manager.delete(5) is False
    assert fake_primary.writes == []


# --- search ---


def test_search_is_case_insensitive_and_keeps_order(manager: NoteCollectionManager) -> None:
    manager.create(title="ABC")
    manager.create(title="zzz", content="nothing here")
    manager.create(title="other", content="xabcx")

    assert [n.title for n in manager.search("abc")] == ["ABC", "other"]
    assert len(manager.search("")) == 3


def test_get_all_returns_copy(manager: NoteCollectionManager) -> None:
    manager.create(title="a")

    manager.get_all().clear()

    assert len(manager.get_all()) == 1


# --- samples / documents ---


def test_create_sample_notes_are_backdated(
    manager: NoteCollectionManager, fake_primary: FakeFileStore
) -> None:
    created = manager.create_sample_notes()

    assert [n.id for n in created] == [1, 2, 3]
    assert [format_relative_time(n.updated_at) for n in created] == [
        "5 minutes ago",
        "2 hours ago",
        "3 days ago",
    ]
    assert len(fake_primary.writes) == 1
    assert manager.next_id == 4


def test_to_document_is_detached_copy(manager: NoteCollectionManager) -> None:
    note = manager.create(title="a")

    doc = manager.to_document()
    note.title = "changed"

    assert doc.notes[0].title == "a"
    assert doc.next_id == 2
