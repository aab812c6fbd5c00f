"""In-memory note collection and its persistence policy."""

import copy
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger

from sticky_notes.core.search.searcher import search_notes
from sticky_notes.core.storage.coordinator import StorageCoordinator
from sticky_notes.models.note import (
    Note,
    NoteCollectionDocument,
    format_timestamp,
    now_iso,
    parse_timestamp,
)
from sticky_notes.protocols import NotifierProtocol

# Fields a caller may not change through update()/save_manually().
_PROTECTED_FIELDS = frozenset({"id", "createdAt", "created_at", "updatedAt", "updated_at"})


def migrate_timestamps(notes: list[Note], now: str) -> int:
    """Fill in timestamps missing from legacy notes.

    Returns:
        Number of notes changed.
    """
    changed = 0
    for note in notes:
        if note.created_at and note.updated_at:
            continue
        if not note.created_at:
            # Keep updatedAt >= createdAt when only createdAt was lost.
            note.created_at = note.updated_at or now
        if not note.updated_at:
            note.updated_at = note.created_at
        changed += 1
    return changed


def _later_of(a: str, b: str) -> str:
    try:
        return a if parse_timestamp(a) >= parse_timestamp(b) else b
    except ValueError:
        return a


class NoteCollectionManager:
    """Own the notes, hand out ids, and decide how each change is persisted.

    - create(), delete() and save_manually() write immediately and notify.
    - update() is the autosave path: debounced, silent, and also recorded as
      the pending document for the periodic flush.

    Ids come from next_id and are never reused, even after deletes.
    """

    def __init__(self, coordinator: StorageCoordinator, notifier: NotifierProtocol) -> None:
        self._coordinator = coordinator
        self._notifier = notifier
        self._notes: list[Note] = []
        self.next_id = 1

    def initialize(self) -> None:
        """Load notes from storage and migrate legacy records."""
        try:
            loaded = self._coordinator.load()
        except Exception:
            logger.exception("Loading notes failed")
            self._notifier.show("Failed to load notes, check storage permissions", "error")
            self._notes = []
            self.next_id = 1
            return

        doc = loaded.document
        self._notes = doc.notes
        self.next_id = doc.next_id

        migrated = migrate_timestamps(self._notes, now_iso())
        if migrated:
            logger.info("Added missing timestamps to {} legacy notes", migrated)

        if loaded.recovered_from_secondary:
            self._notifier.show("Notes restored from local backup", "info")

        paths = self._coordinator.paths()
        if paths is not None:
            logger.debug("Notes stored at {!r}", str(paths.data_file))
        logger.debug("Loaded {} notes, next id {}", len(self._notes), self.next_id)

    def get_all(self) -> list[Note]:
        return list(self._notes)

    def get_by_id(self, note_id: int) -> Note | None:
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def search(self, term: str | None) -> list[Note]:
        return search_notes(self._notes, term)

    def to_document(self) -> NoteCollectionDocument:
        """Copy the current state into a document stamped with the current time."""
        return NoteCollectionDocument(
            notes=copy.deepcopy(self._notes),
            next_id=self.next_id,
            last_modified=now_iso(),
        )

    def has_unsaved_changes(self) -> bool:
        return (
            self._coordinator.has_debounced_save()
            or self._coordinator.pending_document is not None
        )

    def _save_now(self) -> bool:
        doc = self.to_document()
        # This write supersedes whatever the periodic flush was holding.
        self._coordinator.clear_pending_document()
        result = self._coordinator.save(doc)
        if result.error is not None:
            self._notifier.show("Save failed, notes kept in local backup", "error")
            return False
        return True

    def _apply(self, note: Note, fields: dict[str, Any]) -> None:
        for key, value in fields.items():
            if key in _PROTECTED_FIELDS:
                logger.debug("Ignoring change to protected field {!r} of note {}", key, note.id)
            elif key == "title":
                note.title = value or ""
            elif key == "content":
                note.content = value or ""
            else:
                note.extra[key] = value
        note.updated_at = _later_of(now_iso(), note.created_at or "")

    def create(self, title: str = "", content: str = "") -> Note:
        """Append a new note and save immediately."""
        now = now_iso()
        note = Note(
            id=self.next_id,
            title=title or f"Note {len(self._notes) + 1}",
            content=content,
            created_at=now,
            updated_at=now,
        )
        self.next_id += 1
        self._notes.append(note)

        if self._save_now():
            self._notifier.show("New note created!")
        return note

    def update(self, note_id: int, fields: dict[str, Any]) -> bool:
        """Merge fields into a note and schedule a debounced, silent save."""
        note = self.get_by_id(note_id)
        if note is None:
            logger.warning("Cannot update note {}: not found", note_id)
            return False

        self._apply(note, fields)
        doc = self.to_document()
        self._coordinator.set_pending_document(doc)
        self._coordinator.schedule_debounced_save(doc)
        return True

    def save_manually(self, note_id: int, fields: dict[str, Any]) -> bool:
        """Merge fields into a note and save immediately, with confirmation."""
        note = self.get_by_id(note_id)
        if note is None:
            logger.warning("Cannot save note {}: not found", note_id)
            return False

        self._apply(note, fields)
        if self._save_now():
            self._notifier.show("Note saved!")
        return True

    def delete(self, note_id: int) -> bool:
        """Remove a note and save immediately."""
        for index, note in enumerate(self._notes):
            if note.id == note_id:
                break
        else:
            return False

        del self._notes[index]
        if self._save_now():
            self._notifier.show("Note deleted!")
        return True

    def create_sample_notes(self) -> list[Note]:
        """Add three notes dated in the past, for trying out time display."""
        now = datetime.now(UTC)
        samples = [
            ("Note from 5 minutes ago", timedelta(minutes=5)),
            ("Note from 2 hours ago", timedelta(hours=2)),
            ("Note from 3 days ago", timedelta(days=3)),
        ]
        created: list[Note] = []
        for title, age in samples:
            stamp = format_timestamp(now - age)
            note = Note(
                id=self.next_id,
                title=title,
                content=f"This note was created {title.removeprefix('Note from ')}.",
                created_at=stamp,
                updated_at=stamp,
            )
            self.next_id += 1
            created.append(note)
        self._notes.extend(created)
        self._save_now()
        logger.debug("Created {} sample notes", len(created))
        return created
