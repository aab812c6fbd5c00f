"""Local-first sticky notes storage with rotating backups and a key-value mirror."""

from sticky_notes.app import NotesApp, build_app
from sticky_notes.core.notes.manager import NoteCollectionManager
from sticky_notes.core.storage.coordinator import LoadResult, StorageCoordinator
from sticky_notes.models.note import Note, NoteCollectionDocument

__all__ = [
    "LoadResult",
    "Note",
    "NoteCollectionDocument",
    "NoteCollectionManager",
    "NotesApp",
    "StorageCoordinator",
    "build_app",
]
