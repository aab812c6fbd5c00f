"""Domain models for the sticky notes store."""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Keys owned by Note itself; anything else found on disk is carried in Note.extra.
_NOTE_KEYS = ("id", "title", "content", "createdAt", "updatedAt")


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return format_timestamp(datetime.now(UTC))


def format_timestamp(dt: datetime) -> str:
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


@dataclass
class Note:
    """A single user-visible sticky note.

    Timestamps are None only for legacy records that have not been migrated yet.
    """

    id: int
    title: str = ""
    content: str = ""
    created_at: str | None = None
    updated_at: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        if not isinstance(data, dict):
            msg = f"note must be an object, got {type(data).__name__}"
            raise ValueError(msg)
        note_id = data.get("id")
        if not isinstance(note_id, int) or isinstance(note_id, bool):
            msg = f"note id must be an integer: {note_id!r}"
            raise ValueError(msg)
        for key in ("title", "content", "createdAt", "updatedAt"):
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                msg = f"note {note_id} field {key!r} must be a string: {value!r}"
                raise ValueError(msg)
        return cls(
            id=note_id,
            title=data.get("title") or "",
            content=data.get("content") or "",
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            extra={k: v for k, v in data.items() if k not in _NOTE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "title": self.title, "content": self.content}
        if self.created_at is not None:
            out["createdAt"] = self.created_at
        if self.updated_at is not None:
            out["updatedAt"] = self.updated_at
        out.update(self.extra)
        return out


@dataclass
class NoteCollectionDocument:
    """The unit of persistence: all notes plus the id allocator state."""

    notes: list[Note] = field(default_factory=list)
    next_id: int = 1
    last_modified: str | None = None

    @classmethod
    def empty(cls) -> "NoteCollectionDocument":
        return cls(notes=[], next_id=1, last_modified=now_iso())

    @classmethod
    def from_dict(cls, data: Any) -> "NoteCollectionDocument":
        """Build a document from parsed JSON, raising ValueError if malformed.

        A stale ``nextId`` (not above every stored id) is raised to max(id) + 1.
        """
        if not isinstance(data, dict):
            msg = f"document must be an object, got {type(data).__name__}"
            raise ValueError(msg)
        raw_notes = data.get("notes")
        if not isinstance(raw_notes, list):
            msg = "document has no notes list"
            raise ValueError(msg)
        notes = [Note.from_dict(n) for n in raw_notes]

        next_id = data.get("nextId")
        if not isinstance(next_id, int) or isinstance(next_id, bool) or next_id < 1:
            next_id = 1
        if notes:
            next_id = max(next_id, max(n.id for n in notes) + 1)

        return cls(notes=notes, next_id=next_id, last_modified=data.get("lastModified"))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "notes": [n.to_dict() for n in self.notes],
            "nextId": self.next_id,
        }
        if self.last_modified is not None:
            out["lastModified"] = self.last_modified
        return out

    def is_empty(self) -> bool:
        return not self.notes


def serialize_document(doc: NoteCollectionDocument) -> str:
    """Pretty-print a document as JSON with 2-space indent."""
    return json.dumps(doc.to_dict(), indent=2, ensure_ascii=False) + "\n"


def deserialize_document(text: str) -> NoteCollectionDocument:
    """Parse JSON text into a document. Raises ValueError on bad input."""
    return NoteCollectionDocument.from_dict(json.loads(text))
