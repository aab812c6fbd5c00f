"""Substring search over notes."""

from collections.abc import Sequence

from sticky_notes.models.note import Note


def search_notes(notes: Sequence[Note], term: str | None) -> list[Note]:
    """Return notes whose title or content contains term, case-insensitively.

    A blank term matches everything. Results keep the input order.
    """
    if not term or not term.strip():
        return list(notes)

    needle = term.strip().casefold()
    return [
        n for n in notes if needle in n.title.casefold() or needle in n.content.casefold()
    ]
