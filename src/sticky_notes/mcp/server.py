"""MCP server exposing the sticky notes as tools."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from sticky_notes.app import NotesApp, build_app
from sticky_notes.core.notes.manager import NoteCollectionManager
from sticky_notes.core.scheduling.scheduler import AsyncioScheduler
from sticky_notes.core.storage.coordinator import StorageCoordinator
from sticky_notes.models.note import Note
from sticky_notes.notifications import CollectingNotifier
from sticky_notes.util.timefmt import format_relative_time


def _note_entry(note: Note, *, full: bool = True) -> dict[str, Any]:
    entry = note.to_dict()
    if not full:
        entry["content"] = note.content[:120]
    entry["updated"] = format_relative_time(note.updated_at)
    return entry


def _fields(title: str | None, content: str | None) -> dict[str, str]:
    fields: dict[str, str] = {}
    if title is not None:
        fields["title"] = title
    if content is not None:
        fields["content"] = content
    return fields


# --- Core functions (testable without MCP context) ---


def notes_list(
    manager: NoteCollectionManager, *, response_format: str = "concise"
) -> dict[str, Any]:
    """List all notes in display order."""
    notes = manager.get_all()
    return {
        "notes": [_note_entry(n, full=response_format == "detailed") for n in notes],
        "count": len(notes),
    }


def notes_search(
    manager: NoteCollectionManager,
    *,
    query: str = "",
    limit: int = 20,
    offset: int = 0,
) -> dict[str, Any]:
    """Case-insensitive substring search over titles and content.

    Args:
        query: Text to look for. Blank returns every note.
        limit: Max results (1-50, default 20).
        offset: Pagination offset.
    """
    limit = max(1, min(limit, 50))
    offset = max(0, offset)
    matches = manager.search(query)
    page = matches[offset : offset + limit]
    output: dict[str, Any] = {
        "results": [_note_entry(n, full=False) for n in page],
        "count": len(page),
        "total": len(matches),
        "has_more": offset + len(page) < len(matches),
    }
    if output["has_more"]:
        output["next_offset"] = offset + limit
    return output


def notes_get(manager: NoteCollectionManager, *, note_id: int) -> dict[str, Any]:
    note = manager.get_by_id(note_id)
    if note is None:
        return {"error": f"Note {note_id} not found."}
    return {"note": _note_entry(note)}


def notes_create(
    manager: NoteCollectionManager,
    notifier: CollectingNotifier,
    *,
    title: str = "",
    content: str = "",
) -> dict[str, Any]:
    note = manager.create(title=title, content=content)
    return {"note": _note_entry(note), "notifications": notifier.drain()}


def notes_update(
    manager: NoteCollectionManager,
    *,
    note_id: int,
    title: str | None = None,
    content: str | None = None,
) -> dict[str, Any]:
    """Autosave path: the change is written after a short quiet period."""
    fields = _fields(title, content)
    if not fields:
        return {"success": False, "error": "No fields to update."}
    if not manager.update(note_id, fields):
        return {"success": False, "error": f"Note {note_id} not found."}
    return {"success": True, "note_id": note_id, "saved": "pending"}


def notes_save(
    manager: NoteCollectionManager,
    notifier: CollectingNotifier,
    *,
    note_id: int,
    title: str | None = None,
    content: str | None = None,
) -> dict[str, Any]:
    """Manual save path: the change is written immediately."""
    if not manager.save_manually(note_id, _fields(title, content)):
        return {"success": False, "error": f"Note {note_id} not found."}
    return {"success": True, "note_id": note_id, "notifications": notifier.drain()}


def notes_delete(
    manager: NoteCollectionManager, notifier: CollectingNotifier, *, note_id: int
) -> dict[str, Any]:
    if not manager.delete(note_id):
        return {"success": False, "error": f"Note {note_id} not found."}
    return {"success": True, "note_id": note_id, "notifications": notifier.drain()}


def notes_snapshot(coordinator: StorageCoordinator) -> dict[str, Any]:
    result = coordinator.snapshot()
    if result.error is not None:
        return {"success": False, "error": str(result.error)}
    return {"success": True, "path": str(result.value)}


def notes_storage_info(
    coordinator: StorageCoordinator, manager: NoteCollectionManager
) -> dict[str, Any]:
    storage_paths = coordinator.paths()
    info: dict[str, Any] = {
        "primary_available": coordinator.primary_available,
        "note_count": len(manager.get_all()),
        "next_id": manager.next_id,
        "unsaved_changes": manager.has_unsaved_changes(),
    }
    if storage_paths is not None:
        info["data_dir"] = str(storage_paths.data_dir)
        info["data_file"] = str(storage_paths.data_file)
        info["backup_file"] = str(storage_paths.backup_file)
    return info


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    notes_app: NotesApp
    notifier: CollectingNotifier

    @property
    def manager(self) -> NoteCollectionManager:
        return self.notes_app.manager

    @property
    def coordinator(self) -> StorageCoordinator:
        return self.notes_app.coordinator


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Load notes and start background saving on startup, flush on shutdown."""
    notifier = CollectingNotifier()
    notes_app = build_app(
        scheduler=AsyncioScheduler(asyncio.get_running_loop()),
        notifier=notifier,
    )
    notes_app.manager.initialize()
    for item in notifier.drain():
        logger.info(item["message"])

    notes_app.coordinator.start_periodic_flush()
    notes_app.coordinator.start_periodic_snapshots()
    try:
        yield ServerContext(notes_app=notes_app, notifier=notifier)
    finally:
        notes_app.coordinator.close()


mcp_server = FastMCP(
    "sticky-notes",
    instructions="""\
Sticky notes are short titled notes kept in display order.

- Use notes_search_tool to find notes, notes_get_tool to read one in full.
- notes_update_tool is for incremental edits; it saves after a short pause.
  Use notes_save_tool when the change must be written right away.
- notes_snapshot_tool keeps a timestamped copy of all notes.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def notes_list_tool(ctx: Context, response_format: str = "concise") -> dict[str, Any]:
    """List all notes in display order.

    Args:
        response_format: "concise" (content truncated) or "detailed".
    """
    return notes_list(_ctx(ctx).manager, response_format=response_format)


@mcp_server.tool()
async def notes_search_tool(
    ctx: Context, query: str = "", limit: int = 20, offset: int = 0
) -> dict[str, Any]:
    """Search notes by title and content, ignoring case.

    Pagination: When has_more is true, use next_offset in a follow-up call.

    Args:
        query: Text to look for. Blank lists all notes.
        limit: Max results (1-50, default 20).
        offset: Pagination offset.
    """
    return notes_search(_ctx(ctx).manager, query=query, limit=limit, offset=offset)


@mcp_server.tool()
async def notes_get_tool(ctx: Context, note_id: int) -> dict[str, Any]:
    """Read one note in full.

    Args:
        note_id: Note ID from a list or search result.
    """
    return notes_get(_ctx(ctx).manager, note_id=note_id)


@mcp_server.tool()
async def notes_create_tool(ctx: Context, title: str = "", content: str = "") -> dict[str, Any]:
    """Create a note. An empty title gets a generated one.

    Args:
        title: Note title.
        content: Note text.
    """
    sc = _ctx(ctx)
    return notes_create(sc.manager, sc.notifier, title=title, content=content)


@mcp_server.tool()
async def notes_update_tool(
    ctx: Context, note_id: int, title: str | None = None, content: str | None = None
) -> dict[str, Any]:
    """Edit a note; the change is saved after a one second pause.

    Args:
        note_id: Note to edit.
        title: New title.
        content: New text.
    """
    return notes_update(_ctx(ctx).manager, note_id=note_id, title=title, content=content)


@mcp_server.tool()
async def notes_save_tool(
    ctx: Context, note_id: int, title: str | None = None, content: str | None = None
) -> dict[str, Any]:
    """Edit a note and save it immediately.

    Args:
        note_id: Note to save.
        title: New title.
        content: New text.
    """
    sc = _ctx(ctx)
    return notes_save(sc.manager, sc.notifier, note_id=note_id, title=title, content=content)


@mcp_server.tool()
async def notes_delete_tool(ctx: Context, note_id: int) -> dict[str, Any]:
    """Delete a note. Its ID is never reused.

    Args:
        note_id: Note to delete.
    """
    sc = _ctx(ctx)
    return notes_delete(sc.manager, sc.notifier, note_id=note_id)


@mcp_server.tool()
async def notes_snapshot_tool(ctx: Context) -> dict[str, Any]:
    """Keep a timestamped copy of the notes file. Only the newest few are retained."""
    return notes_snapshot(_ctx(ctx).coordinator)


@mcp_server.tool()
async def notes_storage_info_tool(ctx: Context) -> dict[str, Any]:
    """Show where notes are stored and whether changes are waiting to be saved."""
    sc = _ctx(ctx)
    return notes_storage_info(sc.coordinator, sc.manager)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from sticky_notes.config import resolve_log_file
    from sticky_notes.logging_config import configure_logging

    configure_logging(verbose=False, log_file=resolve_log_file())
    mcp_server.run(transport="stdio")
