"""CLI for the sticky notes store."""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from sticky_notes.app import NotesApp, build_app
from sticky_notes.config import resolve_log_file
from sticky_notes.logging_config import configure_logging
from sticky_notes.models.note import Note
from sticky_notes.util.timefmt import format_full_datetime, format_relative_time

app = typer.Typer(help="Sticky notes: local notes with automatic backups.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Notes data directory"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose, log_file=resolve_log_file())


@contextmanager
def _open_notes(data_dir: Path | None) -> Iterator[NotesApp]:
    """Build and load the notes, and shut storage down afterwards."""
    notes_app = build_app(data_dir=data_dir)
    notes_app.manager.initialize()
    try:
        yield notes_app
    finally:
        notes_app.coordinator.close()


def _echo_note(note: Note) -> None:
    typer.echo(f"  [{note.id}] {note.title}  ({format_relative_time(note.updated_at)})")
    if note.content:
        first_line = note.content.splitlines()[0]
        typer.echo(f"    {first_line[:80]}")


@app.command(name="list")
def list_cmd(data_dir: DataDirOption = None) -> None:
    """List all notes in display order."""
    with _open_notes(data_dir) as notes_app:
        notes = notes_app.manager.get_all()
        typer.echo(f"{len(notes)} notes:\n")
        for note in notes:
            _echo_note(note)


@app.command()
def show(
    note_id: int = typer.Argument(..., help="Note ID"),
    data_dir: DataDirOption = None,
) -> None:
    """Print one note in full."""
    with _open_notes(data_dir) as notes_app:
        note = notes_app.manager.get_by_id(note_id)
        if note is None:
            logger.error("Note {} not found", note_id)
            raise typer.Exit(1)
        typer.echo(f"# {note.title}")
        typer.echo(
            f"created {format_full_datetime(note.created_at)}, "
            f"updated {format_full_datetime(note.updated_at)}"
        )
        typer.echo()
        typer.echo(note.content)


@app.command()
def add(
    title: Annotated[str, typer.Option("--title", "-t", help="Note title")] = "",
    content: Annotated[str, typer.Option("--content", "-c", help="Note text")] = "",
    data_dir: DataDirOption = None,
) -> None:
    """Create a new note."""
    with _open_notes(data_dir) as notes_app:
        note = notes_app.manager.create(title=title, content=content)
        typer.echo(f"Created note {note.id}: {note.title}")


@app.command()
def edit(
    note_id: int = typer.Argument(..., help="Note ID"),
    title: Annotated[str | None, typer.Option("--title", "-t", help="New title")] = None,
    content: Annotated[str | None, typer.Option("--content", "-c", help="New text")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Change a note's title or text and save it."""
    fields: dict[str, str] = {}
    if title is not None:
        fields["title"] = title
    if content is not None:
        fields["content"] = content
    if not fields:
        typer.echo("Nothing to change, pass --title or --content.")
        raise typer.Exit(1)

    with _open_notes(data_dir) as notes_app:
        if not notes_app.manager.save_manually(note_id, fields):
            logger.error("Note {} not found", note_id)
            raise typer.Exit(1)
        typer.echo(f"Saved note {note_id}")


@app.command()
def delete(
    note_id: int = typer.Argument(..., help="Note ID"),
    data_dir: DataDirOption = None,
) -> None:
    """Delete a note."""
    with _open_notes(data_dir) as notes_app:
        if not notes_app.manager.delete(note_id):
            logger.error("Note {} not found", note_id)
            raise typer.Exit(1)
        typer.echo(f"Deleted note {note_id}")


@app.command()
def search(
    term: str = typer.Argument(..., help="Text to look for in titles and content"),
    data_dir: DataDirOption = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Find notes containing a term, ignoring case."""
    with _open_notes(data_dir) as notes_app:
        results = notes_app.manager.search(term)
        if output_json:
            data = {"results": [n.to_dict() for n in results], "count": len(results)}
            typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
            return
        typer.echo(f"Found {len(results)} notes:\n")
        for note in results:
            _echo_note(note)


@app.command()
def backup(data_dir: DataDirOption = None) -> None:
    """Create a timestamped snapshot of the notes file."""
    with _open_notes(data_dir) as notes_app:
        result = notes_app.coordinator.snapshot()
        if result.error is not None:
            logger.error("Snapshot failed: {}", result.error)
            raise typer.Exit(1)
        typer.echo(f"Snapshot written to {result.value}")


@app.command()
def paths(data_dir: DataDirOption = None) -> None:
    """Show where notes are stored."""
    notes_app = build_app(data_dir=data_dir)
    storage_paths = notes_app.coordinator.paths()
    if storage_paths is None:
        typer.echo("File storage unavailable, notes are kept in the local backup only.")
        return
    typer.echo(f"data dir:    {storage_paths.data_dir}")
    typer.echo(f"data file:   {storage_paths.data_file}")
    typer.echo(f"backup file: {storage_paths.backup_file}")


@app.command(hidden=True)
def samples(data_dir: DataDirOption = None) -> None:
    """Add sample notes dated in the past."""
    with _open_notes(data_dir) as notes_app:
        created = notes_app.manager.create_sample_notes()
        typer.echo(f"Created {len(created)} sample notes")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from sticky_notes.mcp.server import run_mcp_server

    run_mcp_server()
