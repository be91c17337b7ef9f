"""Note commands - bind, list, create, edit, delete, inspect mentions."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ..config import Settings
from ..errors import PermissionDenied, StoreError, UserCancelled
from ..models import NoteRecord
from ..suggest import compute_candidates
from ..vault.graph import inert_mentions
from ..workspace import Workspace
from .common import click_name_prompt, open_workspace, report_save, require_note


def _first_line(text: str, width: int = 60) -> str:
    line = text.strip().split("\n", 1)[0]
    return line if len(line) <= width else line[: width - 1] + "…"


def run_bind(settings: Settings, directory: Path | None) -> int:
    """Grant a notes folder and remember it for later sessions."""
    console = Console(stderr=True)
    workspace = Workspace(settings)

    def picker() -> Path | None:
        if directory is not None:
            return directory
        try:
            return click.prompt("Notes folder", type=click.Path(path_type=Path))
        except click.Abort:
            return None

    try:
        binding = workspace.bind(picker)
    except UserCancelled:
        console.print("Folder selection cancelled.", style="yellow")
        return 1
    except PermissionDenied as e:
        console.print(f"{e} Notes will be downloaded instead.", style="bold red")
        return 1

    console.print(f"Bound [bold]{binding.display_name}[/bold] ({binding.path})", style="green")
    if not workspace.remembered:
        console.print("Could not remember the folder; it is bound for this session only.", style="yellow")
    console.print(f"  Loaded {len(workspace.notes)} notes", style="dim")
    return 0


def run_unbind(settings: Settings) -> int:
    console = Console(stderr=True)
    workspace = open_workspace(settings, console=console)
    if workspace.binding is None:
        workspace.binding_state.forget()
        console.print("No folder is bound.", style="dim")
        return 0
    name = workspace.binding.display_name
    unloaded = workspace.unbind()
    console.print(f"Unbound {name} ({unloaded} notes unloaded, files kept).", style="green")
    return 0


def run_status(settings: Settings, directory: Path | None = None) -> int:
    workspace = open_workspace(settings, directory)
    console = Console()
    if workspace.binding is None:
        console.print("Folder: [yellow]none[/yellow] (saves fall back to downloads)")
    else:
        console.print(f"Folder: [bold]{workspace.binding.display_name}[/bold] ({workspace.binding.path})")
    console.print(f"Notes: {len(workspace.notes)}")
    console.print(f"Mentions: {len(workspace.graph.edges)}")
    console.print(f"Versions: {len(workspace.versions)} across {len(workspace.versions.keys())} notes")
    console.print(f"Downloads: {settings.downloads_dir}")
    return 0


def run_list(settings: Settings, directory: Path | None = None) -> int:
    """Show every loaded note with its send/receive counts."""
    workspace = open_workspace(settings, directory)
    console = Console()

    if not workspace.notes:
        console.print("No notes loaded.", style="dim")
        return 0

    table = Table(title=workspace.binding.display_name if workspace.binding else "Notes")
    table.add_column("Note", style="bold")
    table.add_column("Send", justify="right")
    table.add_column("Receive", justify="right")
    table.add_column("Versions", justify="right")
    table.add_column("First line", style="dim")

    counts = workspace.counts
    for note in workspace.notes:
        c = counts.get(note.identity) if note.identity else None
        table.add_row(
            note.display_name,
            str(c.send if c else 0),
            str(c.receive if c else 0),
            str(len(workspace.history(note))),
            _first_line(note.content),
        )
    console.print(table)
    return 0


def run_new(
    settings: Settings,
    directory: Path | None = None,
    *,
    name: str | None = None,
    text: str | None = None,
) -> int:
    """Create a note and save it (to the folder, or as a download)."""
    console = Console(stderr=True)
    workspace = open_workspace(settings, directory, console=console)

    if text is None:
        text = click.edit(settings.default_text, extension=settings.extension)
        if text is None:
            console.print("No text entered; note discarded.", style="yellow")
            return 1

    note = workspace.new_note(text)
    result = workspace.save(note, click_name_prompt, proposed=name)
    code = report_save(console, result)
    if code == 0:
        _print_inert(console, workspace, note)
    return code


def run_edit(settings: Settings, directory: Path | None, name: str, text: str | None = None) -> int:
    """Open a note in the editor and save the result as a new version."""
    console = Console(stderr=True)
    workspace = open_workspace(settings, directory, console=console)
    note = require_note(workspace, name)

    if text is None:
        text = click.edit(note.content, extension=settings.extension)
        if text is None or text == note.content:
            console.print("No changes.", style="dim")
            return 0

    workspace.set_content(note, text)
    code = report_save(console, workspace.save(note, click_name_prompt))
    if code == 0:
        _print_inert(console, workspace, note)
    return code


def run_show(settings: Settings, directory: Path | None, name: str) -> int:
    workspace = open_workspace(settings, directory)
    note = require_note(workspace, name)
    print(note.content, end="" if note.content.endswith("\n") else "\n")
    return 0


def run_delete(settings: Settings, directory: Path | None, name: str, *, yes: bool = False) -> int:
    """Delete a note and its file. Its version history is kept."""
    console = Console(stderr=True)
    workspace = open_workspace(settings, directory, console=console)
    note = require_note(workspace, name)

    if not yes and not click.confirm(f"Delete {note.display_name} and its file?", default=False):
        console.print("Delete cancelled.", style="yellow")
        return 1

    try:
        workspace.delete_note(note)
    except StoreError as e:
        console.print(f"Failed to delete {note.display_name}: {e}", style="bold red")
        return 1

    console.print(f"Deleted {note.display_name}", style="green")
    return 0


def run_mentions(settings: Settings, directory: Path | None, name: str) -> int:
    """Show outbound, inbound and inert mentions of one note."""
    workspace = open_workspace(settings, directory)
    note = require_note(workspace, name)
    console = Console()
    graph = workspace.graph
    counts = workspace.counts.get(note.identity)

    console.print(f"[bold]{note.display_name}[/bold]  send={counts.send}  receive={counts.receive}")

    out_edges = graph.out_edges(note.identity)
    console.print("\nMentions:")
    for edge in out_edges:
        console.print(f"  → {edge.target}")
    if not out_edges:
        console.print("  (none)", style="dim")

    in_edges = graph.in_edges(note.identity)
    console.print("\nMentioned by:")
    for edge in in_edges:
        console.print(f"  ← {edge.source}")
    if not in_edges:
        console.print("  (none)", style="dim")

    _print_inert(console, workspace, note)
    return 0


def _print_inert(console: Console, workspace: Workspace, note: NoteRecord) -> None:
    inert = inert_mentions(note, workspace.identities(), workspace.settings.extension)
    if inert:
        targets = ", ".join(sorted({m.target for m in inert}))
        console.print(f"Inert mentions (no such note yet): {targets}", style="dim")


def run_suggest(settings: Settings, directory: Path | None, partial: str, limit: int | None = None) -> int:
    """Print note identities completing ``partial``."""
    workspace = open_workspace(settings, directory)
    candidates = compute_candidates(partial, workspace.identities())
    limit = limit or settings.suggestion_limit
    for name in candidates[:limit]:
        print(name)
    return 0 if candidates else 1
