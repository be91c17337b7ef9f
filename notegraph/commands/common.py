"""Shared helpers for command implementations."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from ..config import Settings
from ..errors import PermissionDenied, UserCancelled
from ..models import NoteRecord
from ..workspace import SaveOutcome, SaveResult, Workspace


def click_name_prompt(message: str) -> str | None:
    """Ask for a note name on the terminal. Ctrl+C (or EOF) cancels."""
    try:
        return click.prompt(message, default="", show_default=False)
    except click.Abort:
        return None


def open_workspace(
    settings: Settings,
    directory: Path | None = None,
    console: Console | None = None,
) -> Workspace:
    """Build a workspace bound to ``directory`` or to the remembered folder.

    An explicit directory is used for this invocation only. A remembered
    folder that lost its permission is reported and left unbound.
    """
    console = console or Console(stderr=True)
    workspace = Workspace(settings)

    if directory is not None:
        try:
            workspace.bind(lambda: directory, remember=False)
        except (PermissionDenied, UserCancelled) as e:
            raise click.ClickException(str(e)) from e
        return workspace

    if workspace.restore_binding() is None and settings.binding_path.exists():
        console.print(
            "Remembered folder is no longer accessible. Run [bold]notegraph bind[/bold] again; "
            "notes will be downloaded instead until then.",
            style="yellow",
        )
    return workspace


def require_note(workspace: Workspace, name: str) -> NoteRecord:
    note = workspace.find(name)
    if note is None:
        where = workspace.binding.display_name if workspace.binding else "no bound folder"
        raise click.ClickException(f"No note named {name!r} in {where}.")
    return note


def report_save(console: Console, result: SaveResult) -> int:
    """Print the outcome of a save and return an exit code."""
    for warning in result.warnings:
        console.print(warning, style="yellow")

    if result.outcome is SaveOutcome.SAVED:
        console.print(f"Note saved to {result.path}", style="green")
        return 0
    if result.outcome is SaveOutcome.DOWNLOADED:
        console.print(f"Note downloaded to {result.path}", style="green")
        return 0
    if result.outcome is SaveOutcome.CANCELLED:
        console.print("Save cancelled. The version was kept in history.", style="yellow")
        return 1
    console.print(f"Failed to save note: {result.error}", style="bold red")
    console.print("The version was kept in history.", style="dim")
    return 1
