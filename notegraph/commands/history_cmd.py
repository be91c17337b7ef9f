"""History commands - list and restore saved versions of a note."""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ..config import Settings
from .common import click_name_prompt, open_workspace, report_save, require_note


def run_history(settings: Settings, directory: Path | None, name: str, *, output_json: bool = False) -> int:
    """List versions oldest first, numbered from #1."""
    workspace = open_workspace(settings, directory)
    note = require_note(workspace, name)
    entries = workspace.history(note)

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False))
        return 0

    console = Console()
    if not entries:
        console.print("No logs yet.", style="dim")
        return 0

    table = Table(title=f"History of {note.display_name}")
    table.add_column("#", justify="right")
    table.add_column("Saved", style="cyan")
    table.add_column("Chars", justify="right")
    table.add_column("First line", style="dim")
    for idx, entry in enumerate(entries, start=1):
        first = entry.text.strip().split("\n", 1)[0][:60]
        table.add_row(
            str(idx),
            entry.saved_at.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
            str(len(entry.text)),
            first,
        )
    console.print(table)
    return 0


def run_restore(
    settings: Settings,
    directory: Path | None,
    name: str,
    version: int,
    *,
    save: bool = True,
) -> int:
    """Replay version ``#version`` into the note and save it as a new version."""
    console = Console(stderr=True)
    workspace = open_workspace(settings, directory, console=console)
    note = require_note(workspace, name)

    entry = workspace.replay(note, version - 1)
    if entry is None:
        count = len(workspace.history(note))
        raise click.ClickException(f"{note.display_name} has no version #{version} (has {count}).")

    if not save:
        print(entry.text, end="" if entry.text.endswith("\n") else "\n")
        return 0

    console.print(f"Restored version #{version} of {note.display_name}", style="dim")
    return report_save(console, workspace.save(note, click_name_prompt))
