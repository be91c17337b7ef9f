"""
Hover information for mentions.

Shows the mentioned note's send/receive counts and its opening lines.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..identity import strip_extension

if TYPE_CHECKING:
    from ..workspace import Workspace

PREVIEW_LINES = 5


def get_hover_info(workspace: "Workspace", target: str) -> str:
    """Markdown hover content for a mention target."""
    name = strip_extension(target, workspace.settings.extension)
    note = workspace.find(name)
    if note is None:
        return f"**{name}**\n\nNo note with this name is loaded; the mention is inert."

    counts = workspace.counts.get(name)
    send = counts.send if counts else 0
    receive = counts.receive if counts else 0
    versions = len(workspace.history(note))

    lines = [f"## {name}", ""]
    lines.append(f"**Send:** {send} | **Receive:** {receive} | **Versions:** {versions}")
    lines.append("")

    preview = note.content.strip().split("\n")
    if preview and preview[0]:
        lines.append("```text")
        lines.extend(preview[:PREVIEW_LINES])
        if len(preview) > PREVIEW_LINES:
            lines.append("...")
        lines.append("```")

    mentioned_by = sorted({e.source for e in workspace.graph.in_edges(name)})
    if mentioned_by:
        lines.append("")
        lines.append("**Mentioned by:** " + ", ".join(f"`{s}`" for s in mentioned_by))

    return "\n".join(lines)
