"""Graph command - export the mention graph and send/receive counts."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import Settings
from ..models import Counts, Graph
from .common import open_workspace


def run_graph(
    settings: Settings,
    directory: Path | None = None,
    *,
    fmt: str = "json",
    out: Path | None = None,
    top: int = 25,
) -> int:
    """Output the mention graph.

    ``json`` is the node/link payload for visualization tools; ``md``,
    ``rich`` and ``dot`` are summaries for people.
    """
    console = Console(stderr=True)
    workspace = open_workspace(settings, directory, console=console)
    graph = workspace.graph
    title = f"Mention graph ({workspace.binding.display_name})" if workspace.binding else "Mention graph"

    if fmt == "rich":
        summary = _summarize_graph(graph, workspace.counts, title=title, top=top)
        if out:
            rich_console = Console(record=True)
            _print_rich(summary, console=rich_console)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            console.print(f"Wrote graph output to {out}", style="green")
        else:
            _print_rich(summary, console=Console())
        return 0

    text: str
    if fmt == "json":
        text = json.dumps(workspace.payload(), indent=2, ensure_ascii=False) + "\n"
    elif fmt == "dot":
        text = _to_dot(graph, workspace.counts, title=title)
    else:
        text = _to_markdown(_summarize_graph(graph, workspace.counts, title=title, top=top))

    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote graph output to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")

    return 0


def _summarize_graph(graph: Graph, counts: dict[str, Counts], *, title: str, top: int) -> dict:
    rows = [
        {"name": n, "send": counts[n].send, "receive": counts[n].receive}
        for n in sorted(graph.nodes)
    ]

    def top_list(key: str) -> list[dict]:
        ranked = sorted(rows, key=lambda r: (-r[key], r["name"]))
        return ranked[: max(0, top)]

    return {
        "title": title,
        "node_count": len(graph.nodes),
        "edge_count": len(graph.edges),
        "top_receive": top_list("receive"),
        "top_send": top_list("send"),
    }


def _print_rich(payload: dict, *, console: Console) -> None:
    console.print(f"[bold]{payload['title']}[/bold]")
    console.print(f"Notes: {payload['node_count']}  Mentions: {payload['edge_count']}")
    console.print()

    def render_table(title: str, rows: list[dict]) -> None:
        t = Table(title=title, show_header=True, header_style="bold")
        t.add_column("Note", style="cyan", no_wrap=True)
        t.add_column("Receive", justify="right")
        t.add_column("Send", justify="right")
        for r in rows:
            t.add_row(str(r["name"]), str(r["receive"]), str(r["send"]))
        console.print(t)
        console.print()

    render_table("Most mentioned", payload["top_receive"])
    render_table("Most mentioning", payload["top_send"])


def _to_markdown(payload: dict) -> str:
    lines: list[str] = []
    lines.append(f"## {payload['title']}")
    lines.append("")
    lines.append(f"- Notes: {payload['node_count']}")
    lines.append(f"- Mentions: {payload['edge_count']}")
    lines.append("")

    def table(title: str, rows: list[dict]) -> None:
        lines.append(f"### {title}")
        lines.append("")
        lines.append("| Note | Receive | Send |")
        lines.append("|---|---:|---:|")
        for r in rows:
            lines.append(f"| `{r['name']}` | {r['receive']} | {r['send']} |")
        lines.append("")

    table("Most mentioned", payload["top_receive"])
    table("Most mentioning", payload["top_send"])

    return "\n".join(lines).rstrip() + "\n"


def _to_dot(graph: Graph, counts: dict[str, Counts], *, title: str) -> str:
    def esc(s: str) -> str:
        return s.replace("\\", "\\\\").replace('"', '\\"')

    lines = [
        "digraph notes {",
        f'  label="{esc(title)}";',
        "  labelloc=t;",
        "  rankdir=LR;",
        "  node [fontname=\"Helvetica\", fontsize=10, shape=box, style=rounded];",
    ]
    for name in graph.nodes:
        c = counts[name]
        lines.append(f'  "{esc(name)}" [tooltip="send {c.send}, receive {c.receive}"];')

    # Repeated mentions collapse into one weighted edge
    weights: dict[tuple[str, str], int] = {}
    for e in graph.edges:
        weights[(e.source, e.target)] = weights.get((e.source, e.target), 0) + 1
    for (src, dst), w in weights.items():
        attrs = f' [label="{w}", penwidth={1 + min(w, 5) * 0.4:.1f}]' if w > 1 else ""
        lines.append(f'  "{esc(src)}" -> "{esc(dst)}"{attrs};')

    lines.append("}")
    return "\n".join(lines) + "\n"
