"""Mention graph construction and send/receive counts."""

from __future__ import annotations

from collections.abc import Iterable

from ..identity import strip_extension
from ..models import Counts, Graph, MentionEdge, NoteRecord
from .parser import Mention, iter_mentions


def build_graph(notes: Iterable[NoteRecord], extension: str = ".txt") -> Graph:
    """Build the graph from scratch.

    Nodes are the identities of loaded notes, in note order. Every mention
    whose target (extension stripped) names another loaded note becomes
    one edge; mentions of unknown notes are dropped.
    """
    notes = [n for n in notes if n.identity is not None]
    graph = Graph(nodes=[n.identity for n in notes])
    known = set(graph.nodes)

    for note in notes:
        for mention in iter_mentions(note.content):
            target = strip_extension(mention.target, extension)
            if target in known and target != note.identity:
                graph.edges.append(MentionEdge(source=note.identity, target=target))

    return graph


def compute_counts(graph: Graph) -> dict[str, Counts]:
    """Outbound (send) and inbound (receive) edge occurrences per node."""
    counts = {name: Counts() for name in graph.nodes}
    for edge in graph.edges:
        counts.setdefault(edge.source, Counts()).send += 1
        counts.setdefault(edge.target, Counts()).receive += 1
    return counts


def inert_mentions(
    note: NoteRecord, identities: Iterable[str], extension: str = ".txt"
) -> list[Mention]:
    """Mentions in ``note`` that do not resolve to another loaded note."""
    known = set(identities)
    result = []
    for mention in iter_mentions(note.content):
        target = strip_extension(mention.target, extension)
        if target not in known or target == note.identity:
            result.append(mention)
    return result


def graph_payload(graph: Graph, notes: Iterable[NoteRecord]) -> dict:
    """Snapshot for the visualization surface.

    ``{"nodes": [{"id", "content"}], "links": [{"source", "target"}]}``
    """
    content = {n.identity: n.content for n in notes if n.identity is not None}
    return {
        "nodes": [{"id": name, "content": content.get(name, "")} for name in graph.nodes],
        "links": [{"source": e.source, "target": e.target} for e in graph.edges],
    }
