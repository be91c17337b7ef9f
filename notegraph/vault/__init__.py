"""Note loading, mention parsing and graph construction."""

from .graph import build_graph, compute_counts, graph_payload, inert_mentions
from .loader import load_notes
from .parser import extract_mentions, format_mention, iter_mentions

__all__ = [
    "build_graph",
    "compute_counts",
    "graph_payload",
    "inert_mentions",
    "load_notes",
    "extract_mentions",
    "format_mention",
    "iter_mentions",
]
