from notegraph.models import MentionEdge, NoteRecord
from notegraph.vault.graph import build_graph, compute_counts, graph_payload, inert_mentions


def _note(identity: str | None, content: str) -> NoteRecord:
    key = f"{identity}.txt" if identity else "note-1"
    return NoteRecord(content=content, history_key=key, identity=identity)


def test_known_mentions_become_edges_unknown_are_dropped() -> None:
    notes = [
        _note("meeting", "See [@alpha] and [@ghost]"),
        _note("alpha", "nothing here"),
    ]
    graph = build_graph(notes)

    assert graph.nodes == ["meeting", "alpha"]
    assert graph.edges == [MentionEdge("meeting", "alpha")]


def test_build_graph_is_idempotent() -> None:
    notes = [
        _note("a", "[@b] [@c] [@b]"),
        _note("b", "[@a]"),
        _note("c", ""),
    ]
    assert build_graph(notes) == build_graph(notes)


def test_repeated_mentions_count_separately() -> None:
    notes = [_note("a", "[@b] once, [@b] twice"), _note("b", "")]
    graph = build_graph(notes)
    counts = compute_counts(graph)

    assert [e for e in graph.edges if e == MentionEdge("a", "b")] == [MentionEdge("a", "b")] * 2
    assert counts["a"].send == 2
    assert counts["b"].receive == 2
    assert counts["a"].receive == 0
    assert counts["b"].send == 0


def test_match_is_case_sensitive_and_ignores_extension() -> None:
    notes = [_note("a", "[@B] [@b.txt]"), _note("b", "")]
    graph = build_graph(notes)
    assert graph.edges == [MentionEdge("a", "b")]


def test_self_mentions_are_not_edges() -> None:
    notes = [_note("a", "I am [@a]")]
    graph = build_graph(notes)
    assert graph.edges == []
    assert compute_counts(graph)["a"].send == 0


def test_unsaved_notes_are_not_nodes() -> None:
    notes = [_note(None, "[@a]"), _note("a", "")]
    graph = build_graph(notes)
    assert graph.nodes == ["a"]
    assert graph.edges == []


def test_counts_include_isolated_nodes() -> None:
    counts = compute_counts(build_graph([_note("lonely", "no mentions")]))
    assert counts["lonely"].send == 0
    assert counts["lonely"].receive == 0


def test_inert_mentions() -> None:
    note = _note("a", "[@b] [@ghost] [@a]")
    inert = inert_mentions(note, ["a", "b"])
    assert [m.target for m in inert] == ["ghost", "a"]


def test_graph_payload_shape() -> None:
    notes = [_note("a", "see [@b]"), _note("b", "hello")]
    payload = graph_payload(build_graph(notes), notes)
    assert payload == {
        "nodes": [{"id": "a", "content": "see [@b]"}, {"id": "b", "content": "hello"}],
        "links": [{"source": "a", "target": "b"}],
    }
