from pathlib import Path

import pytest

from notegraph.config import Settings
from notegraph.errors import PermissionDenied, ReadError, StaleBindingError, UserCancelled, WriteError
from notegraph.history import VersionStore
from notegraph.models import Counts, MentionEdge
from notegraph.suggest import Key, SuggestionEngine
from notegraph.workspace import SaveOutcome, Workspace


def test_bind_loads_notes_and_builds_graph(
    settings: Settings, notes_dir: Path, write_note
) -> None:
    write_note(notes_dir, "meeting", "See [@alpha] and [@ghost]")
    write_note(notes_dir, "alpha", "nothing")
    (notes_dir / "photo.png").write_bytes(b"\x89PNG")

    ws = Workspace(settings)
    binding = ws.bind(lambda: notes_dir)

    assert binding.display_name == "notes"
    assert sorted(ws.identities()) == ["alpha", "meeting"]
    assert ws.graph.edges == [MentionEdge("meeting", "alpha")]
    assert ws.counts["meeting"] == Counts(send=1, receive=0)
    assert ws.counts["alpha"] == Counts(send=0, receive=1)
    assert "ghost" not in ws.counts


def test_bind_failure_keeps_current_binding(workspace: Workspace, tmp_path: Path) -> None:
    current = workspace.binding
    with pytest.raises(UserCancelled):
        workspace.bind(lambda: None)
    with pytest.raises(PermissionDenied):
        workspace.bind(lambda: tmp_path / "missing")
    assert workspace.binding is current


def test_restore_binding_across_sessions(settings: Settings, notes_dir: Path, write_note) -> None:
    write_note(notes_dir, "a", "A")
    Workspace(settings).bind(lambda: notes_dir)

    again = Workspace(settings)
    assert again.restore_binding() is not None
    assert again.identities() == ["a"]


def test_unreadable_note_is_skipped(
    workspace: Workspace, notes_dir: Path, write_note, monkeypatch: pytest.MonkeyPatch
) -> None:
    write_note(notes_dir, "good", "fine")
    write_note(notes_dir, "bad", "broken")
    real_read = workspace.store.read_text

    def flaky_read(binding, ref):
        if ref.name == "bad.txt":
            raise ReadError("bad.txt: I/O error")
        return real_read(binding, ref)

    monkeypatch.setattr(workspace.store, "read_text", flaky_read)
    workspace.load_notes()

    assert workspace.identities() == ["good"]


def test_save_new_note_assigns_identity_and_rekeys(workspace: Workspace, notes_dir: Path, answers) -> None:
    note = workspace.new_note("See [@alpha]")
    synthetic_key = note.history_key
    assert synthetic_key.startswith("note-")
    assert note.display_name == "New Note"

    result = workspace.save(note, answers("meeting"))

    assert result.outcome is SaveOutcome.SAVED
    assert result.path == notes_dir / "meeting.txt"
    assert (notes_dir / "meeting.txt").read_text(encoding="utf-8") == "See [@alpha]"
    assert note.identity == "meeting"
    assert note.history_key == "meeting.txt"
    assert [e.text for e in workspace.history(note)] == ["See [@alpha]"]
    assert synthetic_key not in workspace.versions


def test_meeting_alpha_scenario(workspace: Workspace, notes_dir: Path, answers) -> None:
    meeting = workspace.new_note("See [@alpha]")
    workspace.save(meeting, answers("meeting"))
    assert workspace.graph.edges == []

    alpha = workspace.new_note("First")
    workspace.save(alpha, answers("alpha"))

    assert workspace.graph.edges == [MentionEdge("meeting", "alpha")]
    assert workspace.counts["alpha"].receive == 1
    assert workspace.counts["meeting"].send == 1


def test_save_existing_note_overwrites_file(workspace: Workspace, notes_dir: Path, write_note, answers) -> None:
    write_note(notes_dir, "a", "v1")
    workspace.load_notes()
    note = workspace.find("a")
    assert note is not None

    workspace.set_content(note, "v2")
    prompt = answers()
    result = workspace.save(note, prompt)

    assert result.outcome is SaveOutcome.SAVED
    assert prompt.asked == []
    assert (notes_dir / "a.txt").read_text(encoding="utf-8") == "v2"
    assert [e.text for e in workspace.history(note)] == ["v2"]


def test_name_collision_reprompts(workspace: Workspace, notes_dir: Path, write_note, answers) -> None:
    write_note(notes_dir, "taken", "original")
    workspace.load_notes()
    note = workspace.new_note("mine")
    prompt = answers("taken", "free")

    result = workspace.save(note, prompt, proposed="taken")

    assert result.outcome is SaveOutcome.SAVED
    assert note.identity == "free"
    assert "already exists" in prompt.asked[0]
    assert (notes_dir / "taken.txt").read_text(encoding="utf-8") == "original"


def test_cancel_keeps_version(workspace: Workspace, notes_dir: Path, answers) -> None:
    note = workspace.new_note("draft")
    result = workspace.save(note, answers(None))

    assert result.outcome is SaveOutcome.CANCELLED
    assert note.identity is None
    assert [e.text for e in workspace.history(note)] == ["draft"]
    assert list(notes_dir.iterdir()) == []


def test_version_log_is_persisted_before_write(
    workspace: Workspace, settings: Settings, notes_dir: Path, write_note, answers,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    write_note(notes_dir, "a", "v1")
    workspace.load_notes()
    note = workspace.find("a")
    workspace.set_content(note, "v2")

    def broken_write(binding, ref, text):
        assert VersionStore(settings.versions_path).load().latest("a.txt").text == "v2"
        raise WriteError("disk full")

    monkeypatch.setattr(workspace.store, "write_text", broken_write)
    result = workspace.save(note, answers())

    assert result.outcome is SaveOutcome.DOWNLOADED
    assert result.path.parent == settings.downloads_dir
    assert result.path.name.startswith("note-")
    assert result.path.read_text(encoding="utf-8") == "v2"
    assert result.warnings
    assert (notes_dir / "a.txt").read_text(encoding="utf-8") == "v1"
    assert [e.text for e in workspace.history(note)] == ["v2"]


def test_failed_first_write_removes_empty_file(
    workspace: Workspace, notes_dir: Path, answers, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken_write(binding, ref, text):
        raise WriteError("disk full")

    monkeypatch.setattr(workspace.store, "write_text", broken_write)
    note = workspace.new_note("hello")
    result = workspace.save(note, answers("fresh"))

    assert result.outcome is SaveOutcome.DOWNLOADED
    assert note.identity is None
    assert not (notes_dir / "fresh.txt").exists()
    assert result.path.read_text(encoding="utf-8") == "hello"


def test_save_without_binding_downloads(settings: Settings, answers) -> None:
    ws = Workspace(settings)
    note = ws.new_note("offline")
    result = ws.save(note, answers("offline-note"))

    assert result.outcome is SaveOutcome.DOWNLOADED
    assert result.path == settings.downloads_dir / "offline-note.txt"
    assert result.path.read_text(encoding="utf-8") == "offline"
    assert note.identity is None
    assert [e.text for e in ws.history(note)] == ["offline"]


def test_unbind_unloads_backed_notes_only(workspace: Workspace, notes_dir: Path, write_note) -> None:
    write_note(notes_dir, "a", "[@b]")
    write_note(notes_dir, "b", "")
    workspace.load_notes()
    draft = workspace.new_note("unsaved")
    binding = workspace.binding
    old_ref = workspace.find("a").backing_ref

    assert workspace.unbind() == 2

    assert workspace.binding is None
    assert workspace.notes == [draft]
    assert workspace.graph.edges == []
    assert (notes_dir / "a.txt").exists()
    assert not workspace.binding_state.path.exists()
    with pytest.raises(StaleBindingError):
        workspace.store.write_text(binding, old_ref, "x")


def test_rebinding_makes_old_refs_stale(workspace: Workspace, notes_dir: Path, write_note, tmp_path: Path) -> None:
    write_note(notes_dir, "a", "A")
    workspace.load_notes()
    old_binding = workspace.binding
    old_ref = workspace.find("a").backing_ref

    other = tmp_path / "other"
    other.mkdir()
    workspace.bind(lambda: other)

    assert old_binding.revoked
    assert workspace.notes == []
    with pytest.raises(StaleBindingError):
        workspace.store.read_text(workspace.binding, old_ref)


def test_delete_note(workspace: Workspace, notes_dir: Path, write_note) -> None:
    write_note(notes_dir, "a", "[@b]")
    write_note(notes_dir, "b", "")
    workspace.load_notes()
    workspace.record_version(workspace.find("a"))

    workspace.delete_note(workspace.find("a"))

    assert not (notes_dir / "a.txt").exists()
    assert workspace.identities() == ["b"]
    assert workspace.graph.edges == []
    assert "a.txt" in workspace.versions


def test_replay_sets_live_text_without_saving(workspace: Workspace, notes_dir: Path, write_note, answers) -> None:
    write_note(notes_dir, "a", "v1")
    workspace.load_notes()
    note = workspace.find("a")
    workspace.save(note, answers())
    workspace.set_content(note, "v2")
    workspace.save(note, answers())

    entry = workspace.replay(note, 0)

    assert entry is not None and entry.text == "v1"
    assert note.content == "v1"
    assert (notes_dir / "a.txt").read_text(encoding="utf-8") == "v2"
    assert len(workspace.history(note)) == 2
    assert workspace.replay(note, 5) is None


def test_live_edits_update_graph_and_notify(workspace: Workspace, notes_dir: Path, write_note) -> None:
    write_note(notes_dir, "a", "")
    write_note(notes_dir, "b", "")
    workspace.load_notes()
    payloads = []
    workspace.subscribe(payloads.append)

    def broken_sink(payload):
        raise RuntimeError("sink failed")

    workspace.subscribe(broken_sink)
    workspace.set_content(workspace.find("a"), "[@b]")

    assert workspace.graph.edges == [MentionEdge("a", "b")]
    assert payloads[-1]["links"] == [{"source": "a", "target": "b"}]
    assert {n["id"] for n in payloads[-1]["nodes"]} == {"a", "b"}


def test_apply_suggestion_edit(workspace: Workspace, notes_dir: Path, write_note) -> None:
    write_note(notes_dir, "alpha", "")
    workspace.load_notes()
    note = workspace.new_note("See [@al")

    engine = SuggestionEngine()
    engine.update(len(note.content), note.content, workspace.identities())
    engine.press(Key.DOWN)
    edit = engine.press(Key.ENTER).edit

    assert workspace.apply_edit(note, edit) == "See [@alpha]"


def test_synthetic_keys_are_unique(settings: Settings) -> None:
    ws = Workspace(settings)
    keys = {ws.new_note().history_key for _ in range(5)}
    assert len(keys) == 5


def test_bind_survives_unwritable_state_dir(tmp_path: Path, notes_dir: Path, write_note) -> None:
    state_file = tmp_path / "state"
    state_file.write_text("not a directory", encoding="utf-8")
    write_note(notes_dir, "a", "A")
    ws = Workspace(Settings(state_dir=state_file, downloads_dir=tmp_path / "downloads"))

    binding = ws.bind(lambda: notes_dir)

    assert ws.binding is binding
    assert not binding.revoked
    assert not ws.remembered
    assert ws.identities() == ["a"]


def test_bind_remembers_by_default(workspace: Workspace) -> None:
    assert workspace.remembered
    assert workspace.binding_state.path.exists()


def test_load_note_keeps_live_text_of_other_notes(
    workspace: Workspace, notes_dir: Path, write_note
) -> None:
    write_note(notes_dir, "a", "")
    write_note(notes_dir, "b", "")
    workspace.load_notes()
    workspace.set_content(workspace.find("a"), "[@b]")

    write_note(notes_dir, "c", "[@b]")
    note = workspace.load_note("c.txt")

    assert note is not None and note.backing_ref is not None
    assert workspace.find("a").content == "[@b]"
    assert workspace.counts["b"].receive == 2
    assert workspace.load_note("c.txt") is note
    assert workspace.load_note("image.png") is None


def test_load_note_missing_file_raises(workspace: Workspace) -> None:
    with pytest.raises(WriteError):
        workspace.load_note("nope.txt")


def test_suggestions_exclude_the_edited_note(workspace: Workspace, notes_dir: Path, write_note) -> None:
    write_note(notes_dir, "alpha", "")
    write_note(notes_dir, "apple", "See [@a")
    workspace.load_notes()
    note = workspace.find("apple")
    engine = SuggestionEngine()

    assert workspace.suggestions(note, len(note.content), engine) == ["alpha"]
    assert engine.is_open
