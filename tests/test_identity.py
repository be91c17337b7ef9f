import pytest

from notegraph.errors import UserCancelled
from notegraph.identity import (
    EMPTY_MESSAGE,
    NameResolution,
    ResolutionState,
    normalize_name,
    resolve,
    strip_extension,
)


def test_normalize_appends_extension_once() -> None:
    assert normalize_name("  meeting ") == "meeting.txt"
    assert normalize_name("meeting.txt") == "meeting.txt"
    assert normalize_name("notes", ".md") == "notes.md"


def test_strip_extension() -> None:
    assert strip_extension("meeting.txt") == "meeting"
    assert strip_extension("meeting") == "meeting"
    assert strip_extension(".txt") == ".txt"


def test_collision_is_rejected_and_reprompted(answers) -> None:
    prompt = answers("y")
    name = resolve("x", {"x.txt"}, prompt)

    assert name == "y.txt"
    assert len(prompt.asked) == 1
    assert '"x.txt" already exists' in prompt.asked[0]


def test_never_returns_an_existing_name(answers) -> None:
    existing = {"a.txt", "b.txt"}
    prompt = answers("a", "b.txt", "b", "c")
    assert resolve(None, existing, prompt) == "c.txt"
    assert len(prompt.asked) == 4


def test_collision_check_is_case_sensitive(answers) -> None:
    assert resolve("X", {"x.txt"}, answers()) == "X.txt"


def test_empty_answers_are_rejected(answers) -> None:
    prompt = answers("", "   ", "ok")
    assert resolve(None, set(), prompt) == "ok.txt"
    assert prompt.asked[1] == EMPTY_MESSAGE
    assert prompt.asked[2] == EMPTY_MESSAGE


def test_cancel_raises_user_cancelled(answers) -> None:
    with pytest.raises(UserCancelled):
        resolve(None, set(), answers(None))


def test_cancel_after_collision(answers) -> None:
    with pytest.raises(UserCancelled):
        resolve("x", {"x.txt"}, answers(None))


def test_state_machine_transitions() -> None:
    resolution = NameResolution(existing_names={"taken.txt"})
    assert resolution.state is ResolutionState.PROMPTING

    assert resolution.submit("taken") is ResolutionState.PROMPTING
    assert resolution.rejected == ["taken.txt"]

    assert resolution.submit("fresh") is ResolutionState.RESOLVED
    assert resolution.name == "fresh.txt"

    with pytest.raises(RuntimeError):
        resolution.submit("again")


def test_state_machine_cancel() -> None:
    resolution = NameResolution(existing_names=set())
    assert resolution.submit(None) is ResolutionState.CANCELLED
    assert resolution.name is None


@pytest.mark.parametrize("bad", ["../escape", "a/b", ".hidden", "with]bracket"])
def test_unsafe_names_are_rejected(bad: str) -> None:
    resolution = NameResolution(existing_names=set())
    assert resolution.submit(bad) is ResolutionState.PROMPTING
    assert "not allowed" in resolution.message
