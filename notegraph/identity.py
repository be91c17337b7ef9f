"""Note identity resolution.

Turns a human-entered name into a unique file name in the bound directory.
The prompt loop is a small request/response state machine so that callers
that cannot block (the language server, tests) can drive it one answer at a
time, while ``resolve`` drives it with a blocking prompt function.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from .errors import NameCollision, UserCancelled

# Prompt capability: shows a message, returns the user's answer or None on cancel.
NamePrompt = Callable[[str], str | None]

DEFAULT_QUESTION = "Enter a file name for your note (without extension)"
EMPTY_MESSAGE = "File name cannot be empty."


class ResolutionState(str, Enum):
    PROMPTING = "prompting"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


def normalize_name(name: str, extension: str = ".txt") -> str:
    """Strip whitespace and append the note extension if absent."""
    name = name.strip()
    if not name.endswith(extension):
        name += extension
    return name


def strip_extension(name: str, extension: str = ".txt") -> str:
    if name.endswith(extension) and len(name) > len(extension):
        return name[: -len(extension)]
    return name


def is_safe_name(name: str) -> bool:
    """Reject names that would escape the directory or break mention syntax."""
    if name in (".", "..") or name.startswith("."):
        return False
    return not any(ch in name for ch in ("/", "\\", "\0", "]", "\n", "\r"))


@dataclass
class NameResolution:
    """State machine ``PROMPTING -> {RESOLVED, CANCELLED}``.

    Each call to ``submit`` is one answer from the user. While the state is
    PROMPTING, ``message`` holds what to show before asking again.
    """

    existing_names: set[str]
    extension: str = ".txt"
    state: ResolutionState = ResolutionState.PROMPTING
    message: str = DEFAULT_QUESTION
    name: str | None = None
    rejected: list[str] = field(default_factory=list)

    def submit(self, answer: str | None) -> ResolutionState:
        if self.state is not ResolutionState.PROMPTING:
            raise RuntimeError(f"Resolution already {self.state.value}")

        if answer is None:
            self.state = ResolutionState.CANCELLED
            self.message = "Save cancelled."
            return self.state

        if not answer.strip():
            self.message = EMPTY_MESSAGE
            return self.state

        candidate = normalize_name(answer, self.extension)
        if not is_safe_name(candidate):
            self.rejected.append(candidate)
            self.message = f'File name "{candidate}" contains characters that are not allowed.'
            return self.state

        if candidate in self.existing_names:
            self.rejected.append(candidate)
            self.message = str(NameCollision(candidate))
            return self.state

        self.name = candidate
        self.state = ResolutionState.RESOLVED
        self.message = ""
        return self.state


def resolve(
    proposed: str | None,
    existing_names: Iterable[str],
    prompt: NamePrompt,
    extension: str = ".txt",
) -> str:
    """Return a non-empty, non-colliding file name (with extension).

    ``proposed`` is tried first; if it is missing or rejected the user is
    prompted until an acceptable name is given. ``prompt`` receives the
    message to display.

    Raises:
        UserCancelled: the user cancelled at any point
    """
    resolution = NameResolution(existing_names=set(existing_names), extension=extension)
    if proposed is not None:
        resolution.submit(proposed)

    while resolution.state is ResolutionState.PROMPTING:
        resolution.submit(prompt(resolution.message))

    if resolution.state is ResolutionState.CANCELLED or resolution.name is None:
        raise UserCancelled(resolution.message)
    return resolution.name
