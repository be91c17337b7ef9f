"""Mention autocompletion.

Tracks one in-progress ``[@partial`` token in one note, filters known note
identities by prefix, and runs the keyboard selection state machine.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from .vault.parser import CLOSE_MARKER, OPEN_MARKER, format_mention

# Conservative charset for a partial identifier: no newlines, no brackets,
# bounded length.
PARTIAL_PATTERN = re.compile(r"[\w .\-]{0,64}")


class Key(str, Enum):
    UP = "up"
    DOWN = "down"
    ENTER = "enter"
    ESCAPE = "escape"


@dataclass(frozen=True)
class TextEdit:
    """Replace ``text[start:end]`` with ``new_text``."""

    start: int
    end: int
    new_text: str

    def apply(self, text: str) -> str:
        return text[: self.start] + self.new_text + text[self.end :]

    @property
    def cursor(self) -> int:
        """Cursor offset just after the inserted text."""
        return self.start + len(self.new_text)


@dataclass(frozen=True)
class KeyResult:
    handled: bool
    closed: bool = False
    edit: TextEdit | None = None


def find_open_mention(text: str, cursor: int) -> tuple[int, str] | None:
    """Locate the unclosed ``[@`` token the cursor is in.

    Returns (marker offset, partial) or None if the cursor is not inside an
    open mention on its line, or the mention is already closed further on.
    """
    cursor = max(0, min(cursor, len(text)))
    line_start = text.rfind("\n", 0, cursor) + 1
    segment = text[line_start:cursor]
    idx = segment.rfind(OPEN_MARKER)
    if idx == -1:
        return None
    partial = segment[idx + len(OPEN_MARKER) :]
    if CLOSE_MARKER in partial:
        return None
    if not PARTIAL_PATTERN.fullmatch(partial):
        return None

    # A token already closed after the cursor is being edited, not typed.
    line_end = text.find("\n", cursor)
    rest = text[cursor : len(text) if line_end == -1 else line_end]
    tail = PARTIAL_PATTERN.match(rest)
    if tail is not None and rest.startswith(CLOSE_MARKER, tail.end()):
        return None
    return line_start + idx, partial


def _matches(needle: str, name: str) -> bool:
    # First character anchors the match; the rest must follow in order.
    if not needle:
        return True
    if not name.startswith(needle[0]):
        return False
    pos = 1
    for ch in needle[1:]:
        pos = name.find(ch, pos)
        if pos == -1:
            return False
        pos += 1
    return True


def compute_candidates(partial: str, known: Iterable[str]) -> list[str]:
    """Case-insensitive prefix filter that keeps the original order.

    The first typed character must start the name; later characters may be
    spread out, so ``ap`` offers both ``apple`` and ``alpha``. This is looser
    than a strict prefix: ``ae`` also offers ``apple`` and ``alphabet``.
    """
    needle = partial.casefold()
    return [name for name in known if _matches(needle, name.casefold())]


@dataclass
class SuggestionEngine:
    """Suggestion state for one note and one in-progress mention token."""

    candidates: list[str] = field(default_factory=list)
    selected_index: int | None = None
    anchor: int | None = None  # offset of the open marker
    cursor: int | None = None
    partial: str | None = None

    @property
    def is_open(self) -> bool:
        return self.anchor is not None

    def reset(self) -> None:
        self.candidates = []
        self.selected_index = None
        self.anchor = None
        self.cursor = None
        self.partial = None

    def on_text_changed(self, cursor: int, text: str) -> str | None:
        """Re-scan after a keystroke or cursor move.

        Returns the partial identifier, or None (and resets) when the
        trigger context is lost.
        """
        found = find_open_mention(text, cursor)
        if found is None:
            self.reset()
            return None
        anchor, partial = found
        if partial != self.partial or anchor != self.anchor:
            self.selected_index = None
        self.anchor, self.partial, self.cursor = anchor, partial, cursor
        return partial

    def update(self, cursor: int, text: str, known: Iterable[str]) -> list[str]:
        """Re-scan and refresh the candidate list."""
        partial = self.on_text_changed(cursor, text)
        if partial is None:
            return []
        self.candidates = compute_candidates(partial, known)
        if self.selected_index is not None and self.selected_index >= len(self.candidates):
            self.selected_index = len(self.candidates) - 1 if self.candidates else None
        return self.candidates

    @property
    def selected(self) -> str | None:
        if self.selected_index is None:
            return None
        return self.candidates[self.selected_index]

    def press(self, key: Key) -> KeyResult:
        """Apply one navigation key. Selection is clamped, never wrapped."""
        if not self.is_open:
            return KeyResult(handled=False)

        if key is Key.DOWN:
            if self.candidates:
                if self.selected_index is None:
                    self.selected_index = 0
                else:
                    self.selected_index = min(self.selected_index + 1, len(self.candidates) - 1)
            return KeyResult(handled=True)

        if key is Key.UP:
            if self.candidates:
                if self.selected_index is None:
                    self.selected_index = 0
                else:
                    self.selected_index = max(self.selected_index - 1, 0)
            return KeyResult(handled=True)

        if key is Key.ENTER:
            edit = None
            if self.selected is not None and self.anchor is not None and self.cursor is not None:
                edit = TextEdit(self.anchor, self.cursor, format_mention(self.selected))
            self.reset()
            return KeyResult(handled=True, closed=True, edit=edit)

        # Escape
        self.reset()
        return KeyResult(handled=True, closed=True)
