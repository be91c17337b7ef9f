"""Mention parsing for note text.

A mention is ``[@identifier]``: the open marker ``[@``, one or more
characters other than ``]``, and the close marker ``]``.
"""

import re
from dataclasses import dataclass

OPEN_MARKER = "[@"
CLOSE_MARKER = "]"

# Match [@target]; unterminated markers never match
MENTION_PATTERN = re.compile(r"\[@([^\]]+)\]")


@dataclass(frozen=True)
class Mention:
    """One mention occurrence with its span in the source text."""

    target: str
    start: int
    end: int


def iter_mentions(content: str) -> list[Mention]:
    """All mention occurrences, left to right, non-overlapping."""
    return [Mention(m.group(1), m.start(), m.end()) for m in MENTION_PATTERN.finditer(content)]


def extract_mentions(content: str) -> list[str]:
    """Extract all mention targets from content.

    Returns raw identifiers in order of appearance. Duplicates are kept,
    since every occurrence counts separately.
    """
    return MENTION_PATTERN.findall(content)


def format_mention(identity: str) -> str:
    return f"{OPEN_MARKER}{identity}{CLOSE_MARKER}"


def position_to_offset(content: str, line: int, character: int) -> int:
    """Convert a (line, column) position to an absolute offset into content."""
    lines = content.split("\n")
    if line >= len(lines):
        return len(content)
    offset = sum(len(l) + 1 for l in lines[:line])
    return offset + min(character, len(lines[line]))


def offset_to_position(content: str, offset: int) -> tuple[int, int]:
    before = content[:offset]
    line = before.count("\n")
    return line, offset - (before.rfind("\n") + 1)
