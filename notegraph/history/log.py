"""
Append-only version log.

Entries are never modified or deleted; the only structural change is
rekeying, which moves a note's whole sequence from its session-local key to
its file identity.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterator

from ..models import VersionEntry


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VersionLog:
    """Ordered snapshots per key. Index 0 is the oldest (``#1`` for display)."""

    def __init__(
        self,
        entries: dict[str, list[VersionEntry]] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._entries: dict[str, list[VersionEntry]] = {
            k: list(v) for k, v in (entries or {}).items()
        }
        self._clock = clock

    def append(self, key: str, text: str) -> VersionEntry:
        """Append a snapshot. The caller persists the log right after."""
        entry = VersionEntry(text=text, saved_at=self._clock())
        self._entries.setdefault(key, []).append(entry)
        return entry

    def list(self, key: str) -> list[VersionEntry]:
        return list(self._entries.get(key, []))

    def get(self, key: str, index: int) -> VersionEntry | None:
        entries = self._entries.get(key, [])
        if 0 <= index < len(entries):
            return entries[index]
        return None

    def latest(self, key: str) -> VersionEntry | None:
        entries = self._entries.get(key)
        return entries[-1] if entries else None

    def rekey(self, old: str, new: str) -> None:
        """Move every entry under ``old`` to ``new``.

        Entries already under ``new`` stay first; nothing is dropped.
        """
        if old == new:
            return
        moved = self._entries.pop(old, [])
        if moved:
            self._entries.setdefault(new, []).extend(moved)

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[tuple[str, list[VersionEntry]]]:
        for key, entries in self._entries.items():
            yield key, list(entries)

    def __len__(self) -> int:
        return sum(len(v) for v in self._entries.values())
