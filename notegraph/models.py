"""Data models for notes, bindings, versions and the mention graph."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

PLACEHOLDER_NAME = "New Note"


@dataclass
class DirectoryBinding:
    """The live capability for the currently selected storage directory.

    A workspace holds at most one. Once revoked, every FileRef minted
    under it is stale.
    """

    path: Path
    display_name: str
    token: str = field(default_factory=lambda: uuid.uuid4().hex)
    revoked: bool = False

    def revoke(self) -> None:
        self.revoked = True

    def ref(self, name: str) -> "FileRef":
        return FileRef(name=name, token=self.token)


@dataclass(frozen=True)
class FileRef:
    """Opaque handle to a note file, valid only under the binding that minted it."""

    name: str  # file name including extension
    token: str  # DirectoryBinding.token


@dataclass
class NoteRecord:
    """One in-memory note."""

    content: str
    history_key: str  # Version Log key; identity file name once saved
    identity: str | None = None  # file name without extension
    backing_ref: FileRef | None = None

    @property
    def display_name(self) -> str:
        return self.identity if self.identity is not None else PLACEHOLDER_NAME

    @property
    def is_saved(self) -> bool:
        return self.backing_ref is not None


@dataclass(frozen=True)
class VersionEntry:
    """One immutable snapshot of a note's text."""

    text: str
    saved_at: datetime

    def to_dict(self) -> dict:
        return {"text": self.text, "savedAt": self.saved_at.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "VersionEntry":
        return cls(text=str(data["text"]), saved_at=datetime.fromisoformat(data["savedAt"]))


@dataclass(frozen=True)
class MentionEdge:
    source: str
    target: str


@dataclass
class Counts:
    send: int = 0
    receive: int = 0


@dataclass
class Graph:
    """Mention graph over loaded notes. Recomputed, never patched."""

    nodes: list[str] = field(default_factory=list)  # identities, in note order
    edges: list[MentionEdge] = field(default_factory=list)

    def out_edges(self, name: str) -> list[MentionEdge]:
        return [e for e in self.edges if e.source == name]

    def in_edges(self, name: str) -> list[MentionEdge]:
        return [e for e in self.edges if e.target == name]
