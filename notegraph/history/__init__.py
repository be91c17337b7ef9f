"""
Per-note version history.

Every explicit save appends an immutable snapshot of the note's text. The
history lives outside the notes directory, so it survives edits, deletes
and rebinding of the directory itself.

- log: in-memory append-only sequences keyed by note
- store: durable JSON mapping in the state directory
"""

from .log import VersionLog
from .store import VersionStore

__all__ = ["VersionLog", "VersionStore"]
