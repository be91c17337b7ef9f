"""Durable reference to the last-granted notes directory."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..models import DirectoryBinding
from .directory import has_read_write

logger = logging.getLogger(__name__)


class BindingState:
    """Remembers exactly one directory binding across sessions.

    Storage format: ``{"path": ..., "displayName": ...}`` in a small JSON
    file inside the state directory.
    """

    def __init__(self, path: Path):
        self.path = path

    def persist(self, binding: DirectoryBinding) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {"path": str(binding.path), "displayName": binding.display_name}
        temp_path = self.path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        temp_path.replace(self.path)

    def restore(self) -> DirectoryBinding | None:
        """Rebuild the remembered binding if it still has live permission.

        Returns None when nothing is remembered or the grant went stale; the
        caller must then prompt for a folder again.
        """
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            directory = Path(data["path"])
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable binding state %s: %s", self.path, e)
            return None

        if not has_read_write(directory):
            logger.warning("Remembered directory %s is no longer read-write", directory)
            return None

        return DirectoryBinding(
            path=directory,
            display_name=str(data.get("displayName") or directory.name),
        )

    def forget(self) -> None:
        self.path.unlink(missing_ok=True)
