"""
Durable storage for the version log.

Storage format: one JSON object ``{key: [{"text": ..., "savedAt": ...}]}``
in ``versions.json`` under the state directory, replaced atomically on
every save so a crash never leaves a half-written history.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..models import VersionEntry
from .log import VersionLog

logger = logging.getLogger(__name__)


class VersionStore:
    def __init__(self, path: Path):
        self.path = path

    def load(self) -> VersionLog:
        """Read the log; unreadable files or entries are skipped with a warning."""
        if not self.path.exists():
            return VersionLog()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable version log %s: %s", self.path, e)
            return VersionLog()
        if not isinstance(data, dict):
            logger.warning("Ignoring version log %s: expected an object", self.path)
            return VersionLog()

        entries: dict[str, list[VersionEntry]] = {}
        for key, raw_entries in data.items():
            if not isinstance(raw_entries, list):
                continue
            for raw in raw_entries:
                try:
                    entries.setdefault(key, []).append(VersionEntry.from_dict(raw))
                except (KeyError, TypeError, ValueError):
                    logger.warning("Skipping malformed version entry under %s", key)
        return VersionLog(entries)

    def save(self, log: VersionLog) -> None:
        """Write the whole log (write to temp, then rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {key: [e.to_dict() for e in entries] for key, entries in log}
        temp_path = self.path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        temp_path.replace(self.path)
