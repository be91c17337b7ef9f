"""Download fallback: export a single note as a standalone file."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import WriteError

logger = logging.getLogger(__name__)


class DownloadFallback:
    """Save-as of one note into the downloads directory.

    Existing files are never overwritten; a numbered suffix is added
    instead, the way browsers name repeated downloads.
    """

    def __init__(self, directory: Path):
        self.directory = directory

    def _free_path(self, filename: str) -> Path:
        candidate = self.directory / filename
        if not candidate.exists():
            return candidate
        stem, suffix = candidate.stem, candidate.suffix
        n = 1
        while True:
            candidate = self.directory / f"{stem} ({n}){suffix}"
            if not candidate.exists():
                return candidate
            n += 1

    def deliver(self, text: str, filename: str) -> Path:
        """Write ``text`` to a new file named after ``filename`` and return its path."""
        name = Path(filename).name
        if not name:
            raise WriteError(f"Invalid download name: {filename!r}")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            target = self._free_path(name)
            with target.open("x", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise WriteError(f"Download of {name} failed: {e}") from e
        logger.info("Downloaded note to %s", target)
        return target
