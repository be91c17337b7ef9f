"""Hydrate notes from the bound directory."""

from __future__ import annotations

import logging

from ..errors import ReadError
from ..identity import strip_extension
from ..models import DirectoryBinding, NoteRecord
from ..store.directory import DirectoryStore

logger = logging.getLogger(__name__)


def load_notes(store: DirectoryStore, binding: DirectoryBinding) -> list[NoteRecord]:
    """Load one NoteRecord per note file.

    Files that fail to read are logged and skipped; the rest still load.
    Notes are returned sorted by name since directory order is unstable.
    """
    notes: list[NoteRecord] = []
    for name, ref in store.list_text_entries(binding):
        try:
            content = store.read_text(binding, ref)
        except ReadError as e:
            # Log error but continue loading
            logger.warning("Skipping %s: %s", name, e)
            continue
        notes.append(
            NoteRecord(
                content=content,
                history_key=name,
                identity=strip_extension(name, store.extension),
                backing_ref=ref,
            )
        )
    notes.sort(key=lambda n: n.history_key)
    return notes
