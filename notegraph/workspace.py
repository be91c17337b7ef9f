"""
The note session: loaded notes, the directory binding, and the version log.

The save flow is ordered as

1. append the live text to the version log and persist the log,
2. resolve a file identity if the note has none,
3. write the file, or hand the text to the download fallback,
4. recompute the mention graph and notify subscribers.

The graph is also recomputed after every live edit, so it tracks memory
state rather than what is on disk.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from .config import Settings
from .errors import StoreError, UserCancelled, WriteError
from .history import VersionLog, VersionStore
from .identity import NamePrompt, resolve, strip_extension
from .models import Counts, DirectoryBinding, FileRef, Graph, NoteRecord, VersionEntry
from .store import BindingState, DirectoryStore, DownloadFallback, FolderPicker
from .suggest import SuggestionEngine, TextEdit
from .vault.graph import build_graph, compute_counts, graph_payload
from .vault.loader import load_notes

logger = logging.getLogger(__name__)

GraphSink = Callable[[dict], None]


class SaveOutcome(str, Enum):
    SAVED = "saved"
    DOWNLOADED = "downloaded"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class SaveResult:
    outcome: SaveOutcome
    entry: VersionEntry
    path: Path | None = None  # written note file or downloaded copy
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


class Workspace:
    """One editing session over at most one bound directory."""

    def __init__(
        self,
        settings: Settings,
        *,
        store: DirectoryStore | None = None,
        version_store: VersionStore | None = None,
        binding_state: BindingState | None = None,
        downloads: DownloadFallback | None = None,
    ):
        self.settings = settings
        self.store = store or DirectoryStore(settings.extension)
        self.version_store = version_store or VersionStore(settings.versions_path)
        self.binding_state = binding_state or BindingState(settings.binding_path)
        self.downloads = downloads or DownloadFallback(settings.downloads_dir)

        self.versions: VersionLog = self.version_store.load()
        self.binding: DirectoryBinding | None = None
        self.notes: list[NoteRecord] = []

        self._graph = Graph()
        self._counts: dict[str, Counts] = {}
        self._sinks: list[GraphSink] = []
        self._last_key_millis = 0
        self.remembered = False

    # --- binding ---

    def bind(self, picker: FolderPicker, *, remember: bool = True) -> DirectoryBinding:
        """Grant a directory, replacing any current binding, and load its notes.

        Raises UserCancelled or PermissionDenied; the current binding is
        left untouched in that case. If the binding cannot be remembered it
        stays active for this session and ``remembered`` is False.
        """
        binding = self.store.request_binding(picker)
        self._activate(binding)
        self.remembered = False
        if remember:
            try:
                self.binding_state.persist(binding)
                self.remembered = True
            except OSError as e:
                logger.error("Could not remember %s: %s", binding.display_name, e)
        return binding

    def restore_binding(self) -> DirectoryBinding | None:
        """Re-activate the remembered directory if it is still read-write."""
        binding = self.binding_state.restore()
        if binding is None:
            return None
        self._activate(binding)
        self.remembered = True
        return binding

    def _activate(self, binding: DirectoryBinding) -> None:
        if self.binding is not None:
            self.unbind(forget=False)
        self.binding = binding
        self.load_notes()

    def unbind(self, *, forget: bool = True) -> int:
        """Clear the binding and unload its notes. Files are never deleted.

        Returns the number of notes unloaded.
        """
        if self.binding is None:
            return 0
        self.binding.revoke()
        before = len(self.notes)
        self.notes = [n for n in self.notes if n.backing_ref is None]
        unloaded = before - len(self.notes)
        logger.info("Unbound %s, unloaded %d notes", self.binding.display_name, unloaded)
        self.binding = None
        if forget:
            self.binding_state.forget()
        self.recompute()
        return unloaded

    # --- notes ---

    def load_notes(self) -> list[NoteRecord]:
        """(Re)load every note file of the bound directory."""
        if self.binding is None:
            return []
        loaded = load_notes(self.store, self.binding)
        self.notes = [n for n in self.notes if n.backing_ref is None] + loaded
        self.recompute()
        return loaded

    def load_note(self, name: str) -> NoteRecord | None:
        """Hydrate one note file that appeared after the folder was loaded.

        Notes already in memory keep their live text. Raises ReadError or
        WriteError if the file cannot be opened or read.
        """
        if self.binding is None or not self.store.is_note_name(name):
            return None
        note = self.find(name)
        if note is not None:
            return note
        ref = self.store.create_or_open(self.binding, name, create=False)
        note = NoteRecord(
            content=self.store.read_text(self.binding, ref),
            history_key=name,
            identity=strip_extension(name, self.settings.extension),
            backing_ref=ref,
        )
        self.notes.append(note)
        self.recompute()
        return note

    def _synthetic_key(self) -> str:
        millis = max(int(time.time() * 1000), self._last_key_millis + 1)
        taken = {n.history_key for n in self.notes}
        while f"note-{millis}" in taken or f"note-{millis}" in self.versions:
            millis += 1
        self._last_key_millis = millis
        return f"note-{millis}"

    def new_note(self, text: str | None = None) -> NoteRecord:
        note = NoteRecord(
            content=self.settings.default_text if text is None else text,
            history_key=self._synthetic_key(),
        )
        self.notes.append(note)
        self.recompute()
        return note

    def find(self, name: str) -> NoteRecord | None:
        """Find a loaded note by identity, with or without extension."""
        identity = strip_extension(name, self.settings.extension)
        for note in self.notes:
            if note.identity == identity:
                return note
        return None

    def identities(self) -> list[str]:
        return [n.identity for n in self.notes if n.identity is not None]

    def set_content(self, note: NoteRecord, text: str) -> None:
        note.content = text
        self.recompute()

    def apply_edit(self, note: NoteRecord, edit: TextEdit) -> str:
        """Apply a suggestion edit to the note's live text."""
        self.set_content(note, edit.apply(note.content))
        return note.content

    def suggestions(self, note: NoteRecord, cursor: int, engine: SuggestionEngine) -> list[str]:
        """Refresh ``engine`` for the cursor in ``note`` against the other loaded notes."""
        known = [name for name in self.identities() if name != note.identity]
        return engine.update(cursor, note.content, known)

    def close_note(self, note: NoteRecord) -> None:
        self.notes.remove(note)
        self.recompute()

    def delete_note(self, note: NoteRecord) -> None:
        """Close the note and remove its backing file, if any.

        Raises WriteError if the file could not be removed; the note stays
        loaded in that case.
        """
        if note.backing_ref is not None:
            if self.binding is None:
                raise WriteError(f"{note.backing_ref.name}: no directory is bound.")
            self.store.check(self.binding, note.backing_ref)
            self.store.remove(self.binding, note.backing_ref.name)
        self.close_note(note)

    # --- versions ---

    def record_version(self, note: NoteRecord, warnings: list[str] | None = None) -> VersionEntry:
        """Append the live text to the version log and persist the log."""
        entry = self.versions.append(note.history_key, note.content)
        self._persist_versions(warnings)
        return entry

    def _persist_versions(self, warnings: list[str] | None = None) -> None:
        try:
            self.version_store.save(self.versions)
        except OSError as e:
            # The entry is still in memory; report and carry on with the save.
            logger.error("Could not persist version log: %s", e)
            if warnings is not None:
                warnings.append(f"Version history not persisted: {e}")

    def history(self, note: NoteRecord) -> list[VersionEntry]:
        return self.versions.list(note.history_key)

    def replay(self, note: NoteRecord, index: int) -> VersionEntry | None:
        """Put a past version back into the live text (not saved)."""
        entry = self.versions.get(note.history_key, index)
        if entry is not None:
            self.set_content(note, entry.text)
        return entry

    # --- save ---

    def save(
        self, note: NoteRecord, prompt: NamePrompt, proposed: str | None = None
    ) -> SaveResult:
        """Save the note; see the module docstring for the ordering.

        ``proposed`` is tried as the file name before prompting.
        """
        warnings: list[str] = []
        entry = self.record_version(note, warnings)

        if self.binding is None:
            try:
                filename = resolve(proposed, [], prompt, self.settings.extension)
            except UserCancelled as e:
                return SaveResult(SaveOutcome.CANCELLED, entry, error=str(e), warnings=warnings)
            return self._download(note, entry, filename, warnings)

        binding = self.binding
        try:
            if note.backing_ref is None:
                existing = self.store.list_names(binding)
                filename = resolve(proposed, existing, prompt, self.settings.extension)
                ref = self.store.create_or_open(binding, filename)
                try:
                    self.store.write_text(binding, ref, note.content)
                except StoreError:
                    self._discard_created(binding, filename)
                    raise
                self._assign_identity(note, ref)
            else:
                ref = note.backing_ref
                self.store.write_text(binding, ref, note.content)
        except UserCancelled as e:
            return SaveResult(SaveOutcome.CANCELLED, entry, error=str(e), warnings=warnings)
        except StoreError as e:
            logger.error("Write error: %s", e)
            warnings.append(f"Failed to save to folder ({e}); downloaded instead.")
            fallback_name = f"note-{int(time.time() * 1000)}{self.settings.extension}"
            return self._download(note, entry, fallback_name, warnings)

        self.recompute()
        return SaveResult(SaveOutcome.SAVED, entry, path=binding.path / ref.name, warnings=warnings)

    def _assign_identity(self, note: NoteRecord, ref: FileRef) -> None:
        old_key = note.history_key
        note.backing_ref = ref
        note.identity = strip_extension(ref.name, self.settings.extension)
        note.history_key = ref.name
        self.versions.rekey(old_key, ref.name)
        self._persist_versions()

    def _discard_created(self, binding: DirectoryBinding, filename: str) -> None:
        try:
            self.store.remove(binding, filename)
        except StoreError as e:
            logger.warning("Could not remove empty %s after failed write: %s", filename, e)

    def _download(
        self, note: NoteRecord, entry: VersionEntry, filename: str, warnings: list[str]
    ) -> SaveResult:
        try:
            path = self.downloads.deliver(note.content, filename)
        except WriteError as e:
            logger.error("Download fallback failed: %s", e)
            return SaveResult(SaveOutcome.FAILED, entry, error=str(e), warnings=warnings)
        self.recompute()
        return SaveResult(SaveOutcome.DOWNLOADED, entry, path=path, warnings=warnings)

    # --- graph ---

    def subscribe(self, sink: GraphSink) -> None:
        self._sinks.append(sink)

    def recompute(self) -> Graph:
        """Rebuild the graph and counts from scratch and notify subscribers."""
        self._graph = build_graph(self.notes, self.settings.extension)
        self._counts = compute_counts(self._graph)
        if self._sinks:
            payload = graph_payload(self._graph, self.notes)
            for sink in self._sinks:
                try:
                    sink(payload)
                except Exception as e:
                    logger.warning("Graph subscriber failed: %s", e)
        return self._graph

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def counts(self) -> dict[str, Counts]:
        return self._counts

    def payload(self) -> dict:
        return graph_payload(self._graph, self.notes)
