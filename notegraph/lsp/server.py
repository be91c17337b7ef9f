"""
LSP server implementation for notegraph folders.

Provides:
- Live mention completion driven by the suggestion engine
- Hover info for mentions (counts, preview, backlinks)
- Inert-mention diagnostics on open and change
- Version history entries on save
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .. import __version__
from ..config import Settings
from ..errors import NotegraphError, StoreError
from ..models import NoteRecord, VersionEntry
from ..store.directory import has_read_write
from ..suggest import SuggestionEngine
from ..vault.parser import format_mention, iter_mentions, offset_to_position, position_to_offset
from ..workspace import Workspace
from .diagnostics import check_note
from .hover import get_hover_info

logger = logging.getLogger(__name__)

GRAPH_NOTIFICATION = "notegraph/graph"


class NotegraphLanguageServer(LanguageServer):
    """Language server over one bound notes folder."""

    def __init__(self, settings: Settings, directory: Path | None = None):
        super().__init__(name="notegraph-lsp", version=__version__)
        self.settings = settings
        self.notes = Workspace(settings)
        self._engines: dict[str, SuggestionEngine] = {}
        if directory is not None:
            self.bind_folder(directory)

    def bind_folder(self, path: Path) -> bool:
        """Bind ``path`` for this session without remembering it."""
        try:
            self.notes.bind(lambda: path, remember=False)
        except NotegraphError as e:
            logger.warning(f"Failed to bind {path}: {e}")
            return False
        return True

    def note_for_uri(self, uri: str) -> NoteRecord | None:
        """Map a document to its loaded note, hydrating files created since binding."""
        binding = self.notes.binding
        if binding is None:
            return None
        path = uri_to_path(uri)
        if path.parent.resolve() != binding.path or not self.notes.store.is_note_name(path.name):
            return None
        note = self.notes.find(path.name)
        if note is None and path.exists():
            try:
                note = self.notes.load_note(path.name)
            except StoreError as e:
                logger.warning(f"Failed to load {path.name}: {e}")
        return note

    def engine_for(self, uri: str) -> SuggestionEngine:
        return self._engines.setdefault(uri, SuggestionEngine())

    def forget(self, uri: str) -> None:
        self._engines.pop(uri, None)


def uri_to_path(uri: str) -> Path:
    """Convert a file URI to a Path."""
    parsed = urlparse(uri)
    # Handle Windows paths
    path = unquote(parsed.path)
    if path.startswith("/") and len(path) > 2 and path[2] == ":":
        path = path[1:]  # Remove leading slash for Windows paths
    return Path(path)


def completion_items(
    server: NotegraphLanguageServer, uri: str, text: str, position: lsp.Position
) -> lsp.CompletionList | None:
    """Completion for the open mention token under the cursor, if any."""
    cursor = position_to_offset(text, position.line, position.character)
    note = server.note_for_uri(uri)
    engine = server.engine_for(uri)
    if note is not None:
        if note.content != text:
            server.notes.set_content(note, text)
        candidates = server.notes.suggestions(note, cursor, engine)
    else:
        candidates = engine.update(cursor, text, server.notes.identities())
    if not engine.is_open:
        return None

    start_line, start_col = offset_to_position(text, engine.anchor)
    edit_range = lsp.Range(
        start=lsp.Position(line=start_line, character=start_col),
        end=position,
    )
    limit = server.settings.suggestion_limit
    counts = server.notes.counts

    items = []
    for idx, name in enumerate(candidates[:limit]):
        c = counts.get(name)
        items.append(
            lsp.CompletionItem(
                label=name,
                kind=lsp.CompletionItemKind.Reference,
                detail=f"send {c.send if c else 0} · receive {c.receive if c else 0}",
                sort_text=f"{idx:05d}",
                filter_text=f"[@{name}",
                text_edit=lsp.TextEdit(range=edit_range, new_text=format_mention(name)),
            )
        )
    return lsp.CompletionList(is_incomplete=len(candidates) > limit, items=items)


def create_server(settings: Settings, directory: Path | None = None) -> NotegraphLanguageServer:
    """Create and configure the LSP server."""
    server = NotegraphLanguageServer(settings, directory)

    @server.feature(lsp.INITIALIZE)
    def initialize(params: lsp.InitializeParams) -> None:
        """Bind the workspace root when no folder was given."""
        if server.notes.binding is not None:
            return
        if params.root_uri:
            root = uri_to_path(params.root_uri)
            if has_read_write(root):
                server.bind_folder(root)
                return
        if server.notes.restore_binding() is None:
            logger.warning("No notes folder bound; saves will not be tracked")

    @server.feature(lsp.INITIALIZED)
    def initialized(params: lsp.InitializedParams) -> None:
        server.notes.subscribe(lambda payload: publish_graph(server, payload))

    @server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
    def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
        sync_document(server, params.text_document.uri, params.text_document.text)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
        """Live edits update the graph before anything is saved."""
        document = server.workspace.get_text_document(params.text_document.uri)
        sync_document(server, params.text_document.uri, document.source)

    @server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
    def did_save(params: lsp.DidSaveTextDocumentParams) -> None:
        """The editor wrote the file; record the version."""
        document = server.workspace.get_text_document(params.text_document.uri)
        record_save(server, params.text_document.uri, document.source)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
        server.forget(params.text_document.uri)

    @server.feature(
        lsp.TEXT_DOCUMENT_COMPLETION,
        lsp.CompletionOptions(trigger_characters=["@"]),
    )
    def completion(params: lsp.CompletionParams) -> lsp.CompletionList | None:
        document = server.workspace.get_text_document(params.text_document.uri)
        return completion_items(server, params.text_document.uri, document.source, params.position)

    @server.feature(lsp.TEXT_DOCUMENT_HOVER)
    def hover(params: lsp.HoverParams) -> lsp.Hover | None:
        """Provide hover information for mentions."""
        document = server.workspace.get_text_document(params.text_document.uri)
        lines = document.source.split("\n")
        if params.position.line >= len(lines):
            return None

        line = lines[params.position.line]
        col = params.position.character
        for mention in iter_mentions(line):
            if mention.start <= col <= mention.end:
                return lsp.Hover(
                    contents=lsp.MarkupContent(
                        kind=lsp.MarkupKind.Markdown,
                        value=get_hover_info(server.notes, mention.target),
                    ),
                    range=lsp.Range(
                        start=lsp.Position(line=params.position.line, character=mention.start),
                        end=lsp.Position(line=params.position.line, character=mention.end),
                    ),
                )
        return None

    return server


def sync_document(server: NotegraphLanguageServer, uri: str, text: str) -> None:
    """Push the editor's text into the live note and publish diagnostics."""
    note = server.note_for_uri(uri)
    if note is None:
        return
    if note.content != text:
        server.notes.set_content(note, text)

    severity = {
        "error": lsp.DiagnosticSeverity.Error,
        "warning": lsp.DiagnosticSeverity.Warning,
        "info": lsp.DiagnosticSeverity.Information,
    }
    diagnostics = [
        lsp.Diagnostic(
            range=lsp.Range(
                start=lsp.Position(line=d.line, character=d.column),
                end=lsp.Position(line=d.line, character=d.column + d.length),
            ),
            message=d.message,
            severity=severity.get(d.severity, lsp.DiagnosticSeverity.Information),
            source="notegraph",
            code=d.rule_id,
        )
        for d in check_note(note, server.notes.identities(), server.settings.extension)
    ]
    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


def record_save(server: NotegraphLanguageServer, uri: str, text: str) -> VersionEntry | None:
    """Append the saved text of a folder note to its version history."""
    note = server.note_for_uri(uri)
    if note is None:
        return None
    server.notes.set_content(note, text)
    entry = server.notes.record_version(note)
    logger.info(f"Recorded version {len(server.notes.history(note))} of {note.display_name}")
    return entry


def publish_graph(server: NotegraphLanguageServer, payload: dict) -> None:
    """Push a graph snapshot to the client for visualization."""
    server.protocol.notify(GRAPH_NOTIFICATION, payload)


def start_server(settings: Settings, directory: Path | None = None, transport: str = "stdio") -> None:
    """Start the LSP server.

    Args:
        settings: Loaded notegraph settings
        directory: Notes folder; defaults to the workspace root or the remembered folder
        transport: Transport method ("stdio" or "tcp")
    """
    server = create_server(settings, directory)

    if transport == "stdio":
        server.start_io()
    else:
        # TCP transport for debugging
        server.start_tcp("localhost", 2087)
