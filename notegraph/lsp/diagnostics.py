"""
Mention diagnostics for a single note.

Inert mentions are not errors: they are often notes that simply do not
exist yet. They are reported at information level so the editor can show
them without nagging.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..models import NoteRecord
from ..vault.graph import inert_mentions
from ..vault.parser import offset_to_position


@dataclass
class MentionDiagnostic:
    """A single diagnostic for LSP."""

    line: int
    column: int
    length: int
    message: str
    severity: str  # "error", "warning", "info"
    rule_id: str


def check_note(
    note: NoteRecord, identities: Iterable[str], extension: str = ".txt"
) -> list[MentionDiagnostic]:
    """Report every mention in ``note`` that does not become an edge."""
    diagnostics: list[MentionDiagnostic] = []
    for mention in inert_mentions(note, identities, extension):
        line, column = offset_to_position(note.content, mention.start)
        if mention.target == note.identity:
            message = "A note cannot mention itself; this mention is ignored."
            rule_id = "self-mention"
        else:
            message = f'No note named "{mention.target}"; this mention is inert until it exists.'
            rule_id = "inert-mention"
        diagnostics.append(
            MentionDiagnostic(
                line=line,
                column=column,
                length=mention.end - mention.start,
                message=message,
                severity="info",
                rule_id=rule_id,
            )
        )
    return diagnostics
