"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from notegraph.config import Settings
from notegraph.workspace import Workspace


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with state and downloads isolated under tmp_path."""
    return Settings(
        state_dir=tmp_path / "state",
        downloads_dir=tmp_path / "downloads",
    )


@pytest.fixture
def notes_dir(tmp_path: Path) -> Path:
    """An empty, writable notes folder."""
    path = tmp_path / "notes"
    path.mkdir()
    return path


@pytest.fixture
def workspace(settings: Settings, notes_dir: Path) -> Workspace:
    """Workspace bound to notes_dir."""
    ws = Workspace(settings)
    ws.bind(lambda: notes_dir)
    return ws


def _write_note(folder: Path, name: str, text: str) -> Path:
    path = folder / f"{name}.txt"
    path.write_text(text, encoding="utf-8")
    return path


def _answers(*values: str | None):
    """Prompt stub returning the given answers in order and recording messages."""
    remaining = list(values)
    asked: list[str] = []

    def prompt(message: str) -> str | None:
        asked.append(message)
        return remaining.pop(0) if remaining else None

    prompt.asked = asked  # type: ignore[attr-defined]
    return prompt


@pytest.fixture
def write_note():
    """Write a note file: write_note(folder, name, text)."""
    return _write_note


@pytest.fixture
def answers():
    """Prompt factory: answers("a", None) answers "a" then cancels."""
    return _answers
