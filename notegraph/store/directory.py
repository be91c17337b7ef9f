"""Capability-scoped access to the user-granted notes directory.

Every operation takes the DirectoryBinding it runs against. A binding that
has been revoked, or a FileRef minted under a different binding, fails
with StaleBindingError before the filesystem is touched.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Iterator

from ..errors import PermissionDenied, ReadError, StaleBindingError, UserCancelled, WriteError
from ..models import DirectoryBinding, FileRef

logger = logging.getLogger(__name__)

# Folder-selection capability: returns the chosen directory, or None on cancel.
FolderPicker = Callable[[], Path | None]


def has_read_write(path: Path) -> bool:
    """Check live read-write permission on a directory."""
    return path.is_dir() and os.access(path, os.R_OK | os.W_OK | os.X_OK)


class DirectoryStore:
    """Enumerate, read, create, write and remove note files in a bound directory."""

    def __init__(self, extension: str = ".txt"):
        self.extension = extension

    # --- binding ---

    def request_binding(self, picker: FolderPicker) -> DirectoryBinding:
        """Ask the picker for a directory and confirm read-write access.

        Raises:
            UserCancelled: the picker returned nothing
            PermissionDenied: the directory is missing or not read-write
        """
        chosen = picker()
        if chosen is None:
            raise UserCancelled("Folder selection cancelled.")

        path = Path(chosen).expanduser()
        if not path.is_dir():
            raise PermissionDenied(f"{path} is not a directory.")
        if not has_read_write(path):
            raise PermissionDenied(f"No read-write permission for {path}.")

        path = path.resolve()
        logger.info("Bound notes directory %s", path)
        return DirectoryBinding(path=path, display_name=path.name or str(path))

    def check(self, binding: DirectoryBinding, ref: FileRef | None = None) -> None:
        """Raise StaleBindingError unless binding (and ref) are still live."""
        if binding.revoked:
            raise StaleBindingError(f"Directory binding for {binding.display_name} was cleared.")
        if ref is not None and ref.token != binding.token:
            raise StaleBindingError(f"{ref.name} belongs to a previous directory binding.")

    def is_note_name(self, name: str) -> bool:
        return name.endswith(self.extension) and len(name) > len(self.extension)

    # --- enumeration and reads ---

    def list_text_entries(self, binding: DirectoryBinding) -> Iterator[tuple[str, FileRef]]:
        """Yield (name, ref) for every note file. Order is not stable."""
        self.check(binding)
        try:
            entries = os.scandir(binding.path)
        except OSError as e:
            raise ReadError(f"Cannot list {binding.path}: {e}") from e

        with entries:
            for entry in entries:
                if entry.name.startswith("."):
                    continue
                if not self.is_note_name(entry.name):
                    continue
                try:
                    if not entry.is_file():
                        continue
                except OSError:
                    continue
                yield entry.name, binding.ref(entry.name)

    def list_names(self, binding: DirectoryBinding) -> set[str]:
        """All regular file names in the directory, note files or not."""
        self.check(binding)
        try:
            return {p.name for p in binding.path.iterdir() if p.is_file()}
        except OSError as e:
            raise ReadError(f"Cannot list {binding.path}: {e}") from e

    def read_text(self, binding: DirectoryBinding, ref: FileRef) -> str:
        self.check(binding, ref)
        try:
            return (binding.path / ref.name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(f"Cannot read {ref.name}: {e}") from e

    # --- writes ---

    def create_or_open(self, binding: DirectoryBinding, name: str, create: bool = True) -> FileRef:
        """Return a ref for ``name``.

        With ``create`` semantics the file is created empty and the call
        fails if it already exists; collisions are resolved upstream.
        """
        self.check(binding)
        path = binding.path / name
        if create:
            try:
                with path.open("x", encoding="utf-8"):
                    pass
            except FileExistsError as e:
                raise WriteError(f"{name} already exists.") from e
            except OSError as e:
                raise WriteError(f"Cannot create {name}: {e}") from e
        elif not path.is_file():
            raise WriteError(f"{name} does not exist.")
        return binding.ref(name)

    def write_text(self, binding: DirectoryBinding, ref: FileRef, text: str) -> None:
        """Overwrite the file with ``text``.

        Write atomically (write to temp, then replace). On failure the temp
        file is removed and the original content is left as it was.
        """
        self.check(binding, ref)
        target = binding.path / ref.name
        fd = None
        temp_path = None
        try:
            fd, temp_name = tempfile.mkstemp(dir=binding.path, prefix=f".{ref.name}.", suffix=".tmp")
            temp_path = Path(temp_name)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                fd = None
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            if target.exists():
                shutil.copymode(target, temp_path)
            os.replace(temp_path, target)
            temp_path = None
        except OSError as e:
            raise WriteError(f"Cannot write {ref.name}: {e}") from e
        finally:
            if fd is not None:
                os.close(fd)
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)

    def remove(self, binding: DirectoryBinding, name: str) -> None:
        self.check(binding)
        try:
            (binding.path / name).unlink()
        except OSError as e:
            raise WriteError(f"Cannot remove {name}: {e}") from e
