"""Exception taxonomy for notegraph.

Every failure here is recoverable at the boundary where it happens: the
workspace turns write failures into a download, the loader skips unreadable
files, and commands report the rest to the user.
"""


class NotegraphError(Exception):
    """Base class for all notegraph errors."""


class PermissionDenied(NotegraphError):
    """The directory grant was refused, revoked, or lacks read-write access."""


class UserCancelled(NotegraphError):
    """An interactive prompt (folder picker, name prompt) was aborted."""


class StoreError(NotegraphError):
    """I/O failure against the bound directory."""


class ReadError(StoreError):
    """A note file could not be read."""


class WriteError(StoreError):
    """A note file could not be created, written or removed."""


class StaleBindingError(ReadError, WriteError):
    """An operation referenced a directory binding that has been revoked."""


class NameCollision(NotegraphError):
    """A proposed note name already exists in the bound directory."""

    def __init__(self, name: str):
        super().__init__(f'File name "{name}" already exists. Please enter a different name.')
        self.name = name


class ConfigError(NotegraphError, ValueError):
    """Raised when config values are invalid."""

    def __init__(self, errors: list[str]):
        super().__init__("Invalid configuration:\n" + "\n".join(f"  - {e}" for e in errors))
        self.errors = errors
