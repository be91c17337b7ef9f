"""Note file storage: bound directory, remembered binding, download fallback."""

from .directory import DirectoryStore, FolderPicker, has_read_write
from .download import DownloadFallback
from .state import BindingState

__all__ = [
    "DirectoryStore",
    "FolderPicker",
    "has_read_write",
    "DownloadFallback",
    "BindingState",
]
