"""
Language server for editing notes.

This module provides:
- Completion of note names after the [@ mention marker
- Hover information with send/receive counts
- Diagnostics for inert mentions (no such note)
- A version-log entry on every save
"""

from .server import create_server, start_server

__all__ = ["create_server", "start_server"]
