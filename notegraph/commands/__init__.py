"""Command implementations behind the ``notegraph`` CLI."""
