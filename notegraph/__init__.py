"""notegraph - versioned plain-text notes with a mention graph."""

__version__ = "0.1.0"
