"""LSP-facing features and request handlers."""

from . import server

__all__ = [
    "server",
]
