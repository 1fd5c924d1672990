"""Document preparation shared by the CLI and the language server."""

from . import source_context

__all__ = [
    "source_context",
]
