"""Lint scripts embedded in HTML/XML documents and map diagnostics back to the source."""

__version__ = "0.1.0"

__all__ = ["__version__"]
