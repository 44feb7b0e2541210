"""Plain-text extraction from EPUB packages."""

from epubtxt._version import __version__

__all__ = ["__version__"]
