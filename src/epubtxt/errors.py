"""Error taxonomy for container resolution, spine assembly and rendering."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class EpubTextError(Exception):
    """Domain error raised while turning an EPUB archive into text."""

    path: Path | str | None
    message: str

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message} (path={self.path})"


class ParseError(EpubTextError):
    """An XML document inside the package is not well-formed."""


class NotFoundError(EpubTextError):
    """A required element or attribute is absent."""


class ManifestError(EpubTextError):
    """The package document has no usable manifest or spine."""


class ResolutionError(EpubTextError):
    """A path does not exist or cannot be canonicalized."""


class ContainmentError(EpubTextError):
    """A resolved path escapes the directory it must stay within."""


class ExternalToolError(EpubTextError):
    """Archive extraction failed."""


class RenderError(EpubTextError):
    """A content document could not be converted to text."""


__all__ = [
    "ContainmentError",
    "EpubTextError",
    "ExternalToolError",
    "ManifestError",
    "NotFoundError",
    "ParseError",
    "RenderError",
    "ResolutionError",
]
