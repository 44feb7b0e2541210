"""Shared renderer contract consumed by the orchestrator."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class TextRenderer(Protocol):
    """Protocol that every output renderer must implement."""

    def render(self, path: Path) -> None:
        """Write the text of one content document; raise RenderError on failure."""

    def render_line(self, text: str) -> None:
        """Write one decoded line, formatted like document text."""

    def write_raw(self, text: str) -> None:
        """Write a line verbatim, e.g. a section separator."""
