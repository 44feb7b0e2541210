"""Canonical data structures shared by the extraction pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class MetadataKind(Enum):
    """Recognized metadata kinds, valued by their output label."""

    CREATOR = "Creator"
    PUBLISHER = "Publisher"
    CONTRIBUTOR = "Contributor"
    IDENTIFIER = "Identifier"
    DATE = "Date"
    DESCRIPTION = "Description"
    SUBJECT = "Subject"
    LANGUAGE = "Language"
    TITLE = "Title"
    META = "Meta"
    CALIBRE_SERIES = "Calibre series"
    CALIBRE_SERIES_INDEX = "Calibre series index"
    CALIBRE_TITLE_SORT = "Calibre title sort"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class MetadataEntry:
    """One emitted metadata value; repeated kinds stay separate entries."""

    kind: MetadataKind
    value: str

    def format(self) -> str:
        return f"{self.kind.label}: {self.value}"


@dataclass(frozen=True, slots=True)
class ManifestItem:
    """A manifest resource declaration."""

    id: str
    href: str | None


@dataclass(slots=True)
class ExtractionReport:
    """Outcome of processing one EPUB input."""

    source_path: Path
    metadata_lines: int = 0
    rendered: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
