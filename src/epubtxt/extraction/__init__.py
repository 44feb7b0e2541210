"""Per-input extraction pipeline."""

from .orchestrator import EpubTextExtractor
from .workspace import (
    ArchiveExtractor,
    ExtractionWorkspace,
    UnzipCommandExtractor,
    ZipArchiveExtractor,
    build_extractor,
)

__all__ = [
    "ArchiveExtractor",
    "EpubTextExtractor",
    "ExtractionWorkspace",
    "UnzipCommandExtractor",
    "ZipArchiveExtractor",
    "build_extractor",
]
