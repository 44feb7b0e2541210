"""Container resolution, package interpretation and path safety."""

from .locator import CONTAINER_PATH, locate_root
from .package import PackageDocument, classify_tag, extract_metadata, extract_spine
from .paths import canonical_directory, resolve_and_check

__all__ = [
    "CONTAINER_PATH",
    "PackageDocument",
    "canonical_directory",
    "classify_tag",
    "extract_metadata",
    "extract_spine",
    "locate_root",
    "resolve_and_check",
]
