"""Runtime options for a text extraction run."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping


DEFAULT_WIDTH = 80
DEFAULT_EXTRACTOR = "zipfile"
SUPPORTED_EXTRACTORS = ("zipfile", "unzip")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(*, name: str, raw_value: str) -> bool:
    value = raw_value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be one of: {', '.join(sorted(_TRUE_VALUES | _FALSE_VALUES))}")


def _parse_non_negative_int(*, name: str, raw_value: str) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


@dataclass(frozen=True, slots=True)
class ExtractionOptions:
    """Validated, immutable options for one run.

    ``width`` of 0 disables reflow. ``notext`` skips the spine entirely, so
    combined with ``meta`` it yields a metadata-only listing.
    """

    meta: bool = False
    notext: bool = False
    calibre: bool = False
    section_separator: str | None = None
    width: int = DEFAULT_WIDTH
    raw: bool = False
    ascii: bool = False
    extractor: str = DEFAULT_EXTRACTOR

    def __post_init__(self) -> None:
        if self.width < 0:
            raise ValueError("width must be >= 0")
        if self.extractor not in SUPPORTED_EXTRACTORS:
            raise ValueError(f"extractor must be one of: {', '.join(SUPPORTED_EXTRACTORS)}")

    @property
    def reflow(self) -> bool:
        return not self.raw and self.width > 0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ExtractionOptions":
        source: Mapping[str, str] = os.environ if environ is None else environ

        flags: dict[str, bool] = {}
        for field_name in ("meta", "notext", "calibre", "raw", "ascii"):
            env_name = f"EPUBTXT_{field_name.upper()}"
            raw_value = source.get(env_name)
            if raw_value is None:
                continue
            if not raw_value.strip():
                raise ValueError(f"{env_name} cannot be empty")
            flags[field_name] = _parse_bool(name=env_name, raw_value=raw_value)

        width_raw = source.get("EPUBTXT_WIDTH", str(DEFAULT_WIDTH)).strip()
        if not width_raw:
            raise ValueError("EPUBTXT_WIDTH cannot be empty")
        width = _parse_non_negative_int(name="EPUBTXT_WIDTH", raw_value=width_raw)

        extractor = source.get("EPUBTXT_EXTRACTOR", DEFAULT_EXTRACTOR).strip().lower()
        if extractor not in SUPPORTED_EXTRACTORS:
            raise ValueError(f"EPUBTXT_EXTRACTOR must be one of: {', '.join(SUPPORTED_EXTRACTORS)}")

        # An empty separator prints a blank line before each section.
        separator = source.get("EPUBTXT_SECTION_SEPARATOR")

        return cls(
            section_separator=separator,
            width=width,
            extractor=extractor,
            **flags,
        )
