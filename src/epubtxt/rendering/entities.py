"""Character reference decoding for metadata values."""

from __future__ import annotations

import html


def decode_entities(text: str) -> str:
    """Decode numeric and named character references.

    Unknown or unterminated references are left as written.
    """

    if "&" not in text:
        return text
    return html.unescape(text)
