"""Text rendering for content documents and metadata lines."""

from .base import TextRenderer
from .entities import decode_entities
from .xhtml import XhtmlRenderer, html_to_paragraphs

__all__ = ["TextRenderer", "XhtmlRenderer", "decode_entities", "html_to_paragraphs"]
