"""XHTML content document to plain text renderer."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import sys
import textwrap
from typing import TextIO

from bs4 import BeautifulSoup, CData, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup
from charset_normalizer import from_bytes

from epubtxt.config import ExtractionOptions
from epubtxt.errors import RenderError
from epubtxt.rendering.normalization import fold_to_ascii, normalize_whitespace

logger = logging.getLogger(__name__)

_SKIP_TAGS = {"head", "script", "style", "title", "noscript", "template"}
_LINE_BREAK_TAGS = {"br"}
_RULE_TAGS = {"hr"}
_BLOCK_TAGS = {
    "address",
    "article",
    "aside",
    "blockquote",
    "caption",
    "dd",
    "div",
    "dl",
    "dt",
    "figcaption",
    "figure",
    "footer",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "header",
    "li",
    "main",
    "nav",
    "ol",
    "p",
    "section",
    "table",
    "td",
    "th",
    "tr",
    "ul",
}


@dataclass(slots=True)
class Paragraph:
    """Lines of one text block; preformatted blocks are never reflowed."""

    lines: list[str]
    preformatted: bool = False


class _ParagraphCollector:
    """Accumulate inline text into lines and lines into paragraphs."""

    def __init__(self) -> None:
        self.paragraphs: list[Paragraph] = []
        self._lines: list[str] = []
        self._parts: list[str] = []

    def add_text(self, text: str) -> None:
        self._parts.append(text)

    def end_line(self) -> None:
        line = normalize_whitespace("".join(self._parts))
        self._parts.clear()
        if line:
            self._lines.append(line)

    def end_paragraph(self) -> None:
        self.end_line()
        if self._lines:
            self.paragraphs.append(Paragraph(lines=list(self._lines)))
            self._lines.clear()

    def add_preformatted(self, text: str) -> None:
        self.end_paragraph()
        lines = [line.rstrip() for line in text.strip("\n").splitlines()]
        if any(lines):
            self.paragraphs.append(Paragraph(lines=lines, preformatted=True))

    def walk(self, node: Tag) -> None:
        for child in node.children:
            if isinstance(child, NavigableString):
                # Comments, doctypes and processing instructions are subclasses too.
                if type(child) in (NavigableString, CData):
                    self.add_text(str(child))
                continue
            if not isinstance(child, Tag):
                continue

            name = (child.name or "").lower().rpartition(":")[2]
            if name in _SKIP_TAGS:
                continue
            if name in _LINE_BREAK_TAGS:
                self.end_line()
                continue
            if name in _RULE_TAGS:
                self.end_paragraph()
                continue
            if name == "pre":
                self.add_preformatted(child.get_text())
                continue

            is_block = name in _BLOCK_TAGS
            if is_block:
                self.end_paragraph()
            self.walk(child)
            if is_block:
                self.end_paragraph()


def html_to_paragraphs(markup: str) -> list[Paragraph]:
    """Split markup into paragraphs of whitespace-collapsed lines."""

    soup = BeautifulSoup(markup, "lxml")
    collector = _ParagraphCollector()
    collector.walk(soup.body or soup)
    collector.end_paragraph()
    return collector.paragraphs


def decode_document(raw: bytes, path: Path | None = None) -> str:
    """Decode content bytes as UTF-8, falling back to charset detection."""

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        best = from_bytes(raw).best()
        if best is None or not best.encoding:
            raise RenderError(path, "Content is not UTF-8 and its encoding could not be detected")
        logger.warning("%s is not UTF-8; decoding as %s", path, best.encoding)
        return raw.decode(best.encoding, errors="replace")


class XhtmlRenderer:
    """Write markup-stripped, optionally reflowed text to a stream."""

    def __init__(self, options: ExtractionOptions, stream: TextIO | None = None) -> None:
        self._options = options
        self._stream = stream if stream is not None else sys.stdout

    @property
    def stream(self) -> TextIO:
        return self._stream

    def render(self, path: Path) -> None:
        """Render one content document; failures raise RenderError."""

        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise RenderError(path, f"Can't read content document: {exc}") from exc

        markup = decode_document(raw, path)
        try:
            paragraphs = html_to_paragraphs(markup)
        except ParserRejectedMarkup as exc:
            raise RenderError(path, f"Can't parse content document: {exc}") from exc

        logger.debug("Rendering %d paragraphs from %s", len(paragraphs), path)
        for index, paragraph in enumerate(paragraphs):
            if index:
                self._stream.write("\n")
            for line in paragraph.lines:
                self._stream.write(self._format(line, reflow=not paragraph.preformatted) + "\n")

    def render_line(self, text: str) -> None:
        """Write a single already-decoded line, e.g. a metadata entry."""

        self._stream.write(self._format(text) + "\n")

    def write_raw(self, text: str) -> None:
        self._stream.write(text + "\n")

    def _format(self, line: str, *, reflow: bool = True) -> str:
        if self._options.ascii:
            line = fold_to_ascii(line)
        if not (reflow and self._options.reflow):
            return line
        return textwrap.fill(
            line,
            width=self._options.width,
            break_long_words=False,
            break_on_hyphens=False,
        )
