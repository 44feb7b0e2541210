"""Hardened XML parsing and namespace-agnostic element lookup."""

from __future__ import annotations

from pathlib import Path
import re
from typing import Iterator

from lxml import etree

from epubtxt.errors import ParseError
from epubtxt.rendering.entities import decode_entities

_XML_PREDEFINED = frozenset({b"amp", b"lt", b"gt", b"quot", b"apos"})
_NAMED_REFERENCE = re.compile(rb"&([A-Za-z][A-Za-z0-9]*);")


def _translate_reference(match: re.Match[bytes]) -> bytes:
    name = match.group(1)
    if name in _XML_PREDEFINED:
        return match.group(0)
    reference = match.group(0).decode("ascii")
    decoded = decode_entities(reference)
    if decoded == reference:
        return b"&amp;" + name + b";"
    return "".join(f"&#{ord(char)};" for char in decoded).encode("ascii")


def translate_named_references(payload: bytes) -> bytes:
    """Rewrite HTML named references the XML parser does not know.

    Known names (``&eacute;``) become numeric references, so each reference
    is decoded exactly once by the parser. Unknown names are escaped and
    survive as literal text.
    """

    if b"&" not in payload:
        return payload
    return _NAMED_REFERENCE.sub(_translate_reference, payload)


def _build_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        huge_tree=False,
        remove_comments=True,
        remove_pis=True,
    )


def parse_xml(data: str | bytes, source: Path | str | None = None) -> etree._Element:
    """Parse an XML payload and return its document element.

    Text payloads are re-encoded to UTF-8 so a leading encoding declaration
    does not trip lxml. HTML named references are translated first, see
    :func:`translate_named_references`.
    """

    payload = data.encode("utf-8") if isinstance(data, str) else data
    payload = translate_named_references(payload)
    try:
        root = etree.fromstring(payload, parser=_build_parser())
    except etree.XMLSyntaxError as exc:
        raise ParseError(source, f"Can't parse XML: {exc}") from exc
    if root is None:
        raise ParseError(source, "XML document has no root element")
    return root


def local_name(name: str) -> str:
    """Strip a Clark-notation namespace (``{uri}``) or a ``prefix:`` from a name."""

    if name.startswith("{"):
        name = name.rpartition("}")[2]
    return name.rpartition(":")[2]


def child_elements(node: etree._Element) -> Iterator[etree._Element]:
    """Yield element children in document order, skipping entity nodes."""

    for child in node:
        if isinstance(child.tag, str):
            yield child


def first_child(node: etree._Element, name: str) -> etree._Element | None:
    """Return the first element child whose local name equals ``name``."""

    for child in child_elements(node):
        if local_name(child.tag) == name:
            return child
    return None


def attribute(node: etree._Element, name: str) -> str | None:
    """Look up an attribute by local name, ignoring any namespace."""

    value = node.get(name)
    if value is not None:
        return value
    for key, candidate in node.attrib.items():
        if local_name(key) == name:
            return candidate
    return None
