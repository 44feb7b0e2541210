"""Package document (OPF) interpretation: metadata record and reading order."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from urllib.parse import unquote

from lxml import etree

from epubtxt.config import ExtractionOptions
from epubtxt.container.xml import attribute, child_elements, first_child, local_name, parse_xml
from epubtxt.errors import ManifestError, ResolutionError
from epubtxt.models import ManifestItem, MetadataEntry, MetadataKind

logger = logging.getLogger(__name__)

# Substring rules over the local name, checked in order; first hit wins.
_TAG_RULES: tuple[tuple[str, MetadataKind], ...] = (
    ("creator", MetadataKind.CREATOR),
    ("publisher", MetadataKind.PUBLISHER),
    ("contributor", MetadataKind.CONTRIBUTOR),
    ("identifier", MetadataKind.IDENTIFIER),
    ("date", MetadataKind.DATE),
    ("description", MetadataKind.DESCRIPTION),
    ("subject", MetadataKind.SUBJECT),
    ("language", MetadataKind.LANGUAGE),
    ("title", MetadataKind.TITLE),
    ("meta", MetadataKind.META),
)

_CALIBRE_KINDS: dict[str, MetadataKind] = {
    "calibre:series": MetadataKind.CALIBRE_SERIES,
    "calibre:series_index": MetadataKind.CALIBRE_SERIES_INDEX,
    "calibre:title_sort": MetadataKind.CALIBRE_TITLE_SORT,
}


def classify_tag(tag: str) -> MetadataKind | None:
    """Map a metadata element tag to its kind, or None when unrecognized."""

    name = local_name(tag)
    for needle, kind in _TAG_RULES:
        if needle in name:
            return kind
    return None


def _truncate_at(value: str, marker: str) -> str:
    return value.split(marker, 1)[0]


def _calibre_entry(node: etree._Element) -> MetadataEntry | None:
    name = attribute(node, "name") or attribute(node, "property")
    content = attribute(node, "content")
    if content is None and node.text is not None:
        content = node.text.strip()
    if not name or content is None:
        return None

    kind = _CALIBRE_KINDS.get(name)
    if kind is None:
        return None
    if kind is MetadataKind.CALIBRE_SERIES_INDEX:
        content = _truncate_at(content, ".")
    return MetadataEntry(kind=kind, value=content)


def extract_metadata(root: etree._Element, options: ExtractionOptions) -> list[MetadataEntry]:
    """Collect recognized metadata values in document order.

    Only the first ``metadata`` child of the package root is read. Repeated
    kinds (several creators, say) are kept as separate entries.
    """

    metadata = first_child(root, "metadata")
    if metadata is None:
        return []

    entries: list[MetadataEntry] = []
    for node in child_elements(metadata):
        kind = classify_tag(node.tag)
        if kind is None:
            continue

        if kind is MetadataKind.META:
            if not options.calibre:
                continue
            entry = _calibre_entry(node)
            if entry is not None:
                entries.append(entry)
            continue

        text = (node.text or "").strip()
        if not text:
            continue
        if kind is MetadataKind.DATE:
            text = _truncate_at(text, "-")
        entries.append(MetadataEntry(kind=kind, value=text))

    return entries


def _index_manifest(manifest: etree._Element) -> dict[str, ManifestItem]:
    items: dict[str, ManifestItem] = {}
    for node in child_elements(manifest):
        item_id = attribute(node, "id")
        if item_id is None:
            continue
        if item_id in items:
            logger.debug("Duplicate manifest id %r; keeping the first declaration", item_id)
            continue
        items[item_id] = ManifestItem(id=item_id, href=attribute(node, "href"))
    return items


def extract_spine(root: etree._Element, source: Path | str | None = None) -> list[str]:
    """Return manifest hrefs (percent-decoded) in spine order.

    Raises ManifestError when the manifest is missing or empty, or when there
    is no spine at all.
    """

    manifest = first_child(root, "manifest")
    if manifest is None or next(child_elements(manifest), None) is None:
        raise ManifestError(source, "Package has no valid manifest or manifest children")

    spine = first_child(root, "spine")
    if spine is None:
        raise ManifestError(source, "Package has no spine")

    items = _index_manifest(manifest)
    hrefs: list[str] = []
    for itemref in child_elements(spine):
        idref = attribute(itemref, "idref")
        if idref is None:
            continue
        item = items.get(idref)
        if item is None or item.href is None:
            logger.warning("Spine entry %r has no matching manifest href; skipping", idref)
            continue
        hrefs.append(unquote(item.href))
    return hrefs


@dataclass(slots=True)
class PackageDocument:
    """A package document parsed once and shared by both extraction passes."""

    path: Path
    root: etree._Element

    @classmethod
    def load(cls, path: Path) -> "PackageDocument":
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise ResolutionError(path, f"Can't read package document: {exc}") from exc
        logger.debug("Read package document, size %d from %s", len(payload), path)
        return cls(path=path, root=parse_xml(payload, path))

    @property
    def content_dir(self) -> Path:
        """Directory that manifest hrefs are relative to."""

        return self.path.parent

    def metadata(self, options: ExtractionOptions) -> list[MetadataEntry]:
        return extract_metadata(self.root, options)

    def spine(self) -> list[str]:
        return extract_spine(self.root, self.path)
