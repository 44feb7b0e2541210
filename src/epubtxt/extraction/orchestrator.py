"""Drive one EPUB input from archive to rendered text."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from epubtxt.config import ExtractionOptions
from epubtxt.container.locator import CONTAINER_PATH, locate_root
from epubtxt.container.package import PackageDocument
from epubtxt.container.paths import canonical_directory, resolve_and_check
from epubtxt.errors import (
    ContainmentError,
    EpubTextError,
    NotFoundError,
    RenderError,
    ResolutionError,
)
from epubtxt.extraction.workspace import ArchiveExtractor, ExtractionWorkspace, build_extractor
from epubtxt.models import ExtractionReport
from epubtxt.rendering.base import TextRenderer
from epubtxt.rendering.xhtml import XhtmlRenderer

logger = logging.getLogger(__name__)


class EpubTextExtractor:
    """Extract metadata and spine-ordered text from EPUB archives.

    Each input is unpacked into its own temporary workspace, which is removed
    before ``process`` returns. Structural failures abort only the current
    input and are reported on the returned ExtractionReport; a bad spine
    reference or an unrenderable document only skips that item.
    """

    def __init__(
        self,
        options: ExtractionOptions | None = None,
        *,
        renderer: TextRenderer | None = None,
        extractor: ArchiveExtractor | None = None,
    ) -> None:
        self._options = options or ExtractionOptions()
        self._renderer = renderer or XhtmlRenderer(self._options)
        self._extractor = extractor or build_extractor(self._options.extractor)

    @property
    def options(self) -> ExtractionOptions:
        return self._options

    def process_many(self, paths: Iterable[str | Path]) -> list[ExtractionReport]:
        """Process inputs strictly one after another."""

        return [self.process(path) for path in paths]

    def process(self, archive_path: str | Path) -> ExtractionReport:
        source = Path(archive_path)
        report = ExtractionReport(source_path=source)
        logger.debug("Processing %s", source)

        if not source.is_file() or not os.access(source, os.R_OK):
            report.error = f"File not found or not readable: {source}"
            logger.error("%s", report.error)
            return report

        try:
            with ExtractionWorkspace(source, self._extractor) as workspace_dir:
                self._process_tree(workspace_dir, report)
        except EpubTextError as exc:
            report.error = str(exc)
            logger.error("Can't extract text from %s: %s", source, exc)
        return report

    def _process_tree(self, workspace_dir: Path, report: ExtractionReport) -> None:
        root = canonical_directory(workspace_dir)
        package_path = self._locate_package(root)

        package = PackageDocument.load(package_path)
        content_dir = package.content_dir
        logger.debug("Content directory is: %s", content_dir)

        if self._options.meta:
            self._emit_metadata(package, report)
        if self._options.notext:
            return

        hrefs = package.spine()
        logger.debug("EPUB spine has %d items", len(hrefs))
        for href in hrefs:
            self._render_item(content_dir, href, report)

    def _locate_package(self, root: Path) -> Path:
        container_path = root / CONTAINER_PATH
        try:
            container_xml = container_path.read_bytes()
        except OSError as exc:
            raise NotFoundError(container_path, f"Can't read container descriptor: {exc}") from exc

        relative = locate_root(container_xml, container_path)
        logger.debug("Package document path from container: %s", relative)
        return resolve_and_check(root, relative)

    def _emit_metadata(self, package: PackageDocument, report: ExtractionReport) -> None:
        try:
            entries = package.metadata(self._options)
            for entry in entries:
                self._renderer.render_line(entry.format())
                report.metadata_lines += 1
        except (EpubTextError, OSError, ValueError) as exc:
            logger.warning("Error during metadata dump: %s (continuing with text)", exc)

    def _render_item(self, content_dir: Path, href: str, report: ExtractionReport) -> None:
        try:
            item_path = resolve_and_check(content_dir, href)
        except ContainmentError as exc:
            logger.warning("Skipping EPUB spine item %r: outside content directory: %s", href, exc)
            report.skipped.append(href)
            return
        except ResolutionError as exc:
            logger.warning("Skipping EPUB spine item %r: invalid path: %s", href, exc)
            report.skipped.append(href)
            return

        if self._options.section_separator is not None:
            self._renderer.write_raw(self._options.section_separator)

        try:
            self._renderer.render(item_path)
        except RenderError as exc:
            logger.warning("Error processing spine item %r: %s (continuing)", href, exc)
            report.skipped.append(href)
            return
        report.rendered.append(item_path)
