"""Locate the package document named by ``META-INF/container.xml``."""

from __future__ import annotations

from pathlib import Path

from epubtxt.container.xml import attribute, child_elements, local_name, parse_xml
from epubtxt.errors import NotFoundError

CONTAINER_PATH = Path("META-INF") / "container.xml"


def locate_root(container_xml: str | bytes, source: Path | str | None = None) -> str:
    """Return the first ``rootfile/@full-path`` value, exactly as written."""

    root = parse_xml(container_xml, source)
    for rootfiles in child_elements(root):
        if local_name(rootfiles.tag) != "rootfiles":
            continue
        for rootfile in child_elements(rootfiles):
            if local_name(rootfile.tag) != "rootfile":
                continue
            full_path = attribute(rootfile, "full-path")
            if full_path is not None:
                return full_path
    raise NotFoundError(source, "Container does not specify a root file via full-path attribute")
