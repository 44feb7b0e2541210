from __future__ import annotations

import os
from pathlib import Path
import stat
import tempfile
from zipfile import ZipFile

import pytest

from epubtxt.errors import ExternalToolError
from epubtxt.extraction.workspace import (
    ArchiveExtractor,
    ExtractionWorkspace,
    UnzipCommandExtractor,
    ZipArchiveExtractor,
    build_extractor,
    normalize_permissions,
)


@pytest.fixture
def scratch(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    directory = tmp_path / "scratch"
    directory.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(directory))
    return directory


def _write_zip(path: Path, members: dict[str, str]) -> Path:
    with ZipFile(path, "w") as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return path


def test_workspace_extracts_and_removes_directory(tmp_path: Path, scratch: Path) -> None:
    archive = _write_zip(tmp_path / "book.epub", {"META-INF/container.xml": "<container/>"})
    workspace = ExtractionWorkspace(archive, ZipArchiveExtractor())

    assert workspace.path is None
    with workspace as extracted:
        assert workspace.path == extracted
        assert extracted.parent == scratch
        assert extracted.name.startswith(f"epubtxt.{os.getpid()}.")
        assert (extracted / "META-INF" / "container.xml").read_text(encoding="utf-8") == "<container/>"
        assert stat.S_IMODE(extracted.stat().st_mode) == 0o755

    assert workspace.path is None
    assert list(scratch.iterdir()) == []


def test_workspace_is_removed_when_the_block_raises(tmp_path: Path, scratch: Path) -> None:
    archive = _write_zip(tmp_path / "book.epub", {"a.txt": "a"})

    with pytest.raises(RuntimeError):
        with ExtractionWorkspace(archive, ZipArchiveExtractor()):
            raise RuntimeError("boom")

    assert list(scratch.iterdir()) == []


def test_failed_extraction_leaves_nothing_behind(tmp_path: Path, scratch: Path) -> None:
    archive = tmp_path / "broken.epub"
    archive.write_bytes(b"this is not a zip archive")
    workspace = ExtractionWorkspace(archive, ZipArchiveExtractor())

    with pytest.raises(ExternalToolError):
        with workspace:
            pass

    assert workspace.path is None
    assert list(scratch.iterdir()) == []


def test_normalize_permissions_applies_owner_rw_and_group_other_read(tmp_path: Path) -> None:
    root = tmp_path / "tree"
    sub = root / "sub"
    sub.mkdir(parents=True)
    private = sub / "private.xhtml"
    private.write_text("x", encoding="utf-8")
    shared = root / "shared.xhtml"
    shared.write_text("x", encoding="utf-8")
    script = root / "run.sh"
    script.write_text("#!/bin/sh\n", encoding="utf-8")
    os.chmod(private, 0o600)
    os.chmod(shared, 0o666)
    os.chmod(script, 0o700)
    os.chmod(sub, 0o700)

    normalize_permissions(root)

    assert stat.S_IMODE(private.stat().st_mode) == 0o644
    assert stat.S_IMODE(shared.stat().st_mode) == 0o644
    assert stat.S_IMODE(script.stat().st_mode) == 0o755
    assert stat.S_IMODE(sub.stat().st_mode) == 0o755


def test_normalize_permissions_does_not_follow_symlinks(tmp_path: Path) -> None:
    outside = tmp_path / "outside.txt"
    outside.write_text("x", encoding="utf-8")
    os.chmod(outside, 0o600)
    root = tmp_path / "tree"
    root.mkdir()
    os.symlink(outside, root / "link.txt")

    normalize_permissions(root)

    assert stat.S_IMODE(outside.stat().st_mode) == 0o600


def test_unzip_command_failure_reports_status(tmp_path: Path) -> None:
    archive = _write_zip(tmp_path / "book.epub", {"a.txt": "a"})

    with pytest.raises(ExternalToolError) as excinfo:
        UnzipCommandExtractor(command="false").extract(archive, tmp_path)

    assert "status 1" in str(excinfo.value)


def test_unzip_command_missing_executable(tmp_path: Path) -> None:
    archive = _write_zip(tmp_path / "book.epub", {"a.txt": "a"})

    with pytest.raises(ExternalToolError):
        UnzipCommandExtractor(command="epubtxt-no-such-unzip").extract(archive, tmp_path)


def test_build_extractor_by_name() -> None:
    assert isinstance(build_extractor("zipfile"), ZipArchiveExtractor)
    assert isinstance(build_extractor("unzip"), UnzipCommandExtractor)
    assert isinstance(build_extractor("zipfile"), ArchiveExtractor)
    with pytest.raises(ValueError):
        build_extractor("tar")
