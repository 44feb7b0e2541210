"""Archive extraction into a scoped, permission-normalized temporary directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import shutil
import stat
import subprocess
import tempfile
from types import TracebackType
from typing import Protocol, runtime_checkable
from zipfile import BadZipFile, ZipFile

from epubtxt.errors import ExternalToolError

logger = logging.getLogger(__name__)

TEMP_PREFIX = "epubtxt"


@runtime_checkable
class ArchiveExtractor(Protocol):
    """Unpack an archive into an existing directory."""

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        """Extract every member of ``archive_path`` under ``dest_dir``."""


class ZipArchiveExtractor:
    """In-process extraction with :mod:`zipfile`."""

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        try:
            with ZipFile(archive_path, "r") as archive:
                archive.extractall(dest_dir)
        except (BadZipFile, OSError) as exc:
            raise ExternalToolError(archive_path, f"Can't extract archive: {exc}") from exc


class UnzipCommandExtractor:
    """Extraction through an external ``unzip`` executable."""

    def __init__(self, command: str = "unzip") -> None:
        self._command = command

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        args = [self._command, "-o", "-qq", str(archive_path), "-d", str(dest_dir)]
        try:
            completed = subprocess.run(args, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise ExternalToolError(archive_path, f"Can't run {self._command}: {exc}") from exc
        if completed.returncode != 0:
            detail = completed.stderr.strip() or completed.stdout.strip()
            message = f"{self._command} failed with status {completed.returncode}"
            if detail:
                message = f"{message}: {detail}"
            raise ExternalToolError(archive_path, message)


def build_extractor(name: str) -> ArchiveExtractor:
    if name == "zipfile":
        return ZipArchiveExtractor()
    if name == "unzip":
        return UnzipCommandExtractor()
    raise ValueError(f"Unknown archive extractor: {name}")


def _normalized_mode(mode: int, *, is_dir: bool) -> int:
    # u+rwX,go+rX,go-w
    perms = stat.S_IMODE(mode) | 0o644
    perms &= ~0o022
    if is_dir or perms & 0o111:
        perms |= 0o111
    return perms


def normalize_permissions(root: Path) -> None:
    """Make the tree readable and owner-writable without following symlinks."""

    os.chmod(root, _normalized_mode(root.stat().st_mode, is_dir=True))
    for current, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            entry = Path(current) / name
            if entry.is_symlink():
                continue
            info = entry.stat()
            os.chmod(entry, _normalized_mode(info.st_mode, is_dir=stat.S_ISDIR(info.st_mode)))


class ExtractionWorkspace:
    """Own one temporary extraction directory for the duration of a ``with`` block.

    ``path`` is None before entry and after exit; the directory and
    everything under it is removed on every exit path.
    """

    def __init__(self, archive_path: Path, extractor: ArchiveExtractor) -> None:
        self._archive_path = archive_path
        self._extractor = extractor
        self.path: Path | None = None

    def __enter__(self) -> Path:
        try:
            created = tempfile.mkdtemp(prefix=f"{TEMP_PREFIX}.{os.getpid()}.")
        except OSError as exc:
            raise ExternalToolError(self._archive_path, f"Can't create temporary directory: {exc}") from exc
        self.path = Path(created)
        logger.debug("Temporary directory created: %s", self.path)

        try:
            self._extractor.extract(self._archive_path, self.path)
            try:
                normalize_permissions(self.path)
            except OSError as exc:
                logger.warning("Can't fix permissions under %s: %s", self.path, exc)
        except BaseException:
            self.cleanup()
            raise
        return self.path

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        if self.path is None:
            return
        logger.debug("Deleting temporary directory: %s", self.path)
        try:
            shutil.rmtree(self.path)
        except OSError as exc:
            logger.warning("Can't delete temporary directory %s: %s", self.path, exc)
        finally:
            self.path = None
