"""Canonical path resolution with containment checks."""

from __future__ import annotations

from pathlib import Path

from epubtxt.errors import ContainmentError, ResolutionError


def _is_within(candidate: Path, root: Path) -> bool:
    return candidate.is_relative_to(root)


def canonical_directory(path: str | Path) -> Path:
    """Return the canonical form of an existing directory."""

    try:
        resolved = Path(path).resolve(strict=True)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ResolutionError(path, f"Can't resolve directory: {exc}") from exc
    if not resolved.is_dir():
        raise ResolutionError(path, "Not a directory")
    return resolved


def resolve_and_check(base: str | Path, candidate: str | Path) -> Path:
    """Resolve ``candidate`` against ``base`` and require it to stay inside ``base``.

    Relative candidates are joined to ``base``. Containment is tested on
    resolved paths, never on text prefixes, so ``..`` segments and symlinks
    pointing outside ``base`` are rejected. An escaping path is a
    ContainmentError even when its target does not exist; a contained path
    that does not exist (or is a broken/looping link) is a ResolutionError.
    """

    root = canonical_directory(base)
    joined = root / candidate

    try:
        lenient = joined.resolve(strict=False)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ResolutionError(joined, f"Can't canonicalize path: {exc}") from exc
    if not _is_within(lenient, root):
        raise ContainmentError(lenient, f"Path escapes {root}")

    try:
        resolved = joined.resolve(strict=True)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ResolutionError(joined, f"Can't resolve path: {exc}") from exc
    if not _is_within(resolved, root):
        raise ContainmentError(resolved, f"Path escapes {root}")
    return resolved
