"""Bounded recursive directory traversal shared by every detector."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

# Directories skipped by the language scan.
TECH_EXCLUDED = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        "coverage",
        ".next",
        ".nuxt",
        ".output",
        ".cache",
        ".turbo",
        ".parcel-cache",
        "out",
        "public",
        "static",
        "assets",
    }
)

# Directories skipped by the code-pattern scan.
PATTERN_EXCLUDED = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        "coverage",
        ".next",
        ".nuxt",
        ".output",
        ".cache",
        ".turbo",
        ".parcel-cache",
        "out",
        "vendor",
        "__pycache__",
        ".pytest_cache",
        ".venv",
        "venv",
    }
)

# Directories skipped by the structure analysis.
STRUCTURE_EXCLUDED = PATTERN_EXCLUDED | {"public", "static"}


def is_excluded(name: str, excluded: frozenset[str]) -> bool:
    """Dot-prefixed names and names in *excluded* are never visited."""
    return name.startswith(".") or name in excluded


@dataclass(frozen=True)
class WalkEntry:
    """One visited file or directory."""

    path: Path
    rel_path: str  # POSIX, relative to the walk root
    name: str
    depth: int
    is_dir: bool


@dataclass
class WalkState:
    """Counters owned by the caller and written only by :func:`walk`."""

    files_visited: int = 0
    dirs_visited: int = 0
    max_depth_seen: int = 0
    skipped: int = 0
    truncated: bool = False


def _list_dir(directory: Path, state: WalkState) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as exc:
        logger.debug("Skipping unreadable directory %s: %s", directory, exc)
        state.skipped += 1
        return []


def _entry_kind(entry: os.DirEntry[str], state: WalkState) -> str | None:
    """Return ``"dir"``, ``"file"`` or ``None`` for anything else."""
    try:
        if entry.is_dir(follow_symlinks=False):
            return "dir"
        if entry.is_file():
            return "file"
    except OSError as exc:
        logger.debug("Skipping unreadable entry %s: %s", entry.path, exc)
        state.skipped += 1
    return None


def walk(
    root: Path,
    *,
    max_depth: int,
    max_files: int,
    excluded: frozenset[str] = STRUCTURE_EXCLUDED,
    state: WalkState | None = None,
) -> Iterator[WalkEntry]:
    """Yield files and directories under *root* in name order.

    The root listing is depth 0; a directory found at depth *d* is listed
    at depth *d + 1*, and nothing deeper than *max_depth* is listed.  The
    walk ends once *max_files* files have been yielded, setting
    ``state.truncated``.  Excluded and dot-prefixed entries are neither
    yielded nor descended into.  Unreadable directories are skipped and
    their siblings still visited.  Symlinked directories are not followed.
    """
    if state is None:
        state = WalkState()
    yield from _walk_dir(root, "", 0, max_depth, max_files, excluded, state)


def _walk_dir(
    directory: Path,
    rel_prefix: str,
    depth: int,
    max_depth: int,
    max_files: int,
    excluded: frozenset[str],
    state: WalkState,
) -> Iterator[WalkEntry]:
    if depth > max_depth:
        return
    if state.files_visited >= max_files:
        state.truncated = True
        return

    for entry in _list_dir(directory, state):
        if state.files_visited >= max_files:
            state.truncated = True
            return
        if is_excluded(entry.name, excluded):
            continue

        kind = _entry_kind(entry, state)
        if kind is None:
            continue

        rel_path = f"{rel_prefix}{entry.name}"
        if kind == "dir":
            state.dirs_visited += 1
            state.max_depth_seen = max(state.max_depth_seen, depth)
            yield WalkEntry(Path(entry.path), rel_path, entry.name, depth, True)
            yield from _walk_dir(
                Path(entry.path),
                f"{rel_path}/",
                depth + 1,
                max_depth,
                max_files,
                excluded,
                state,
            )
        else:
            state.files_visited += 1
            yield WalkEntry(Path(entry.path), rel_path, entry.name, depth, False)
