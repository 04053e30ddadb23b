"""Tests for stackprobe.detection.walker: bounded traversal."""

from __future__ import annotations

import contextlib
import os
from typing import TYPE_CHECKING, Any

import pytest

from stackprobe.detection.walker import (
    PATTERN_EXCLUDED,
    STRUCTURE_EXCLUDED,
    TECH_EXCLUDED,
    WalkState,
    is_excluded,
    walk,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


def _build_deep_wide_tree(root: Path, *, depth: int, files_per_dir: int) -> int:
    """Create a chain of *depth* nested dirs, each holding *files_per_dir* files."""
    current = root
    total = 0
    for level in range(depth):
        current = current / f"d{level:02d}"
        current.mkdir()
        for i in range(files_per_dir):
            (current / f"f{i:04d}.txt").write_text("")
            total += 1
    return total


class TestIsExcluded:
    def test_dot_prefixed(self) -> None:
        assert is_excluded(".env", frozenset())
        assert is_excluded(".github", frozenset())

    def test_named(self) -> None:
        assert is_excluded("node_modules", TECH_EXCLUDED)
        assert not is_excluded("src", TECH_EXCLUDED)

    def test_structure_extends_pattern_set(self) -> None:
        assert PATTERN_EXCLUDED < STRUCTURE_EXCLUDED
        assert {"public", "static"} <= STRUCTURE_EXCLUDED


class TestWalk:
    def test_yields_files_and_dirs_in_name_order(self, tmp_path: Path) -> None:
        (tmp_path / "b.txt").write_text("")
        (tmp_path / "a").mkdir()
        (tmp_path / "a" / "z.txt").write_text("")
        (tmp_path / "c.txt").write_text("")

        rel = [e.rel_path for e in walk(tmp_path, max_depth=5, max_files=100)]
        assert rel == ["a", "a/z.txt", "b.txt", "c.txt"]

    def test_depth_of_root_listing_is_zero(self, tmp_path: Path) -> None:
        (tmp_path / "src" / "app").mkdir(parents=True)
        (tmp_path / "src" / "app" / "main.py").write_text("")

        depths = {e.rel_path: e.depth for e in walk(tmp_path, max_depth=5, max_files=100)}
        assert depths == {"src": 0, "src/app": 1, "src/app/main.py": 2}

    def test_excluded_and_dot_dirs_never_listed(self, tmp_path: Path) -> None:
        for name in ("node_modules", ".git", "dist", ".hidden"):
            (tmp_path / name).mkdir()
            (tmp_path / name / "inner.js").write_text("")
        (tmp_path / ".env").write_text("SECRET=1")
        (tmp_path / "index.js").write_text("")

        state = WalkState()
        entries = list(walk(tmp_path, max_depth=5, max_files=100, state=state))

        assert [e.rel_path for e in entries] == ["index.js"]
        assert state.files_visited == 1
        assert state.dirs_visited == 0

    def test_exclusion_set_is_configurable(self, tmp_path: Path) -> None:
        (tmp_path / "public").mkdir()
        (tmp_path / "public" / "logo.svg").write_text("")

        structure = [e.rel_path for e in walk(tmp_path, max_depth=5, max_files=100)]
        pattern = [
            e.rel_path
            for e in walk(tmp_path, max_depth=5, max_files=100, excluded=PATTERN_EXCLUDED)
        ]
        assert structure == []
        assert pattern == ["public", "public/logo.svg"]

    def test_max_depth_limits_listing(self, tmp_path: Path) -> None:
        _build_deep_wide_tree(tmp_path, depth=5, files_per_dir=1)

        state = WalkState()
        entries = list(walk(tmp_path, max_depth=2, max_files=100, state=state))

        assert max(e.depth for e in entries) == 2
        # d00 (0), d01 (1), d02 (2) are yielded; files in d00 and d01 are listed.
        assert state.dirs_visited == 3
        assert state.files_visited == 2

    def test_max_files_truncates(self, tmp_path: Path) -> None:
        for i in range(10):
            (tmp_path / f"f{i}.txt").write_text("")

        state = WalkState()
        files = [e for e in walk(tmp_path, max_depth=5, max_files=4, state=state) if not e.is_dir]

        assert len(files) == 4
        assert state.files_visited == 4
        assert state.truncated is True

    def test_not_truncated_below_cap(self, tmp_path: Path) -> None:
        (tmp_path / "one.txt").write_text("")
        state = WalkState()
        list(walk(tmp_path, max_depth=5, max_files=10, state=state))
        assert state.truncated is False

    def test_deep_wide_tree_bounded_by_caps(self, tmp_path: Path) -> None:
        total = _build_deep_wide_tree(tmp_path, depth=20, files_per_dir=500)
        assert total == 10_000

        state = WalkState()
        entries = list(walk(tmp_path, max_depth=6, max_files=1000, state=state))

        assert state.files_visited <= 1000
        assert state.truncated is True
        assert all(e.depth <= 6 for e in entries)

    def test_missing_root_yields_nothing(self, tmp_path: Path) -> None:
        state = WalkState()
        entries = list(walk(tmp_path / "nope", max_depth=5, max_files=10, state=state))
        assert entries == []
        assert state.skipped == 1

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_directory_not_followed(self, tmp_path: Path) -> None:
        real = tmp_path / "real"
        real.mkdir()
        (real / "inside.txt").write_text("")
        try:
            (tmp_path / "link").symlink_to(real, target_is_directory=True)
        except OSError:
            pytest.skip("cannot create symlink")

        rel = [e.rel_path for e in walk(tmp_path, max_depth=5, max_files=100)]
        assert "link/inside.txt" not in rel
        assert "real/inside.txt" in rel


class TestUnreadableEntries:
    def test_unreadable_directory_skipped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for rel in ("a/one.txt", "locked/secret.txt", "z/two.txt"):
            (tmp_path / rel).parent.mkdir(exist_ok=True)
            (tmp_path / rel).write_text("")
        real_scandir = os.scandir

        def _scandir(path: Any) -> Any:
            if os.path.basename(path) == "locked":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", _scandir)

        state = WalkState()
        entries = list(walk(tmp_path, max_depth=5, max_files=100, state=state))

        assert [e.rel_path for e in entries if not e.is_dir] == ["a/one.txt", "z/two.txt"]
        assert "locked" in [e.rel_path for e in entries if e.is_dir]
        assert state.skipped == 1
        assert state.truncated is False

    def test_unreadable_entry_skipped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "bad").write_text("")
        (tmp_path / "good.txt").write_text("")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "x.txt").write_text("")
        real_scandir = os.scandir

        class _FlakyEntry:
            def __init__(self, entry: os.DirEntry[str]) -> None:
                self._entry = entry
                self.name = entry.name
                self.path = entry.path

            def is_dir(self, *, follow_symlinks: bool = True) -> bool:
                if self.name == "bad":
                    raise PermissionError(13, "Permission denied", self.path)
                return self._entry.is_dir(follow_symlinks=follow_symlinks)

            def is_file(self, *, follow_symlinks: bool = True) -> bool:
                return self._entry.is_file(follow_symlinks=follow_symlinks)

        @contextlib.contextmanager
        def _scandir(path: Any) -> Iterator[list[_FlakyEntry]]:
            with real_scandir(path) as it:
                yield [_FlakyEntry(e) for e in it]

        monkeypatch.setattr(os, "scandir", _scandir)

        state = WalkState()
        entries = list(walk(tmp_path, max_depth=5, max_files=100, state=state))

        assert [e.rel_path for e in entries if not e.is_dir] == ["good.txt", "sub/x.txt"]
        assert state.skipped == 1
