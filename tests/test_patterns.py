"""Tests for stackprobe.detection.patterns: file and coding patterns."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from stackprobe.detection.config import DetectionSettings
from stackprobe.detection.models import (
    CodingPatternSignal,
    FilePatternSignal,
    PatternReport,
)
from stackprobe.detection.patterns import (
    MAX_EXAMPLES,
    coding_pattern_confidence,
    detect_patterns,
    extract_key_patterns,
    file_pattern_confidence,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestConfidence:
    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, "low"), (2, "low"), (3, "medium"), (9, "medium"), (10, "high"), (50, "high")],
    )
    def test_file_pattern_thresholds(self, count: int, expected: str) -> None:
        assert file_pattern_confidence(count) == expected

    @pytest.mark.parametrize(
        ("occurrences", "total", "expected"),
        [(3, 10, "high"), (1, 10, "medium"), (0, 10, "low"), (9, 100, "low")],
    )
    def test_coding_pattern_thresholds(self, occurrences: int, total: int, expected: str) -> None:
        assert coding_pattern_confidence(occurrences, total) == expected

    def test_zero_total_is_low(self) -> None:
        assert coding_pattern_confidence(5, 0) == "low"


class TestDetectPatterns:
    def test_indicator_required(self, tmp_path: Path) -> None:
        (tmp_path / "Button.jsx").write_text("export default () => <button>{useState}</button>\n")
        (tmp_path / "Plain.jsx").write_text("export const x = 1\n")

        report = detect_patterns(tmp_path)
        react = next(p for p in report.framework_patterns if p.name == "React Components")
        assert react.file_count == 1
        assert react.examples == ("Button.jsx",)

    def test_suffix_only_rule_needs_no_content(self, tmp_path: Path) -> None:
        (tmp_path / "styles").mkdir()
        (tmp_path / "styles" / "card.module.css").write_text(".card {}\n")

        report = detect_patterns(tmp_path)
        assert report.framework_patterns == (
            FilePatternSignal("CSS Modules", 1, "low", ("styles/card.module.css",)),
        )

    def test_file_pattern_confidence_and_examples_capped(self, tmp_path: Path) -> None:
        for i in range(12):
            (tmp_path / f"w{i:02d}.test.js").write_text("describe('x', () => { expect(1) })\n")

        report = detect_patterns(tmp_path)
        jest = next(p for p in report.framework_patterns if p.name == "Jest Tests")
        assert jest.file_count == 12
        assert jest.confidence == "high"
        assert len(jest.examples) == MAX_EXAMPLES

    def test_coding_patterns_over_visited_files(self, tmp_path: Path) -> None:
        (tmp_path / "a.js").write_text("const f = async () => { await g() }\n")
        (tmp_path / "b.js").write_text("const { a } = obj\n")
        (tmp_path / "notes.txt").write_text("await nothing\n")

        report = detect_patterns(tmp_path)
        assert report.files_scanned == 3
        assert report.source_files_scanned == 2
        coding = {p.name: p for p in report.coding_patterns}
        assert coding["Async/Await"].occurrences == 1
        assert coding["Async/Await"].examples == ("a.js",)
        assert coding["Destructuring"].occurrences == 1
        # 1 of 3 visited files is 33%.
        assert coding["Async/Await"].confidence == "high"

    def test_python_patterns(self, tmp_path: Path) -> None:
        (tmp_path / "svc.py").write_text(
            "@app.get('/')\ndef index(name: str) -> str:\n    return f'hi {name}'\n"
        )
        names = {p.name for p in detect_patterns(tmp_path).coding_patterns}
        assert {"Type Hints", "F-Strings", "Decorators"} <= names

    def test_sorted_descending(self, tmp_path: Path) -> None:
        for i in range(4):
            (tmp_path / f"c{i}.cy.js").write_text("cy.visit('/')\n")
        (tmp_path / "x.module.scss").write_text("")

        report = detect_patterns(tmp_path)
        counts = [p.file_count for p in report.framework_patterns]
        assert counts == sorted(counts, reverse=True)

    def test_excluded_dirs_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "lib.js").write_text("await x\n")
        (tmp_path / "vendor").mkdir()
        (tmp_path / "vendor" / "lib.js").write_text("await x\n")

        report = detect_patterns(tmp_path)
        assert report.files_scanned == 0
        assert report.coding_patterns == ()

    def test_file_cap(self, tmp_path: Path) -> None:
        for i in range(10):
            (tmp_path / f"m{i}.js").write_text("x?.y\n")
        report = detect_patterns(tmp_path, DetectionSettings(pattern_max_files=4))
        assert report.files_scanned == 4
        assert report.truncated is True

    def test_unreadable_content_not_counted(self, tmp_path: Path) -> None:
        (tmp_path / "bin.jsx").write_bytes(b"\xff\xfe\x00React.")
        report = detect_patterns(tmp_path)
        assert all(p.name != "React Components" for p in report.framework_patterns)

    def test_idempotent(self, react_vite_project: Path) -> None:
        assert detect_patterns(react_vite_project) == detect_patterns(react_vite_project)


class TestExtractKeyPatterns:
    def test_high_only(self) -> None:
        report = PatternReport(
            framework_patterns=(
                FilePatternSignal("Jest Tests", 12, "high"),
                FilePatternSignal("GraphQL", 2, "low"),
            ),
            coding_patterns=(
                CodingPatternSignal("Async/Await", "Modern asynchronous", 40, "high"),
                CodingPatternSignal("Spread Operator", "ES6 spread", 1, "low"),
            ),
        )
        assert extract_key_patterns(report) == [
            {"type": "framework", "name": "Jest Tests", "details": "Used in 12 files"},
            {"type": "coding", "name": "Async/Await", "details": "Modern asynchronous"},
        ]

    def test_coding_limited_to_five(self) -> None:
        report = PatternReport(
            coding_patterns=tuple(
                CodingPatternSignal(f"P{i}", "d", 10, "high") for i in range(8)
            )
        )
        assert len(extract_key_patterns(report)) == 5
