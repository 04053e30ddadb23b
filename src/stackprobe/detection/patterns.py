"""File-pattern and coding-pattern detection by content matching."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from stackprobe.detection.config import DEFAULT_SETTINGS, DetectionSettings
from stackprobe.detection.models import (
    HIGH,
    LOW,
    MEDIUM,
    CodingPatternSignal,
    FilePatternSignal,
    PatternReport,
)
from stackprobe.detection.walker import PATTERN_EXCLUDED, WalkState, walk

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

MAX_EXAMPLES = 3


@dataclass(frozen=True)
class FilePatternRule:
    """A file counts when its name ends with a suffix and, if indicators are
    declared, its content contains at least one of them."""

    label: str
    suffixes: tuple[str, ...]
    indicators: tuple[str, ...] = ()


@dataclass(frozen=True)
class CodingPatternRule:
    label: str
    regex: re.Pattern[str]
    description: str


FILE_PATTERNS: Mapping[str, FilePatternRule] = MappingProxyType(
    {
        "react_component": FilePatternRule(
            "React Components", (".jsx", ".tsx"), ("React.", "useState", "useEffect", "Component")
        ),
        "react_hooks": FilePatternRule(
            "React Hooks",
            (".js", ".ts", ".jsx", ".tsx"),
            ("use", "useState", "useEffect", "useContext", "useMemo", "useCallback"),
        ),
        "redux": FilePatternRule(
            "Redux Toolkit",
            (".js", ".ts"),
            ("createSlice", "createAction", "configureStore", "useSelector", "useDispatch"),
        ),
        "zustand": FilePatternRule(
            "Zustand State Management", (".js", ".ts"), ("create(", "zustand")
        ),
        "api_routes": FilePatternRule(
            "REST API Routes",
            (".js", ".ts"),
            ("router.", "app.get", "app.post", "express.Router", "fastify."),
        ),
        "graphql": FilePatternRule(
            "GraphQL",
            (".js", ".ts", ".graphql", ".gql"),
            ("gql`", "GraphQL", "useQuery", "useMutation", "resolver"),
        ),
        "jest": FilePatternRule(
            "Jest Tests",
            (".test.js", ".test.ts", ".spec.js", ".spec.ts"),
            ("describe(", "test(", "it(", "expect("),
        ),
        "cypress": FilePatternRule("Cypress E2E Tests", (".cy.js", ".cy.ts"), ("cy.", "cypress")),
        "typescript": FilePatternRule(
            "TypeScript", (".ts", ".tsx"), ("interface ", "type ", ": ", "enum ")
        ),
        "css_modules": FilePatternRule("CSS Modules", (".module.css", ".module.scss")),
        "styled_components": FilePatternRule(
            "Styled Components",
            (".js", ".ts", ".jsx", ".tsx"),
            ("styled.", "styled-components", "css`"),
        ),
        "tailwind": FilePatternRule(
            "Tailwind CSS", (".jsx", ".tsx", ".html"), ('className="', "className={")
        ),
    }
)

CODING_PATTERNS: Mapping[str, CodingPatternRule] = MappingProxyType(
    {
        "async_await": CodingPatternRule(
            "Async/Await",
            re.compile(r"async\s+.*?\s*\(|await\s+"),
            "Modern asynchronous JavaScript patterns",
        ),
        "arrow_functions": CodingPatternRule(
            "Arrow Functions", re.compile(r"=>\s*\{|=>\s*\("), "ES6 arrow function syntax"
        ),
        "destructuring": CodingPatternRule(
            "Destructuring", re.compile(r"const\s*\{.*?\}\s*="), "ES6 destructuring assignment"
        ),
        "spread_operator": CodingPatternRule(
            "Spread Operator", re.compile(r"\.\.\.\w+"), "ES6 spread syntax"
        ),
        "optional_chaining": CodingPatternRule(
            "Optional Chaining", re.compile(r"\?\."), "Optional chaining operator"
        ),
        "nullish_coalescing": CodingPatternRule(
            "Nullish Coalescing", re.compile(r"\?\?"), "Nullish coalescing operator"
        ),
        "template_literals": CodingPatternRule(
            "Template Literals", re.compile(r"`.*?\$\{.*?\}.*?`"), "Template literal strings"
        ),
        "type_hints": CodingPatternRule(
            "Type Hints", re.compile(r"def\s+\w+\(.*?\)\s*->"), "Python function annotations"
        ),
        "f_strings": CodingPatternRule(
            "F-Strings", re.compile(r"\bf[\"'][^\"'\n]*\{"), "Python formatted string literals"
        ),
        "decorators": CodingPatternRule(
            "Decorators",
            re.compile(r"^\s*@[A-Za-z_][\w.]*", re.MULTILINE),
            "Decorator-based composition",
        ),
    }
)

SOURCE_EXTENSIONS = frozenset({".js", ".ts", ".jsx", ".tsx", ".py", ".go", ".rs"})


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------


def file_pattern_confidence(
    count: int,
    *,
    high: int = DEFAULT_SETTINGS.file_pattern_high,
    medium: int = DEFAULT_SETTINGS.file_pattern_medium,
) -> str:
    if count >= high:
        return HIGH
    if count >= medium:
        return MEDIUM
    return LOW


def coding_pattern_confidence(
    occurrences: int,
    total_files: int,
    *,
    high_pct: float = DEFAULT_SETTINGS.coding_pattern_high_pct,
    medium_pct: float = DEFAULT_SETTINGS.coding_pattern_medium_pct,
) -> str:
    if total_files <= 0:
        return LOW
    percentage = occurrences / total_files * 100
    if percentage >= high_pct:
        return HIGH
    if percentage >= medium_pct:
        return MEDIUM
    return LOW


# ---------------------------------------------------------------------------
# Scan
# ---------------------------------------------------------------------------


@dataclass
class _PatternTally:
    """Per-scan accumulator, owned by one :func:`detect_patterns` call."""

    file_counts: dict[str, int] = field(default_factory=dict)
    file_examples: dict[str, list[str]] = field(default_factory=dict)
    coding_counts: dict[str, int] = field(default_factory=dict)
    coding_examples: dict[str, list[str]] = field(default_factory=dict)
    source_files: int = 0


def _read_text(path: Path) -> str:
    """Read file text, returning empty string on errors."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return ""


def _add_example(examples: dict[str, list[str]], key: str, rel_path: str) -> None:
    bucket = examples.setdefault(key, [])
    if len(bucket) < MAX_EXAMPLES:
        bucket.append(rel_path)


def _analyze_file(path: Path, name: str, rel_path: str, tally: _PatternTally) -> None:
    content: str | None = None

    for key, rule in FILE_PATTERNS.items():
        if not name.endswith(rule.suffixes):
            continue
        # Tentative match; retracted below if no indicator is present.
        tally.file_counts[key] = tally.file_counts.get(key, 0) + 1
        if rule.indicators:
            if content is None:
                content = _read_text(path)
            if not any(indicator in content for indicator in rule.indicators):
                tally.file_counts[key] -= 1
                continue
        _add_example(tally.file_examples, key, rel_path)

    if os.path.splitext(name)[1] not in SOURCE_EXTENSIONS:
        return
    if content is None:
        content = _read_text(path)
    tally.source_files += 1
    for key, coding_rule in CODING_PATTERNS.items():
        if coding_rule.regex.search(content):
            tally.coding_counts[key] = tally.coding_counts.get(key, 0) + 1
            _add_example(tally.coding_examples, key, rel_path)


def detect_patterns(
    project_root: Path,
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> PatternReport:
    """Scan up to ``settings.pattern_max_files`` files for code patterns."""
    state = WalkState()
    tally = _PatternTally()

    for entry in walk(
        project_root,
        max_depth=settings.pattern_max_depth,
        max_files=settings.pattern_max_files,
        excluded=PATTERN_EXCLUDED,
        state=state,
    ):
        if not entry.is_dir:
            _analyze_file(entry.path, entry.name, entry.rel_path, tally)

    framework_patterns = [
        FilePatternSignal(
            name=rule.label,
            file_count=tally.file_counts[key],
            confidence=file_pattern_confidence(
                tally.file_counts[key],
                high=settings.file_pattern_high,
                medium=settings.file_pattern_medium,
            ),
            examples=tuple(tally.file_examples.get(key, ())),
        )
        for key, rule in FILE_PATTERNS.items()
        if tally.file_counts.get(key, 0) > 0
    ]
    framework_patterns.sort(key=lambda p: p.file_count, reverse=True)

    coding_patterns = [
        CodingPatternSignal(
            name=rule.label,
            description=rule.description,
            occurrences=tally.coding_counts[key],
            confidence=coding_pattern_confidence(
                tally.coding_counts[key],
                state.files_visited,
                high_pct=settings.coding_pattern_high_pct,
                medium_pct=settings.coding_pattern_medium_pct,
            ),
            examples=tuple(tally.coding_examples.get(key, ())),
        )
        for key, rule in CODING_PATTERNS.items()
        if tally.coding_counts.get(key, 0) > 0
    ]
    coding_patterns.sort(key=lambda p: p.occurrences, reverse=True)

    logger.debug(
        "Pattern scan of %s: %d files, %d source files",
        project_root,
        state.files_visited,
        tally.source_files,
    )
    return PatternReport(
        framework_patterns=tuple(framework_patterns),
        coding_patterns=tuple(coding_patterns),
        files_scanned=state.files_visited,
        source_files_scanned=tally.source_files,
        truncated=state.truncated,
    )


def extract_key_patterns(report: PatternReport) -> list[dict[str, str]]:
    """High-confidence file patterns plus the top five coding patterns."""
    key: list[dict[str, str]] = [
        {
            "type": "framework",
            "name": pattern.name,
            "details": f"Used in {pattern.file_count} files",
        }
        for pattern in report.framework_patterns
        if pattern.confidence == HIGH
    ]
    coding_high = [p for p in report.coding_patterns if p.confidence == HIGH]
    key.extend(
        {"type": "coding", "name": p.name, "details": p.description} for p in coding_high[:5]
    )
    return key
