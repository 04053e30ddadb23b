"""Extension-based language classification."""

from __future__ import annotations

import logging
import os
from types import MappingProxyType
from typing import TYPE_CHECKING

from stackprobe.detection.config import DEFAULT_SETTINGS, DetectionSettings
from stackprobe.detection.models import LanguageSignal
from stackprobe.detection.walker import TECH_EXCLUDED, WalkState, walk

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

# Display name -> extensions.  Order breaks ties between equal counts.
LANGUAGE_EXTENSIONS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "TypeScript": (".ts", ".tsx"),
        "JavaScript": (".js", ".jsx", ".mjs", ".cjs"),
        "Python": (".py",),
        "Rust": (".rs",),
        "Go": (".go",),
        "Swift": (".swift",),
        "Kotlin": (".kt", ".kts"),
        "Java": (".java",),
        "PHP": (".php",),
        "Ruby": (".rb",),
    }
)

_EXTENSION_TO_LANGUAGE: Mapping[str, str] = MappingProxyType(
    {ext: name for name, exts in LANGUAGE_EXTENSIONS.items() for ext in exts}
)


def language_for(filename: str) -> str | None:
    """Return the language owning *filename*'s extension (case-sensitive)."""
    return _EXTENSION_TO_LANGUAGE.get(os.path.splitext(filename)[1])


def classify_counts(
    counts: dict[str, int],
    *,
    primary_ratio: float = DEFAULT_SETTINGS.primary_language_ratio,
) -> tuple[LanguageSignal, ...]:
    """Turn per-language counts into sorted signals.

    A language is primary when its share of matched files is strictly
    greater than *primary_ratio*.
    """
    total = sum(counts.values())
    signals = [
        LanguageSignal(
            name=name,
            extensions=exts,
            file_count=counts.get(name, 0),
            primary=total > 0 and counts.get(name, 0) / total > primary_ratio,
        )
        for name, exts in LANGUAGE_EXTENSIONS.items()
        if counts.get(name, 0) > 0
    ]
    # list.sort is stable: equal counts keep table order.
    signals.sort(key=lambda s: s.file_count, reverse=True)
    return tuple(signals)


def detect_languages(
    project_root: Path,
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> tuple[LanguageSignal, ...]:
    """Count files per known language over one bounded walk."""
    counts: dict[str, int] = {}
    state = WalkState()
    for entry in walk(
        project_root,
        max_depth=settings.language_max_depth,
        max_files=settings.language_max_files,
        excluded=TECH_EXCLUDED,
        state=state,
    ):
        if entry.is_dir:
            continue
        language = language_for(entry.name)
        if language is not None:
            counts[language] = counts.get(language, 0) + 1

    if state.truncated:
        logger.debug("Language scan stopped at %d files", state.files_visited)
    return classify_counts(counts, primary_ratio=settings.primary_language_ratio)
