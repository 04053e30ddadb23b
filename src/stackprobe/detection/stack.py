"""Aggregate technology stack detection."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from stackprobe.detection.build_tools import detect_build_tools, detect_package_manager
from stackprobe.detection.config import DEFAULT_SETTINGS, DetectionSettings
from stackprobe.detection.docs_parser import parse_documentation
from stackprobe.detection.frameworks import detect_frameworks
from stackprobe.detection.languages import detect_languages
from stackprobe.detection.manifest import read_manifest
from stackprobe.detection.models import (
    DocumentationProfile,
    LanguageSignal,
    ManifestInfo,
    PatternReport,
    StructureAnalysis,
    TechStackDetection,
)
from stackprobe.detection.patterns import detect_patterns
from stackprobe.detection.structure import analyze_structure

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def empty_detection(project_name: str = "") -> TechStackDetection:
    """Profile for a missing, empty or unreadable project."""
    return TechStackDetection(
        has_existing_app=False,
        detected_at=_now(),
        project_name=project_name,
    )


def _is_empty(project_root: Path) -> bool:
    if not project_root.is_dir():
        return True
    return next(project_root.iterdir(), None) is None


def _compose(
    project_root: Path,
    manifest: ManifestInfo | None,
    structure: StructureAnalysis,
    languages: tuple[LanguageSignal, ...],
    patterns: PatternReport,
    documentation: DocumentationProfile,
) -> TechStackDetection:
    frameworks = detect_frameworks(project_root, manifest, structure.project)
    build_tools = detect_build_tools(project_root, manifest)
    package_manager = detect_package_manager(project_root)

    detection = TechStackDetection(
        has_existing_app=manifest is not None or bool(frameworks) or bool(languages),
        detected_at=_now(),
        project_name=project_root.name,
        manifest=manifest,
        project_structure=structure.project,
        frameworks=frameworks,
        languages=languages,
        build_tools=build_tools,
        package_manager=package_manager,
        structure=structure,
        patterns=patterns,
        documentation=documentation,
    )
    logger.info(
        "Detected %s project at %s: %d language(s), %d framework(s), %d build tool(s)",
        structure.project.project_type,
        project_root,
        len(languages),
        len(frameworks),
        len(build_tools),
    )
    return detection


def detect_technology_stack(
    project_root: Path,
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> TechStackDetection:
    """Scan *project_root* and return its profile.

    Never raises for classification problems: a missing, empty or
    unreadable root yields an empty profile.
    """
    try:
        if _is_empty(project_root):
            return empty_detection(project_root.name)

        manifest = read_manifest(project_root)
        structure = analyze_structure(project_root, settings)
        languages = detect_languages(project_root, settings)
        patterns = detect_patterns(project_root, settings)
        documentation = parse_documentation(project_root, manifest)
        return _compose(project_root, manifest, structure, languages, patterns, documentation)
    except OSError as exc:
        logger.warning("Error detecting technology stack in %s: %s", project_root, exc)
        return empty_detection(project_root.name)


async def detect_technology_stack_async(
    project_root: Path,
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> TechStackDetection:
    """Like :func:`detect_technology_stack`, running the walks concurrently.

    The detectors only read the tree, so they share nothing but the root.
    """
    try:
        if await asyncio.to_thread(_is_empty, project_root):
            return empty_detection(project_root.name)

        manifest = await asyncio.to_thread(read_manifest, project_root)
        structure, languages, patterns, documentation = await asyncio.gather(
            asyncio.to_thread(analyze_structure, project_root, settings),
            asyncio.to_thread(detect_languages, project_root, settings),
            asyncio.to_thread(detect_patterns, project_root, settings),
            asyncio.to_thread(parse_documentation, project_root, manifest),
        )
        return await asyncio.to_thread(
            _compose, project_root, manifest, structure, languages, patterns, documentation
        )
    except OSError as exc:
        logger.warning("Error detecting technology stack in %s: %s", project_root, exc)
        return empty_detection(project_root.name)
