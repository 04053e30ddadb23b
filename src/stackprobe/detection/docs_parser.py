"""Markdown documentation discovery and sectioning."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from stackprobe.detection.manifest import read_manifest
from stackprobe.detection.models import (
    AdditionalDoc,
    DocumentationProfile,
    MarkdownSection,
    PackageMetadata,
    ParsedDocument,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from stackprobe.detection.models import ManifestInfo

logger = logging.getLogger(__name__)

# Root-level files, matched by exact name.
DOC_FILES: tuple[str, ...] = (
    "README.md",
    "readme.md",
    "Readme.md",
    "CONTRIBUTING.md",
    "ARCHITECTURE.md",
    "DESIGN.md",
    "API.md",
    "SETUP.md",
    "GETTING_STARTED.md",
)

# Directories scanned one level deep for *.md.
DOC_DIRS: tuple[str, ...] = ("docs", "documentation", "doc", ".github")

# Bucket -> lowercase filename substrings, in priority order.
_BUCKETS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("readme", ("readme",)),
    ("architecture", ("architecture", "design")),
    ("setup", ("setup", "getting")),
    ("api", ("api",)),
    ("contributing", ("contributing",)),
)

FEATURE_KEYWORDS = ("feature", "what", "capability")
SETUP_KEYWORDS = ("setup", "install", "getting started", "quick start")
ARCHITECTURE_KEYWORDS = ("architecture", "design", "structure", "how it works")

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_BULLET_PREFIX_RE = re.compile(r"^[\s\-*+]*")


# ---------------------------------------------------------------------------
# Markdown parsing
# ---------------------------------------------------------------------------


def split_sections(content: str) -> tuple[MarkdownSection, ...]:
    """Split markdown into heading-delimited sections.

    Text before the first heading belongs to no section.
    """
    sections: list[MarkdownSection] = []
    heading: str | None = None
    level = 0
    body: list[str] = []

    for line in content.split("\n"):
        match = _HEADING_RE.match(line)
        if match is not None:
            if heading is not None:
                sections.append(MarkdownSection(heading, level, "\n".join(body).strip()))
            heading = match.group(2).strip()
            level = len(match.group(1))
            body = []
        else:
            body.append(line)

    if heading is not None:
        sections.append(MarkdownSection(heading, level, "\n".join(body).strip()))
    return tuple(sections)


def extract_description(content: str) -> str | None:
    """Return the first non-heading paragraph, or None."""
    paragraph: list[str] = []

    for line in content.split("\n"):
        stripped = line.strip()
        if line.startswith("#"):
            if paragraph:
                break
            continue
        if not stripped:
            if paragraph:
                break
            continue
        paragraph.append(stripped)

    return " ".join(paragraph) or None


def _matching(
    sections: Iterable[MarkdownSection], keywords: Sequence[str]
) -> list[MarkdownSection]:
    return [s for s in sections if any(k in s.heading.lower() for k in keywords)]


def extract_features(sections: Sequence[MarkdownSection]) -> tuple[str, ...]:
    """Collect ``-``/``*`` list items from feature-like sections, in order."""
    features: list[str] = []
    for section in _matching(sections, FEATURE_KEYWORDS):
        for line in section.content.split("\n"):
            stripped = line.strip()
            if not stripped.startswith(("-", "*")):
                continue
            feature = _BULLET_PREFIX_RE.sub("", line).strip()
            if feature:
                features.append(feature)
    return tuple(features)


def _join_bodies(sections: Sequence[MarkdownSection], keywords: Sequence[str]) -> str | None:
    matched = _matching(sections, keywords)
    if not matched:
        return None
    return "\n\n".join(s.content for s in matched)


def extract_setup(sections: Sequence[MarkdownSection]) -> str | None:
    return _join_bodies(sections, SETUP_KEYWORDS)


def extract_architecture(sections: Sequence[MarkdownSection]) -> str | None:
    return _join_bodies(sections, ARCHITECTURE_KEYWORDS)


def parse_markdown(content: str, filename: str) -> ParsedDocument:
    """Parse one markdown file into sections and extracted facts."""
    sections = split_sections(content)
    return ParsedDocument(
        filename=filename,
        sections=sections,
        description=extract_description(content),
        features=extract_features(sections),
        setup=extract_setup(sections),
        architecture=extract_architecture(sections),
        full_content=content,
    )


def classify_doc_name(filename: str) -> str | None:
    """Return the bucket for a root doc file, or None for additional docs."""
    lower = filename.lower()
    for bucket, needles in _BUCKETS:
        if any(n in lower for n in needles):
            return bucket
    return None


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


def _read_doc(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping unreadable doc %s: %s", path, exc)
        return None


def _list_names(directory: Path) -> list[str]:
    try:
        return sorted(item.name for item in directory.iterdir() if item.is_file())
    except OSError as exc:
        logger.debug("Cannot list %s: %s", directory, exc)
        return []


def parse_documentation(
    project_root: Path,
    manifest: ManifestInfo | None = None,
) -> DocumentationProfile:
    """Parse root documentation files and doc directories.

    *manifest* supplies package metadata; when omitted it is read from
    *project_root*.
    """
    buckets: dict[str, ParsedDocument] = {}
    additional: list[AdditionalDoc] = []

    root_names = set(_list_names(project_root)) if project_root.is_dir() else set()
    for doc_file in DOC_FILES:
        if doc_file not in root_names:
            continue
        content = _read_doc(project_root / doc_file)
        if content is None:
            continue
        parsed = parse_markdown(content, doc_file)
        bucket = classify_doc_name(doc_file)
        if bucket is not None and bucket not in buckets:
            buckets[bucket] = parsed
        else:
            additional.append(AdditionalDoc(doc_file, parsed))

    for doc_dir in DOC_DIRS:
        dir_path = project_root / doc_dir
        if not dir_path.is_dir():
            continue
        for name in _list_names(dir_path):
            if not name.endswith(".md"):
                continue
            content = _read_doc(dir_path / name)
            if content is None:
                continue
            additional.append(AdditionalDoc(f"{doc_dir}/{name}", parse_markdown(content, name)))

    if manifest is None:
        manifest = read_manifest(project_root)
    metadata = PackageMetadata.from_manifest(manifest) if manifest is not None else None

    readme = buckets.get("readme")
    architecture = buckets.get("architecture")
    return DocumentationProfile(
        readme=readme,
        architecture=architecture,
        setup=buckets.get("setup"),
        api=buckets.get("api"),
        contributing=buckets.get("contributing"),
        additional_docs=tuple(additional),
        package_metadata=metadata,
        has_documentation=readme is not None or architecture is not None or bool(additional),
    )


def extract_project_context(docs: DocumentationProfile) -> dict[str, Any]:
    """Summarize docs into name, description, features, setup, architecture."""
    context: dict[str, Any] = {
        "name": None,
        "description": None,
        "features": [],
        "setup": None,
        "architecture": None,
    }

    if docs.package_metadata is not None:
        context["name"] = docs.package_metadata.name
        context["description"] = docs.package_metadata.description

    if docs.readme is not None:
        if context["description"] is None:
            context["description"] = docs.readme.description
        context["features"] = list(docs.readme.features)
        context["setup"] = docs.readme.setup

    if docs.architecture is not None:
        context["architecture"] = docs.architecture.architecture or docs.architecture.full_content

    return context
