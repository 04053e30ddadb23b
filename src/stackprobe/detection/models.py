"""Profile data structures produced by the detectors.

Every type is a frozen dataclass holding tuples or read-only mappings, so a
profile cannot be changed once a detector has returned it.  ``to_dict()`` gives a
JSON-serializable view used by the CLI and by tests.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

# ---------------------------------------------------------------------------
# Confidence tiers
# ---------------------------------------------------------------------------

LOW = "low"
MEDIUM = "medium"
HIGH = "high"

_CONFIDENCE_RANK: Mapping[str, int] = MappingProxyType({LOW: 0, MEDIUM: 1, HIGH: 2})


def raise_confidence(current: str, candidate: str) -> str:
    """Return the stronger of two tiers; a tier is never lowered."""
    if _CONFIDENCE_RANK[candidate] > _CONFIDENCE_RANK[current]:
        return candidate
    return current


def _read_only(value: Mapping[str, Any]) -> Mapping[str, Any]:
    """Copy *value* into a mapping that cannot be mutated."""
    return MappingProxyType(dict(value))


class PackageManager(str, enum.Enum):
    """Package manager inferred from lockfiles."""

    PNPM = "pnpm"
    YARN = "yarn"
    NPM = "npm"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ManifestInfo:
    """Normalized package descriptor (package.json, pyproject.toml, ...)."""

    source: str
    name: str = "unknown"
    version: str = "0.0.0"
    module_type: str = "commonjs"
    description: str | None = None
    author: str | None = None
    license: str | None = None
    repository: str | None = None
    homepage: str | None = None
    keywords: tuple[str, ...] = ()
    engines: Mapping[str, str] = field(default_factory=dict, hash=False)
    dependencies: Mapping[str, str] = field(default_factory=dict, hash=False)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict, hash=False)
    scripts: Mapping[str, str] = field(default_factory=dict, hash=False)
    workspaces: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        for name in ("engines", "dependencies", "dev_dependencies", "scripts"):
            object.__setattr__(self, name, _read_only(getattr(self, name)))

    @property
    def all_dependencies(self) -> dict[str, str]:
        """Dependencies merged with dev dependencies (dev entries win)."""
        return {**self.dependencies, **self.dev_dependencies}

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "name": self.name,
            "version": self.version,
            "module_type": self.module_type,
            "description": self.description,
            "author": self.author,
            "license": self.license,
            "repository": self.repository,
            "homepage": self.homepage,
            "keywords": list(self.keywords),
            "engines": dict(self.engines),
            "dependencies": dict(self.dependencies),
            "dev_dependencies": dict(self.dev_dependencies),
            "scripts": dict(self.scripts),
            "workspaces": list(self.workspaces) if self.workspaces is not None else None,
        }


@dataclass(frozen=True)
class PackageMetadata:
    """Descriptive package fields surfaced in the documentation profile."""

    name: str = "unknown"
    version: str = "0.0.0"
    description: str | None = None
    author: str | None = None
    license: str | None = None
    repository: str | None = None
    homepage: str | None = None
    keywords: tuple[str, ...] = ()

    @classmethod
    def from_manifest(cls, manifest: ManifestInfo) -> PackageMetadata:
        return cls(
            name=manifest.name,
            version=manifest.version,
            description=manifest.description,
            author=manifest.author,
            license=manifest.license,
            repository=manifest.repository,
            homepage=manifest.homepage,
            keywords=manifest.keywords,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["keywords"] = list(self.keywords)
        return data


# ---------------------------------------------------------------------------
# Stack signals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LanguageSignal:
    name: str
    extensions: tuple[str, ...]
    file_count: int
    primary: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "extensions": list(self.extensions),
            "file_count": self.file_count,
            "primary": self.primary,
        }


@dataclass(frozen=True)
class FrameworkSignal:
    name: str
    category: str  # frontend, backend, build, testing, mobile, language
    version: str
    confidence: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BuildTool:
    name: str
    config_file: str
    purpose: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectStructure:
    """Project-type verdict plus the directories and root files it saw."""

    project_type: str = "unknown"
    has_backend: bool = False
    has_frontend: bool = False
    directories: tuple[str, ...] = ()
    key_files: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_type": self.project_type,
            "has_backend": self.has_backend,
            "has_frontend": self.has_frontend,
            "directories": list(self.directories),
            "key_files": list(self.key_files),
        }


@dataclass(frozen=True)
class DirectoryInfo:
    name: str
    path: str
    depth: int


@dataclass(frozen=True)
class CategorizedDirectory:
    name: str
    path: str
    purpose: str


@dataclass(frozen=True)
class EntryPoint:
    file: str
    kind: str


@dataclass(frozen=True)
class ArchitecturalPattern:
    name: str
    confidence: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StructureAnalysis:
    """Full result of one structure walk."""

    directories: tuple[DirectoryInfo, ...] = ()
    organized_by_type: Mapping[str, tuple[CategorizedDirectory, ...]] = field(
        default_factory=dict, hash=False
    )
    entry_points: tuple[EntryPoint, ...] = ()
    depth: int = 0
    file_count: int = 0
    directory_count: int = 0
    patterns: tuple[ArchitecturalPattern, ...] = ()
    truncated: bool = False
    project: ProjectStructure = field(default_factory=ProjectStructure)

    def __post_init__(self) -> None:
        object.__setattr__(self, "organized_by_type", _read_only(self.organized_by_type))

    def to_dict(self) -> dict[str, Any]:
        return {
            "directories": [asdict(d) for d in self.directories],
            "organized_by_type": {
                kind: [asdict(d) for d in dirs]
                for kind, dirs in self.organized_by_type.items()
            },
            "entry_points": [asdict(e) for e in self.entry_points],
            "depth": self.depth,
            "file_count": self.file_count,
            "directory_count": self.directory_count,
            "patterns": [p.to_dict() for p in self.patterns],
            "truncated": self.truncated,
            "project": self.project.to_dict(),
        }


# ---------------------------------------------------------------------------
# Code patterns
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilePatternSignal:
    name: str
    file_count: int
    confidence: str
    examples: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["examples"] = list(self.examples)
        return data


@dataclass(frozen=True)
class CodingPatternSignal:
    name: str
    description: str
    occurrences: int
    confidence: str
    examples: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["examples"] = list(self.examples)
        return data


@dataclass(frozen=True)
class PatternReport:
    framework_patterns: tuple[FilePatternSignal, ...] = ()
    coding_patterns: tuple[CodingPatternSignal, ...] = ()
    files_scanned: int = 0
    source_files_scanned: int = 0
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "framework_patterns": [p.to_dict() for p in self.framework_patterns],
            "coding_patterns": [p.to_dict() for p in self.coding_patterns],
            "files_scanned": self.files_scanned,
            "source_files_scanned": self.source_files_scanned,
            "truncated": self.truncated,
        }


# ---------------------------------------------------------------------------
# Documentation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MarkdownSection:
    heading: str
    level: int
    content: str


@dataclass(frozen=True)
class ParsedDocument:
    filename: str
    sections: tuple[MarkdownSection, ...] = ()
    description: str | None = None
    features: tuple[str, ...] = ()
    setup: str | None = None
    architecture: str | None = None
    full_content: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "sections": [asdict(s) for s in self.sections],
            "description": self.description,
            "features": list(self.features),
            "setup": self.setup,
            "architecture": self.architecture,
        }


@dataclass(frozen=True)
class AdditionalDoc:
    file: str
    document: ParsedDocument

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, **self.document.to_dict()}


@dataclass(frozen=True)
class DocumentationProfile:
    readme: ParsedDocument | None = None
    architecture: ParsedDocument | None = None
    setup: ParsedDocument | None = None
    api: ParsedDocument | None = None
    contributing: ParsedDocument | None = None
    additional_docs: tuple[AdditionalDoc, ...] = ()
    package_metadata: PackageMetadata | None = None
    has_documentation: bool = False

    def to_dict(self) -> dict[str, Any]:
        def _doc(doc: ParsedDocument | None) -> dict[str, Any] | None:
            return doc.to_dict() if doc is not None else None

        return {
            "readme": _doc(self.readme),
            "architecture": _doc(self.architecture),
            "setup": _doc(self.setup),
            "api": _doc(self.api),
            "contributing": _doc(self.contributing),
            "additional_docs": [d.to_dict() for d in self.additional_docs],
            "package_metadata": (
                self.package_metadata.to_dict() if self.package_metadata is not None else None
            ),
            "has_documentation": self.has_documentation,
        }


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TechStackDetection:
    """Aggregate profile of one project scan."""

    has_existing_app: bool
    detected_at: str
    project_name: str = ""
    manifest: ManifestInfo | None = None
    project_structure: ProjectStructure = field(default_factory=ProjectStructure)
    frameworks: tuple[FrameworkSignal, ...] = ()
    languages: tuple[LanguageSignal, ...] = ()
    build_tools: tuple[BuildTool, ...] = ()
    package_manager: PackageManager = PackageManager.UNKNOWN
    structure: StructureAnalysis = field(default_factory=StructureAnalysis)
    patterns: PatternReport = field(default_factory=PatternReport)
    documentation: DocumentationProfile = field(default_factory=DocumentationProfile)

    def to_dict(self, *, include_timestamp: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "has_existing_app": self.has_existing_app,
            "project_name": self.project_name,
            "manifest": self.manifest.to_dict() if self.manifest is not None else None,
            "project_structure": self.project_structure.to_dict(),
            "frameworks": [f.to_dict() for f in self.frameworks],
            "languages": [lang.to_dict() for lang in self.languages],
            "build_tools": [t.to_dict() for t in self.build_tools],
            "package_manager": self.package_manager.value,
            "structure": self.structure.to_dict(),
            "patterns": self.patterns.to_dict(),
            "documentation": self.documentation.to_dict(),
        }
        if include_timestamp:
            data["detected_at"] = self.detected_at
        return data
