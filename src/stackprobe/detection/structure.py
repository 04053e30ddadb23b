"""Directory structure analysis: categories, entry points, project type, patterns."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from stackprobe.detection.config import DEFAULT_SETTINGS, DetectionSettings
from stackprobe.detection.manifest import MANIFEST_FILES
from stackprobe.detection.models import (
    HIGH,
    MEDIUM,
    ArchitecturalPattern,
    CategorizedDirectory,
    DirectoryInfo,
    EntryPoint,
    ProjectStructure,
    StructureAnalysis,
)
from stackprobe.detection.walker import STRUCTURE_EXCLUDED, WalkState, is_excluded, walk

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

# Lowercase directory name -> (type, purpose).
DIRECTORY_PATTERNS: Mapping[str, tuple[str, str]] = MappingProxyType(
    {
        # Source
        "src": ("source", "Main source code"),
        "lib": ("source", "Library code"),
        "app": ("source", "Application code"),
        # Components and routing
        "components": ("components", "Reusable UI components"),
        "pages": ("routing", "Page components"),
        "views": ("routing", "View components"),
        "screens": ("routing", "Screen components (mobile)"),
        "routes": ("routing", "Route handlers"),
        # Business logic
        "services": ("services", "Business logic services"),
        "api": ("services", "API layer"),
        "controllers": ("services", "Controllers"),
        "handlers": ("services", "Request handlers"),
        "models": ("data", "Data models"),
        "schemas": ("data", "Data schemas"),
        "entities": ("data", "Domain entities"),
        # State management
        "store": ("state", "State management"),
        "redux": ("state", "Redux state"),
        "reducers": ("state", "Redux reducers"),
        "actions": ("state", "Redux actions"),
        # Utilities
        "utils": ("utilities", "Utility functions"),
        "helpers": ("utilities", "Helper functions"),
        "hooks": ("utilities", "Custom React hooks"),
        # Configuration
        "config": ("configuration", "Configuration files"),
        "constants": ("configuration", "Constants"),
        # Testing
        "test": ("testing", "Test files"),
        "tests": ("testing", "Test files"),
        "__tests__": ("testing", "Jest tests"),
        "spec": ("testing", "Spec files"),
        # Documentation
        "docs": ("documentation", "Documentation"),
        "documentation": ("documentation", "Documentation"),
        # Assets and styles
        "assets": ("assets", "Static assets"),
        "images": ("assets", "Images"),
        "styles": ("styles", "Stylesheets"),
        "css": ("styles", "CSS files"),
        "scss": ("styles", "SCSS files"),
        # Backend
        "middleware": ("backend", "Middleware"),
        "database": ("backend", "Database layer"),
        "migrations": ("backend", "Database migrations"),
        # Mobile
        "android": ("mobile", "Android native code"),
        "ios": ("mobile", "iOS native code"),
    }
)

# Candidate entry points, checked in order by existence only.
ENTRY_POINT_CANDIDATES: tuple[tuple[str, str], ...] = (
    ("index.js", "javascript"),
    ("index.ts", "typescript"),
    ("main.js", "javascript"),
    ("main.ts", "typescript"),
    ("app.js", "javascript"),
    ("app.ts", "typescript"),
    ("server.js", "backend"),
    ("server.ts", "backend"),
    ("src/index.js", "frontend"),
    ("src/index.ts", "frontend"),
    ("src/index.tsx", "frontend"),
    ("src/App.js", "frontend"),
    ("src/App.jsx", "frontend"),
    ("src/App.tsx", "frontend"),
    ("src/main.ts", "frontend"),
    ("pages/_app.js", "nextjs"),
    ("pages/_app.tsx", "nextjs"),
    ("app/layout.tsx", "nextjs"),
    ("main.py", "python"),
    ("app.py", "python"),
    ("__main__.py", "python"),
    ("main.go", "go"),
    ("main.rs", "rust"),
    ("src/main.rs", "rust"),
)

BACKEND_DIRS = frozenset({"server", "backend", "api", "services"})
FRONTEND_DIRS = frozenset({"client", "frontend", "web", "app", "src"})
WORKSPACE_FILES = frozenset({"lerna.json", "pnpm-workspace.yaml", "rush.json"})
MONOREPO_DIRS = frozenset({"packages", "apps"})
MOBILE_DIRS = frozenset({"ios", "android"})


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def categorize_directories(
    directories: Iterable[DirectoryInfo],
) -> dict[str, tuple[CategorizedDirectory, ...]]:
    """Group directories by the type their basename maps to."""
    grouped: dict[str, list[CategorizedDirectory]] = {}
    for directory in directories:
        pattern = DIRECTORY_PATTERNS.get(directory.name.lower())
        if pattern is None:
            continue
        kind, purpose = pattern
        grouped.setdefault(kind, []).append(
            CategorizedDirectory(directory.name, directory.path, purpose)
        )
    return {kind: tuple(dirs) for kind, dirs in grouped.items()}


def resolve_project_type(top_dirs: Iterable[str], key_files: Iterable[str]) -> str:
    """Classify the project; the first matching rule wins."""
    dirs = {d.lower() for d in top_dirs}
    files = set(key_files)
    has_backend = bool(dirs & BACKEND_DIRS)
    has_frontend = bool(dirs & FRONTEND_DIRS)

    if files & WORKSPACE_FILES or dirs & MONOREPO_DIRS:
        return "monorepo"
    if dirs & MOBILE_DIRS or "app.json" in files:
        return "mobile"
    if has_backend and has_frontend:
        return "fullstack"
    if has_frontend or "src" in dirs:
        return "web-app"
    if has_backend:
        return "api"
    if files & MANIFEST_FILES:
        return "library"
    return "unknown"


def identify_patterns(
    directories: Iterable[DirectoryInfo],
    entry_points: Sequence[EntryPoint],
) -> tuple[ArchitecturalPattern, ...]:
    """Infer architectural patterns from directory names.

    Each test runs independently; any number of patterns may fire.
    """
    names = {d.name.lower() for d in directories}
    patterns: list[ArchitecturalPattern] = []

    if {"models", "views", "controllers"} <= names:
        patterns.append(
            ArchitecturalPattern("MVC", HIGH, "Model-View-Controller architecture detected")
        )
    if "components" in names:
        patterns.append(
            ArchitecturalPattern("Component-Based", HIGH, "Component-based architecture")
        )
    if "features" in names:
        patterns.append(
            ArchitecturalPattern("Feature-Based", HIGH, "Feature-based code organization")
        )
    if "services" in names and ("models" in names or "repositories" in names):
        patterns.append(
            ArchitecturalPattern(
                "Layered", MEDIUM, "Layered architecture with separation of concerns"
            )
        )
    if names & {"reducers", "actions", "store"}:
        patterns.append(ArchitecturalPattern("Redux", HIGH, "Redux state management pattern"))
    if names & {"api", "routes"}:
        patterns.append(ArchitecturalPattern("API-Driven", MEDIUM, "API-driven architecture"))
    if names & MONOREPO_DIRS:
        patterns.append(
            ArchitecturalPattern(
                "Monorepo", HIGH, "Monorepo structure with multiple packages/apps"
            )
        )

    entry_files = [e.file for e in entry_points]
    has_app_router = "app/layout.tsx" in entry_files
    if has_app_router:
        patterns.append(
            ArchitecturalPattern(
                "Next.js App Router", HIGH, "Next.js 13+ App Router architecture"
            )
        )
    elif any(f.startswith("pages/") for f in entry_files):
        patterns.append(
            ArchitecturalPattern("Next.js Pages Router", HIGH, "Next.js Pages Router architecture")
        )

    return tuple(patterns)


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


def detect_entry_points(project_root: Path) -> tuple[EntryPoint, ...]:
    """Return the candidate entry points that exist under *project_root*."""
    return tuple(
        EntryPoint(file, kind)
        for file, kind in ENTRY_POINT_CANDIDATES
        if (project_root / file).is_file()
    )


def _root_listing(project_root: Path) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Return the sorted root file and directory names, unaffected by walk caps."""
    files: list[str] = []
    dirs: list[str] = []
    try:
        for item in sorted(project_root.iterdir()):
            if is_excluded(item.name, STRUCTURE_EXCLUDED):
                continue
            if item.is_dir() and not item.is_symlink():
                dirs.append(item.name)
            elif item.is_file():
                files.append(item.name)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", project_root, exc)
    return tuple(files), tuple(dirs)


def analyze_structure(
    project_root: Path,
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> StructureAnalysis:
    """Walk the tree once and derive the full structure analysis.

    The project type comes from a separate root listing, so top-level
    directories count even when the walk stopped at its file cap.
    """
    state = WalkState()
    directories: list[DirectoryInfo] = []
    for entry in walk(
        project_root,
        max_depth=settings.structure_max_depth,
        max_files=settings.structure_max_files,
        excluded=STRUCTURE_EXCLUDED,
        state=state,
    ):
        if entry.is_dir:
            directories.append(DirectoryInfo(entry.name, entry.rel_path, entry.depth))

    key_files, top_dirs = _root_listing(project_root)
    lowered = {d.lower() for d in top_dirs}
    walked = [d.path for d in directories]
    seen = set(walked)
    project = ProjectStructure(
        project_type=resolve_project_type(top_dirs, key_files),
        has_backend=bool(lowered & BACKEND_DIRS),
        has_frontend=bool(lowered & FRONTEND_DIRS),
        directories=tuple(walked + [d for d in top_dirs if d not in seen]),
        key_files=key_files,
    )

    entry_points = detect_entry_points(project_root)
    return StructureAnalysis(
        directories=tuple(directories),
        organized_by_type=categorize_directories(directories),
        entry_points=entry_points,
        depth=state.max_depth_seen,
        file_count=state.files_visited,
        directory_count=state.dirs_visited,
        patterns=identify_patterns(directories, entry_points),
        truncated=state.truncated,
        project=project,
    )


def detect_project_structure(
    project_root: Path,
    settings: DetectionSettings = DEFAULT_SETTINGS,
) -> ProjectStructure:
    """Project-type verdict for *project_root*."""
    return analyze_structure(project_root, settings).project
