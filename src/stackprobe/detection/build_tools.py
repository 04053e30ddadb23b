"""Build tool and package manager detection."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING

from stackprobe.detection.models import BuildTool, PackageManager

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from stackprobe.detection.models import ManifestInfo

# Tool name -> (config file, purpose).
BUILD_TOOLS: Mapping[str, tuple[str, str]] = MappingProxyType(
    {
        "vite": ("vite.config.js", "Fast build tool for modern web projects"),
        "webpack": ("webpack.config.js", "Module bundler"),
        "rollup": ("rollup.config.js", "Module bundler for libraries"),
        "esbuild": ("esbuild.config.js", "Extremely fast bundler"),
        "parcel": (".parcelrc", "Zero-config bundler"),
        "turbo": ("turbo.json", "High-performance build system for monorepos"),
        "nx": ("nx.json", "Smart monorepo build system"),
    }
)

# Checked in order; the first lockfile present wins.
LOCKFILES: tuple[tuple[str, PackageManager], ...] = (
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
    ("package-lock.json", PackageManager.NPM),
)


def detect_build_tools(
    project_root: Path,
    manifest: ManifestInfo | None,
) -> tuple[BuildTool, ...]:
    """Union of config-file hits and dependency hits, one entry per tool."""
    detected: dict[str, BuildTool] = {}

    for name, (config_file, purpose) in BUILD_TOOLS.items():
        if (project_root / config_file).exists():
            detected[name] = BuildTool(name, config_file, purpose)

    if manifest is not None:
        deps = manifest.all_dependencies
        for name, (config_file, purpose) in BUILD_TOOLS.items():
            if name in deps and name not in detected:
                detected[name] = BuildTool(name, config_file, purpose)

    return tuple(detected.values())


def detect_package_manager(project_root: Path) -> PackageManager:
    """Resolve the package manager from lockfiles (pnpm > yarn > npm)."""
    for lockfile, manager in LOCKFILES:
        if (project_root / lockfile).exists():
            return manager
    return PackageManager.UNKNOWN
