"""Tests for stackprobe.detection.build_tools: build tools and lockfiles."""

from __future__ import annotations

from typing import TYPE_CHECKING

from stackprobe.detection.build_tools import detect_build_tools, detect_package_manager
from stackprobe.detection.models import BuildTool, ManifestInfo, PackageManager

if TYPE_CHECKING:
    from pathlib import Path


class TestDetectBuildTools:
    def test_nothing(self, tmp_path: Path) -> None:
        assert detect_build_tools(tmp_path, None) == ()

    def test_config_file_only(self, tmp_path: Path) -> None:
        (tmp_path / "turbo.json").write_text("{}")
        tools = detect_build_tools(tmp_path, None)
        assert tools == (
            BuildTool("turbo", "turbo.json", "High-performance build system for monorepos"),
        )

    def test_dependency_only(self, tmp_path: Path) -> None:
        manifest = ManifestInfo(source="package.json", dev_dependencies={"rollup": "^3.0.0"})
        (tool,) = detect_build_tools(tmp_path, manifest)
        assert tool.name == "rollup"
        assert tool.config_file == "rollup.config.js"

    def test_config_and_dependency_deduplicated(self, react_vite_project: Path) -> None:
        manifest = ManifestInfo(source="package.json", dev_dependencies={"vite": "^4.0.0"})
        tools = detect_build_tools(react_vite_project, manifest)
        assert [t.name for t in tools] == ["vite"]
        assert tools[0].config_file == "vite.config.js"


class TestDetectPackageManager:
    def test_unknown_without_lockfile(self, tmp_path: Path) -> None:
        assert detect_package_manager(tmp_path) is PackageManager.UNKNOWN

    def test_npm(self, tmp_path: Path) -> None:
        (tmp_path / "package-lock.json").write_text("{}")
        assert detect_package_manager(tmp_path) is PackageManager.NPM

    def test_yarn_over_npm(self, tmp_path: Path) -> None:
        (tmp_path / "package-lock.json").write_text("{}")
        (tmp_path / "yarn.lock").write_text("")
        assert detect_package_manager(tmp_path) is PackageManager.YARN

    def test_pnpm_over_yarn(self, tmp_path: Path) -> None:
        (tmp_path / "yarn.lock").write_text("")
        (tmp_path / "pnpm-lock.yaml").write_text("")
        assert detect_package_manager(tmp_path) is PackageManager.PNPM
        assert detect_package_manager(tmp_path).value == "pnpm"
