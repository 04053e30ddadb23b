"""Tests for stackprobe.detection.manifest: package descriptor reading."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

from stackprobe.detection.manifest import (
    MalformedManifestError,
    parse_package_json,
    parse_pyproject,
    parse_requirements,
    read_manifest,
    split_requirement,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestSplitRequirement:
    def test_name_and_specifier(self) -> None:
        assert split_requirement("fastapi>=0.100") == ("fastapi", ">=0.100")

    def test_bare_name(self) -> None:
        assert split_requirement("uvicorn") == ("uvicorn", "*")

    def test_extras_and_markers_dropped(self) -> None:
        assert split_requirement("Uvicorn[standard]==0.23; python_version>'3.8'") == (
            "uvicorn",
            "==0.23",
        )

    def test_comments_and_options_skipped(self) -> None:
        assert split_requirement("# pinned") is None
        assert split_requirement("-r base.txt") is None
        assert split_requirement("   ") is None


class TestParsePackageJson:
    def test_full_descriptor(self) -> None:
        manifest = parse_package_json(
            json.dumps(
                {
                    "name": "web",
                    "version": "2.0.0",
                    "type": "module",
                    "author": {"name": "Ada", "email": "ada@example.com"},
                    "repository": {"type": "git", "url": "https://example.com/web.git"},
                    "keywords": ["shop"],
                    "dependencies": {"react": "18.2.0"},
                    "devDependencies": {"vite": "^4.0.0"},
                    "workspaces": {"packages": ["packages/*"]},
                }
            )
        )
        assert manifest.source == "package.json"
        assert manifest.name == "web"
        assert manifest.module_type == "module"
        assert manifest.author == "Ada"
        assert manifest.repository == "https://example.com/web.git"
        assert manifest.keywords == ("shop",)
        assert manifest.workspaces == ("packages/*",)
        assert manifest.all_dependencies == {"react": "18.2.0", "vite": "^4.0.0"}

    def test_defaults_for_missing_fields(self) -> None:
        manifest = parse_package_json("{}")
        assert manifest.name == "unknown"
        assert manifest.version == "0.0.0"
        assert manifest.module_type == "commonjs"
        assert manifest.dependencies == {}
        assert manifest.workspaces is None

    def test_invalid_json(self) -> None:
        with pytest.raises(MalformedManifestError, match="package.json"):
            parse_package_json("{not json")

    def test_non_object(self) -> None:
        with pytest.raises(MalformedManifestError):
            parse_package_json("[1, 2]")

    def test_excessive_nesting(self) -> None:
        depth = 200_000
        with pytest.raises(MalformedManifestError, match="package.json"):
            parse_package_json("[" * depth + "]" * depth)


class TestParsePyproject:
    def test_project_table(self) -> None:
        manifest = parse_pyproject(
            "[project]\n"
            'name = "svc"\n'
            'version = "0.4.0"\n'
            'description = "A service"\n'
            'requires-python = ">=3.11"\n'
            'dependencies = ["fastapi>=0.100", "pydantic"]\n'
            "[project.optional-dependencies]\n"
            'dev = ["pytest>=8"]\n'
            "[project.scripts]\n"
            'svc = "svc.cli:main"\n'
        )
        assert manifest.source == "pyproject.toml"
        assert manifest.module_type == "python"
        assert manifest.name == "svc"
        assert manifest.engines == {"python": ">=3.11"}
        assert manifest.dependencies == {"fastapi": ">=0.100", "pydantic": "*"}
        assert manifest.dev_dependencies == {"pytest": ">=8"}
        assert manifest.scripts == {"svc": "svc.cli:main"}

    def test_without_project_table(self) -> None:
        manifest = parse_pyproject("[tool.black]\nline-length = 100\n")
        assert manifest.name == "unknown"
        assert manifest.dependencies == {}

    def test_invalid_toml(self) -> None:
        with pytest.raises(MalformedManifestError, match="pyproject.toml"):
            parse_pyproject("[project\nname=")


class TestParseRequirements:
    def test_lines(self) -> None:
        manifest = parse_requirements("Django==4.2\n# comment\n\nflask\n")
        assert manifest.source == "requirements.txt"
        assert manifest.dependencies == {"django": "==4.2", "flask": "*"}


class TestReadManifest:
    def test_absent(self, tmp_path: Path) -> None:
        assert read_manifest(tmp_path) is None

    def test_package_json_wins(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text('{"name": "js"}')
        (tmp_path / "requirements.txt").write_text("flask\n")
        manifest = read_manifest(tmp_path)
        assert manifest is not None
        assert manifest.source == "package.json"

    def test_pyproject_before_requirements(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "py"\n')
        (tmp_path / "requirements.txt").write_text("flask\n")
        manifest = read_manifest(tmp_path)
        assert manifest is not None
        assert manifest.name == "py"

    def test_malformed_is_absent(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "package.json").write_text("{broken")
        (tmp_path / "requirements.txt").write_text("flask\n")
        with caplog.at_level(logging.WARNING, logger="stackprobe.detection.manifest"):
            assert read_manifest(tmp_path) is None
        assert "malformed" in caplog.text

    def test_descriptor_is_read_only(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text(
            json.dumps({"dependencies": {"react": "18"}, "engines": {"node": ">=18"}})
        )
        manifest = read_manifest(tmp_path)
        assert manifest is not None
        with pytest.raises(TypeError):
            manifest.dependencies["vue"] = "3"  # type: ignore[index]
        assert hash(manifest) == hash(read_manifest(tmp_path))
        assert json.loads(json.dumps(manifest.to_dict()))["engines"] == {"node": ">=18"}
