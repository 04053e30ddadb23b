"""Tests for the stackprobe CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

from stackprobe.cli import main

if TYPE_CHECKING:
    from pathlib import Path


class TestMain:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "stackprobe" in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("scan", "populate", "enrich", "report"):
            assert command in result.output


class TestScan:
    def test_json_output(self, react_vite_project: Path) -> None:
        result = CliRunner().invoke(main, ["scan", str(react_vite_project), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["has_existing_app"] is True
        assert data["package_manager"] == "pnpm"
        names = [f["name"] for f in data["frameworks"]]
        assert "react" in names
        assert "vite" in names

    def test_rich_summary(self, react_vite_project: Path) -> None:
        result = CliRunner().invoke(main, ["scan", str(react_vite_project)])
        assert result.exit_code == 0, result.output
        assert "Web Application" in result.output
        assert "React" in result.output
        assert "TypeScript" in result.output

    def test_empty_project(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["scan", str(tmp_path)])
        assert result.exit_code == 0
        assert "No existing application detected" in result.output

    def test_config_applies_limits(
        self, react_vite_project: Path, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        config = tmp_path_factory.mktemp("cfg") / "limits.yml"
        config.write_text("limits:\n  structure_max_files: 1\n")
        result = CliRunner().invoke(
            main, ["scan", str(react_vite_project), "--json", "--config", str(config)]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["structure"]["file_count"] == 1
        assert data["structure"]["truncated"] is True

    def test_project_settings_file_discovered(self, react_vite_project: Path) -> None:
        (react_vite_project / "stackprobe.yml").write_text("limits:\n  pattern_max_files: 2\n")
        result = CliRunner().invoke(main, ["scan", str(react_vite_project), "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["patterns"]["files_scanned"] == 2

    def test_bad_config_value_exits(self, react_vite_project: Path) -> None:
        (react_vite_project / "stackprobe.yml").write_text("limits:\n  pattern_max_files: many\n")
        result = CliRunner().invoke(main, ["scan", str(react_vite_project)])
        assert result.exit_code == 1
        assert "pattern_max_files" in result.output


class TestPopulate:
    def test_stdout(
        self, react_vite_project: Path, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        template = tmp_path_factory.mktemp("tpl") / "brief.md"
        template.write_text("# {PROJECT_NAME}\n\n{CORE_DEPENDENCIES}\n{UNKNOWN}\n")
        result = CliRunner().invoke(
            main, ["populate", str(template), "--project", str(react_vite_project)]
        )
        assert result.exit_code == 0, result.output
        assert f"# {react_vite_project.name}" in result.output
        assert "- react - 18.2.0" in result.output
        assert "{UNKNOWN}" in result.output

    def test_output_file(
        self, react_vite_project: Path, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        out_dir = tmp_path_factory.mktemp("out")
        template = out_dir / "tech.md"
        template.write_text("{SETUP_REQUIREMENTS}\n")
        output = out_dir / "filled.md"
        result = CliRunner().invoke(
            main,
            ["populate", str(template), "--project", str(react_vite_project), "-o", str(output)],
        )
        assert result.exit_code == 0, result.output
        assert "- **Node.js**: >=18" in output.read_text()


class TestEnrich:
    def test_inserts_section(
        self, react_vite_project: Path, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        constitution = tmp_path_factory.mktemp("const") / "constitution.md"
        constitution.write_text("# Constitution\n\n## Governance\n\nRules.\n")
        result = CliRunner().invoke(
            main, ["enrich", str(constitution), "--project", str(react_vite_project)]
        )
        assert result.exit_code == 0, result.output
        text = constitution.read_text()
        assert text.index("## Technology Stack") < text.index("## Governance")

    def test_empty_project_left_unchanged(
        self, tmp_path: Path, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        constitution = tmp_path_factory.mktemp("const") / "constitution.md"
        constitution.write_text("# Constitution\n")
        project = tmp_path / "empty"
        project.mkdir()
        result = CliRunner().invoke(main, ["enrich", str(constitution), "--project", str(project)])
        assert result.exit_code == 0
        assert constitution.read_text() == "# Constitution\n"


class TestReport:
    def test_markdown_sections(self, react_vite_project: Path) -> None:
        result = CliRunner().invoke(main, ["report", str(react_vite_project)])
        assert result.exit_code == 0, result.output
        assert "## Project Structure" in result.output
        assert "## Documentation Overview" in result.output
        assert "### README" in result.output
