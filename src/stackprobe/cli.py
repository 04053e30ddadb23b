"""Stackprobe CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from stackprobe import __version__

if TYPE_CHECKING:
    from stackprobe.detection.models import TechStackDetection


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@click.group()
@click.version_option(version=__version__, prog_name="stackprobe")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Stackprobe - technology stack and project pattern detection."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose=verbose, quiet=quiet)


def _scan(project_root: Path, config_path: Path | None = None) -> TechStackDetection:
    """Load settings (explicit file, else project file) and run detection."""
    from stackprobe.detection.config import SettingsError, find_settings_file, load_settings
    from stackprobe.detection.stack import detect_technology_stack

    if config_path is None:
        config_path = find_settings_file(project_root)
    try:
        settings = load_settings(config_path)
    except SettingsError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    return detect_technology_stack(project_root, settings)


def _render_summary(profile: TechStackDetection) -> None:
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table

    from stackprobe.reporting.markdown import (
        format_category_title,
        format_framework_name,
        format_project_type,
    )

    console = Console()

    if not profile.has_existing_app:
        console.print(f"[yellow]No existing application detected in {profile.project_name}.[/]")
        return

    structure = profile.project_structure
    manifest = profile.manifest
    header = f"Type: {format_project_type(structure.project_type)}"
    if manifest is not None:
        header += f"   Manifest: {manifest.source} ({manifest.name} {manifest.version})"
    header += f"   Package manager: {profile.package_manager.value}"
    console.print(Panel(header, title=profile.project_name, border_style="blue"))
    console.print()

    if profile.languages:
        lang_table = Table(title="Languages", show_header=False, box=None, padding=(0, 1))
        lang_table.add_column("language", style="cyan")
        lang_table.add_column("files", justify="right")
        lang_table.add_column("role")
        for lang in profile.languages:
            lang_table.add_row(
                lang.name, str(lang.file_count), "primary" if lang.primary else "supporting"
            )
        console.print(lang_table)
        console.print()

    if profile.frameworks:
        fw_table = Table(title="Frameworks", show_header=False, box=None, padding=(0, 1))
        fw_table.add_column("name", style="cyan")
        fw_table.add_column("category")
        fw_table.add_column("version")
        fw_table.add_column("confidence", justify="right")
        for fw in profile.frameworks:
            fw_table.add_row(
                format_framework_name(fw.name),
                format_category_title(fw.category),
                fw.version,
                fw.confidence,
            )
        console.print(fw_table)
        console.print()

    if profile.build_tools:
        console.print(
            "  Build tools: "
            + ", ".join(f"[bold]{format_framework_name(t.name)}[/]" for t in profile.build_tools)
        )

    scanned = profile.structure
    console.print(
        f"  Files: [bold]{scanned.file_count}[/]   "
        f"Directories: [bold]{scanned.directory_count}[/]   "
        f"Depth: [bold]{scanned.depth}[/]"
    )
    if scanned.truncated or profile.patterns.truncated:
        console.print("  [yellow]Scan stopped at the file cap; results cover a partial tree.[/]")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option("--json", "output_json", is_flag=True, help="Structured JSON output.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Settings YAML (default: stackprobe.yml in the project root).",
)
def scan(path: Path, *, output_json: bool, config_path: Path | None) -> None:
    """Detect the technology stack of PATH."""
    profile = _scan(path.resolve(), config_path)

    if output_json:
        click.echo(json.dumps(profile.to_dict(), ensure_ascii=False, indent=2))
        return

    _render_summary(profile)


@main.command()
@click.argument("template", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the result here instead of stdout.",
)
def populate(template: Path, *, project: Path | None, output: Path | None) -> None:
    """Fill {TOKEN} placeholders in TEMPLATE from a project scan."""
    from stackprobe.reporting.populate import populate_template

    project_root = (project or Path.cwd()).resolve()
    profile = _scan(project_root)
    text = populate_template(template.read_text(encoding="utf-8"), profile)

    if output is None:
        click.echo(text, nl=False)
        return
    output.write_text(text, encoding="utf-8")
    click.echo(f"Wrote {output}")


@main.command()
@click.argument("constitution", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
def enrich(constitution: Path, *, project: Path | None) -> None:
    """Insert the detected Technology Stack section into CONSTITUTION."""
    from stackprobe.reporting.markdown import enrich_constitution

    project_root = (project or Path.cwd()).resolve()
    profile = _scan(project_root)
    if not profile.has_existing_app:
        click.echo("No existing application detected; constitution left unchanged.")
        return

    text = constitution.read_text(encoding="utf-8")
    constitution.write_text(enrich_constitution(text, profile), encoding="utf-8")
    click.echo(f"Enriched {constitution}")


@main.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
def report(path: Path) -> None:
    """Print markdown structure, pattern and documentation summaries."""
    from stackprobe.reporting.markdown import (
        generate_docs_summary,
        generate_pattern_summary,
        generate_structure_summary,
    )

    profile = _scan(path.resolve())
    parts = [
        generate_structure_summary(profile.structure),
        generate_pattern_summary(profile.patterns),
        generate_docs_summary(profile.documentation),
    ]
    click.echo("\n".join(part for part in parts if part))
