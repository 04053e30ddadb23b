"""Package manifest reading: package.json, pyproject.toml, requirements.txt."""

from __future__ import annotations

import json
import logging
import re
import tomllib
from typing import TYPE_CHECKING, Any

from stackprobe.detection.models import ManifestInfo

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# Files whose presence marks a directory as a package root.
MANIFEST_FILES = frozenset(
    {
        "package.json",
        "pyproject.toml",
        "setup.py",
        "requirements.txt",
        "go.mod",
        "Cargo.toml",
        "pom.xml",
        "build.gradle",
        "Gemfile",
        "composer.json",
    }
)

# PEP 508 name followed by an optional extras list and specifier.
_REQUIREMENT_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)\s*(?:\[[^\]]*\])?\s*(.*)$")


class MalformedManifestError(ValueError):
    """Raised when a manifest cannot be parsed into a package descriptor."""


def _str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def _person(value: Any) -> str | None:
    """Normalize npm ``author`` (string or ``{name, email}``)."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and value.get("name"):
        return str(value["name"])
    return None


def _url(value: Any) -> str | None:
    """Normalize npm ``repository`` (string or ``{type, url}``)."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and value.get("url"):
        return str(value["url"])
    return None


def split_requirement(requirement: str) -> tuple[str, str] | None:
    """Split ``"fastapi>=0.100; python_version>'3.8'"`` into name and specifier."""
    text = requirement.split(";", 1)[0].strip()
    if not text or text.startswith(("#", "-")):
        return None
    match = _REQUIREMENT_RE.match(text)
    if match is None:
        return None
    name = match.group(1).lower()
    spec = match.group(2).strip() or "*"
    return name, spec


def _requirements_map(lines: list[Any]) -> dict[str, str]:
    deps: dict[str, str] = {}
    for line in lines:
        if not isinstance(line, str):
            continue
        parsed = split_requirement(line)
        if parsed is not None:
            deps[parsed[0]] = parsed[1]
    return deps


# ---------------------------------------------------------------------------
# Pure parsers
# ---------------------------------------------------------------------------


def parse_package_json(text: str) -> ManifestInfo:
    """Parse ``package.json`` content."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise MalformedManifestError(f"package.json: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedManifestError("package.json: top level is not an object")

    workspaces = data.get("workspaces")
    if isinstance(workspaces, dict):
        # Yarn workspaces can be {packages: [...]}
        workspaces = workspaces.get("packages")
    keywords = data.get("keywords")

    return ManifestInfo(
        source="package.json",
        name=str(data.get("name") or "unknown"),
        version=str(data.get("version") or "0.0.0"),
        module_type=str(data.get("type") or "commonjs"),
        description=data.get("description") if isinstance(data.get("description"), str) else None,
        author=_person(data.get("author")),
        license=data.get("license") if isinstance(data.get("license"), str) else None,
        repository=_url(data.get("repository")),
        homepage=data.get("homepage") if isinstance(data.get("homepage"), str) else None,
        keywords=tuple(str(k) for k in keywords) if isinstance(keywords, list) else (),
        engines=_str_map(data.get("engines")),
        dependencies=_str_map(data.get("dependencies")),
        dev_dependencies=_str_map(data.get("devDependencies")),
        scripts=_str_map(data.get("scripts")),
        workspaces=tuple(str(w) for w in workspaces) if isinstance(workspaces, list) else None,
    )


def parse_pyproject(text: str) -> ManifestInfo:
    """Parse ``pyproject.toml`` content (PEP 621 ``[project]`` table)."""
    try:
        data = tomllib.loads(text)
    except (tomllib.TOMLDecodeError, RecursionError) as exc:
        raise MalformedManifestError(f"pyproject.toml: {exc}") from exc

    project = data.get("project", {})
    if not isinstance(project, dict):
        raise MalformedManifestError("pyproject.toml: [project] is not a table")

    dev_deps: dict[str, str] = {}
    optional = project.get("optional-dependencies", {})
    if isinstance(optional, dict):
        for group in optional.values():
            if isinstance(group, list):
                dev_deps.update(_requirements_map(group))

    engines: dict[str, str] = {}
    requires_python = project.get("requires-python")
    if isinstance(requires_python, str):
        engines["python"] = requires_python

    authors = project.get("authors")
    author = None
    if isinstance(authors, list) and authors:
        author = _person(authors[0])

    license_value = project.get("license")
    if isinstance(license_value, dict):
        license_value = license_value.get("text")

    description = project.get("description")
    urls = project.get("urls") if isinstance(project.get("urls"), dict) else {}
    keywords = project.get("keywords")

    return ManifestInfo(
        source="pyproject.toml",
        name=str(project.get("name") or "unknown"),
        version=str(project.get("version") or "0.0.0"),
        module_type="python",
        description=description if isinstance(description, str) else None,
        author=author,
        license=license_value if isinstance(license_value, str) else None,
        repository=_url(urls.get("Repository") or urls.get("Source")),
        homepage=_url(urls.get("Homepage")),
        keywords=tuple(str(k) for k in keywords) if isinstance(keywords, list) else (),
        engines=engines,
        dependencies=_requirements_map(project.get("dependencies") or []),
        dev_dependencies=dev_deps,
        scripts=_str_map(project.get("scripts")),
    )


def parse_requirements(text: str) -> ManifestInfo:
    """Parse a pip ``requirements.txt``."""
    return ManifestInfo(
        source="requirements.txt",
        module_type="python",
        dependencies=_requirements_map(text.splitlines()),
    )


_PARSERS = (
    ("package.json", parse_package_json),
    ("pyproject.toml", parse_pyproject),
    ("requirements.txt", parse_requirements),
)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def read_manifest(project_root: Path) -> ManifestInfo | None:
    """Read the first manifest present at *project_root*.

    Order: package.json, pyproject.toml, requirements.txt.  A manifest that
    cannot be read or parsed is treated as absent; the next candidate is
    not consulted, since a broken primary descriptor means the dependency
    picture is unknown.
    """
    for filename, parser in _PARSERS:
        path = project_root / filename
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8")
            return parser(text)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read %s: %s", path, exc)
            return None
        except MalformedManifestError as exc:
            logger.warning("Ignoring malformed manifest %s", exc)
            return None
    return None
