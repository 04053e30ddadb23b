"""Fill ``{TOKEN}`` placeholders of memory-bank and constitution templates.

Each token resolves by precedence: a value read from detection signals,
then a value read from the manifest alone, then a bracketed placeholder
the user is expected to replace.  Unknown tokens are left untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from stackprobe.detection.models import PackageManager
from stackprobe.detection.patterns import extract_key_patterns
from stackprobe.reporting.markdown import (
    format_date,
    format_framework_name,
    generate_technology_constraints,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from stackprobe.detection.models import TechStackDetection

    Resolver = Callable[[TechStackDetection], str | None]

TOKEN_RE = re.compile(r"\{([A-Z][A-Z0-9_]*)\}")

MAX_LISTED_DEPENDENCIES = 10

# Root files treated as configuration when listing CONFIG_FILES.
CONFIG_FILE_NAMES: frozenset[str] = frozenset(
    {
        "tsconfig.json",
        "jsconfig.json",
        "package.json",
        "pyproject.toml",
        "setup.cfg",
        "tox.ini",
        "pytest.ini",
        "jest.config.js",
        "jest.config.ts",
        "vitest.config.ts",
        "vitest.config.js",
        "vite.config.js",
        "vite.config.ts",
        "webpack.config.js",
        "rollup.config.js",
        "next.config.js",
        "next.config.mjs",
        "nuxt.config.ts",
        "svelte.config.js",
        "angular.json",
        "nest-cli.json",
        "turbo.json",
        "nx.json",
        "lerna.json",
        "pnpm-workspace.yaml",
        "Dockerfile",
        "docker-compose.yml",
        ".eslintrc.json",
        "eslint.config.js",
        ".prettierrc",
    }
)


@dataclass(frozen=True)
class TokenRule:
    """How one token is resolved."""

    placeholder: str
    signal: Resolver | None = None
    fallback: Resolver | None = None


def _detected(resolver: Resolver) -> Resolver:
    """Only consult *resolver* when the scan found an existing app."""

    def wrapped(profile: TechStackDetection) -> str | None:
        if not profile.has_existing_app:
            return None
        return resolver(profile)

    return wrapped


# ---------------------------------------------------------------------------
# Project brief
# ---------------------------------------------------------------------------


def _project_name(profile: TechStackDetection) -> str | None:
    return profile.project_name or None


def _manifest_name(profile: TechStackDetection) -> str | None:
    if profile.manifest is None or profile.manifest.name == "unknown":
        return None
    return profile.manifest.name


def _readme_description(profile: TechStackDetection) -> str | None:
    readme = profile.documentation.readme
    return readme.description if readme is not None else None


def _manifest_description(profile: TechStackDetection) -> str | None:
    return profile.manifest.description if profile.manifest is not None else None


def _readme_features(profile: TechStackDetection) -> str | None:
    readme = profile.documentation.readme
    if readme is None or not readme.features:
        return None
    return "\n".join(f"- {feature}" for feature in readme.features)


# ---------------------------------------------------------------------------
# Tech context
# ---------------------------------------------------------------------------


def _framework_lines(profile: TechStackDetection, category: str) -> list[str]:
    return [
        f"- **Framework**: {format_framework_name(f.name)} {f.version}"
        for f in profile.frameworks
        if f.category == category
    ]


def _frontend_stack(profile: TechStackDetection) -> str:
    lines = _framework_lines(profile, "frontend")
    lines.extend(f"- **Language**: {lang.name}" for lang in profile.languages if lang.primary)
    return "\n".join(lines) or "[No frontend framework detected]"


def _backend_stack(profile: TechStackDetection) -> str:
    return "\n".join(_framework_lines(profile, "backend")) or "[No backend framework detected]"


def _infrastructure(profile: TechStackDetection) -> str:
    if profile.build_tools:
        tools = "\n".join(
            f"- **{format_framework_name(t.name)}**: {t.purpose}" for t in profile.build_tools
        )
    else:
        tools = "[No build tools detected]"
    return f"- **Package Manager**: {profile.package_manager.value}\n- **Build Tools**:\n{tools}"


def _default_installer(profile: TechStackDetection) -> str:
    manifest = profile.manifest
    if manifest is not None and manifest.source != "package.json":
        return "pip"
    return "npm"


def _manifest_infrastructure(profile: TechStackDetection) -> str | None:
    if profile.manifest is None:
        return None
    return f"- **Package Manager**: {_default_installer(profile)}"


def _dependency_list(deps: dict[str, str], source: str) -> str:
    lines = [f"- {name} - {spec}" for name, spec in list(deps.items())[:MAX_LISTED_DEPENDENCIES]]
    if len(deps) > MAX_LISTED_DEPENDENCIES:
        lines.append(f"- ... and more (see {source})")
    return "\n".join(lines)


def _core_dependencies(profile: TechStackDetection) -> str | None:
    manifest = profile.manifest
    if manifest is None or not manifest.dependencies:
        return None
    return _dependency_list(manifest.dependencies, manifest.source)


def _dev_dependencies(profile: TechStackDetection) -> str | None:
    manifest = profile.manifest
    if manifest is None or not manifest.dev_dependencies:
        return None
    return _dependency_list(manifest.dev_dependencies, manifest.source)


def _engine_lines(profile: TechStackDetection) -> list[str]:
    manifest = profile.manifest
    if manifest is None:
        return []
    lines = []
    if "node" in manifest.engines:
        lines.append(f"- **Node.js**: {manifest.engines['node']}")
    if "python" in manifest.engines:
        lines.append(f"- **Python**: {manifest.engines['python']}")
    return lines


def _setup_requirements(profile: TechStackDetection) -> str:
    lines = _engine_lines(profile)
    if profile.package_manager is not PackageManager.UNKNOWN:
        lines.append(f"- **Package Manager**: {profile.package_manager.value}")
    lines.append("- [Add other setup requirements]")
    return "\n".join(lines)


def _manifest_setup_requirements(profile: TechStackDetection) -> str | None:
    return "\n".join(_engine_lines(profile)) or None


def _dev_tools(profile: TechStackDetection) -> str | None:
    lines = [
        f"- **Testing**: {format_framework_name(f.name)}"
        for f in profile.frameworks
        if f.category == "testing"
    ]
    lines.extend(
        f"- **{format_framework_name(f.name)}**: {f.category}"
        for f in profile.frameworks
        if f.category in ("build", "language")
    )
    return "\n".join(lines) or None


def _build_process(profile: TechStackDetection) -> str | None:
    manifest = profile.manifest
    if manifest is None or not manifest.scripts:
        return None
    runner = "npm run" if manifest.source == "package.json" else ""
    lines = []
    for script in ("dev", "build", "test", "lint", "start"):
        if script not in manifest.scripts:
            continue
        command = f"{runner} {script}".strip()
        lines.append(f"- `{command}`: {manifest.scripts[script]}")
    return "\n".join(lines) or None


def _config_files(profile: TechStackDetection) -> str | None:
    found = [f for f in profile.project_structure.key_files if f in CONFIG_FILE_NAMES]
    return "\n".join(f"- `{name}`" for name in found) or None


def _tech_constraints(profile: TechStackDetection) -> str | None:
    constraints = generate_technology_constraints(profile)
    return "\n".join(f"- **{c['rule']}**: {c['reason']}" for c in constraints) or None


# ---------------------------------------------------------------------------
# System patterns
# ---------------------------------------------------------------------------


def _architecture_overview(profile: TechStackDetection) -> str | None:
    docs = profile.documentation
    if docs.architecture is not None:
        return docs.architecture.architecture or docs.architecture.full_content.strip() or None
    if docs.readme is not None:
        return docs.readme.architecture
    return None


def _key_patterns(profile: TechStackDetection) -> str | None:
    lines = [f"- **{p.name}**: {p.description}" for p in profile.structure.patterns]
    return "\n".join(lines) or None


def _component_relationships(profile: TechStackDetection) -> str | None:
    lines = []
    for kind, dirs in profile.structure.organized_by_type.items():
        names = ", ".join(f"`{d.path}`" for d in dirs)
        lines.append(f"- **{kind}**: {names}")
    return "\n".join(lines) or None


def _design_patterns(profile: TechStackDetection) -> str | None:
    lines = [
        f"- **{p['name']}** ({p['type']}): {p['details']}"
        for p in extract_key_patterns(profile.patterns)
    ]
    return "\n".join(lines) or None


# ---------------------------------------------------------------------------
# Active context
# ---------------------------------------------------------------------------


def _current_focus(profile: TechStackDetection) -> str:
    return f"Initial setup - Memory Bank created on {format_date(profile.detected_at)}"


# ---------------------------------------------------------------------------
# Token table
# ---------------------------------------------------------------------------

TOKENS: Mapping[str, TokenRule] = MappingProxyType(
    {
        # Project brief
        "PROJECT_NAME": TokenRule("[Project name]", _project_name, _manifest_name),
        "PROJECT_OBJECTIVE": TokenRule(
            "[Add project objective]", _detected(_readme_description), _manifest_description
        ),
        "PROJECT_SCOPE": TokenRule("[Define project scope - key features and boundaries]"),
        "PROJECT_DELIVERABLES": TokenRule("[List main deliverables]"),
        "PROJECT_STAKEHOLDERS": TokenRule("[Identify stakeholders and their roles]"),
        "PROJECT_FEATURES": TokenRule("[List key features]", _detected(_readme_features)),
        "PROJECT_SUCCESS_CRITERIA": TokenRule("[Define success metrics]"),
        "PROJECT_TIMELINE": TokenRule("[Define project phases and timeline]"),
        "PROJECT_CONSTRAINTS": TokenRule("[Document technical and resource constraints]"),
        # Tech context
        "FRONTEND_STACK": TokenRule(
            "[Document frontend technologies]", _detected(_frontend_stack)
        ),
        "BACKEND_STACK": TokenRule("[Document backend technologies]", _detected(_backend_stack)),
        "INFRASTRUCTURE": TokenRule(
            "[Document infrastructure and deployment]",
            _detected(_infrastructure),
            _manifest_infrastructure,
        ),
        "SETUP_REQUIREMENTS": TokenRule(
            "[Document setup requirements]",
            _detected(_setup_requirements),
            _manifest_setup_requirements,
        ),
        "DEV_TOOLS": TokenRule("[Document development tools and IDE setup]", _detected(_dev_tools)),
        "BUILD_PROCESS": TokenRule("[Document build process]", None, _build_process),
        "CORE_DEPENDENCIES": TokenRule("[List core dependencies]", None, _core_dependencies),
        "DEV_DEPENDENCIES": TokenRule("[List development dependencies]", None, _dev_dependencies),
        "ENVIRONMENT_VARIABLES": TokenRule("[Document required environment variables]"),
        "CONFIG_FILES": TokenRule(
            "[List configuration files and their purposes]", _detected(_config_files)
        ),
        "TECH_CONSTRAINTS": TokenRule(
            "[Document technical constraints and requirements]", _detected(_tech_constraints)
        ),
        "BEST_PRACTICES": TokenRule("[Document coding standards and best practices]"),
        # System patterns
        "ARCHITECTURE_OVERVIEW": TokenRule(
            "[Document high-level architecture]", _detected(_architecture_overview)
        ),
        "DATA_FLOW": TokenRule("[Document data flow patterns]"),
        "KEY_PATTERNS": TokenRule(
            "[Document key architectural patterns]", _detected(_key_patterns)
        ),
        "COMPONENT_RELATIONSHIPS": TokenRule(
            "[Document component relationships]", _detected(_component_relationships)
        ),
        "DESIGN_PATTERNS": TokenRule(
            "[Document design patterns in use]", _detected(_design_patterns)
        ),
        "INTEGRATION_POINTS": TokenRule("[Document external integrations]"),
        "SECURITY_PATTERNS": TokenRule("[Document security approach]"),
        "PERFORMANCE_PATTERNS": TokenRule("[Document performance strategies]"),
        "ERROR_HANDLING": TokenRule("[Document error handling approach]"),
        # Product context
        "PRODUCT_PURPOSE": TokenRule("[Explain why this product exists]"),
        "PROBLEMS_SOLVED": TokenRule("[Describe problems solved]"),
        "TARGET_USERS": TokenRule("[Define target users]"),
        "USER_JOURNEY": TokenRule("[Document user journey]"),
        "UX_GOALS": TokenRule("[Define UX goals]"),
        "BUSINESS_VALUE": TokenRule("[Describe business value]"),
        "SUCCESS_METRICS": TokenRule("[Define success metrics]"),
        # Active context
        "CURRENT_FOCUS": TokenRule("[Describe current focus]", _current_focus),
        "RECENT_CHANGES": TokenRule("Project initialized with stackprobe"),
        "NEXT_STEPS": TokenRule("[Define immediate next steps]"),
        "ACTIVE_DECISIONS": TokenRule("[Document active decisions]"),
        "CURRENT_CHALLENGES": TokenRule("[Note current challenges]"),
        "CONTEXT_NOTES": TokenRule("[Add contextual notes]"),
        # Progress
        "COMPLETED_FEATURES": TokenRule("Project structure initialized"),
        "IN_PROGRESS_TASKS": TokenRule("[Document tasks in progress]"),
        "PHASE_1_TASKS": TokenRule("[Define immediate priorities]"),
        "PHASE_2_TASKS": TokenRule("[Define short-term goals]"),
        "PHASE_3_TASKS": TokenRule("[Define long-term goals]"),
        "KNOWN_ISSUES": TokenRule("[Document known issues]"),
        "TECHNICAL_DEBT": TokenRule("[Document technical debt]"),
        "RECENT_ACHIEVEMENTS": TokenRule("Memory Bank system set up"),
        "UPCOMING_MILESTONES": TokenRule("[Define milestones]"),
        "RISK_FACTORS": TokenRule("[Document risk factors]"),
    }
)


def find_tokens(template: str) -> list[str]:
    """Return the distinct ``{UPPER_CASE}`` token names in *template*, in order."""
    return list(dict.fromkeys(TOKEN_RE.findall(template)))


def resolve_token(token: str, profile: TechStackDetection) -> str | None:
    """Resolve one token; None when the token is not recognized."""
    rule = TOKENS.get(token)
    if rule is None:
        return None
    for resolver in (rule.signal, rule.fallback):
        if resolver is None:
            continue
        value = resolver(profile)
        if value:
            return value
    return rule.placeholder


def populate_template(template: str, profile: TechStackDetection) -> str:
    """Replace the first occurrence of each recognized token.

    Substituted text is never rescanned, so a value that happens to contain
    ``{TOKEN}`` is kept verbatim.
    """
    seen: set[str] = set()

    def substitute(match: re.Match[str]) -> str:
        token = match.group(1)
        if token in seen:
            return match.group(0)
        value = resolve_token(token, profile)
        if value is None:
            return match.group(0)
        seen.add(token)
        return value

    return TOKEN_RE.sub(substitute, template)
