"""Markdown renderings of detection results.

All functions here are pure: they take profile objects and return text.
"""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING

from stackprobe.detection.models import HIGH, MEDIUM, PackageManager

if TYPE_CHECKING:
    from collections.abc import Mapping

    from stackprobe.detection.models import (
        DocumentationProfile,
        FrameworkSignal,
        PatternReport,
        StructureAnalysis,
        TechStackDetection,
    )

CATEGORY_TITLES: Mapping[str, str] = MappingProxyType(
    {
        "frontend": "Frontend Framework",
        "backend": "Backend Framework",
        "testing": "Testing Framework",
        "build": "Build Tool",
        "mobile": "Mobile Framework",
        "language": "Language",
    }
)

DISPLAY_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "react": "React",
        "nextjs": "Next.js",
        "vue": "Vue.js",
        "angular": "Angular",
        "svelte": "Svelte",
        "express": "Express",
        "nestjs": "NestJS",
        "fastify": "Fastify",
        "koa": "Koa",
        "django": "Django",
        "flask": "Flask",
        "fastapi": "FastAPI",
        "vite": "Vite",
        "webpack": "Webpack",
        "jest": "Jest",
        "vitest": "Vitest",
        "mocha": "Mocha",
        "pytest": "pytest",
        "typescript": "TypeScript",
        "react-native": "React Native",
        "rollup": "Rollup",
        "esbuild": "esbuild",
        "parcel": "Parcel",
        "turbo": "Turborepo",
        "nx": "Nx",
    }
)

PROJECT_TYPE_TITLES: Mapping[str, str] = MappingProxyType(
    {
        "monorepo": "Monorepo",
        "web-app": "Web Application",
        "mobile": "Mobile Application",
        "fullstack": "Full-stack Application",
        "api": "API/Backend Service",
        "library": "Library/Package",
        "unknown": "Unknown",
    }
)

_CONFIDENCE_ORDER: Mapping[str, int] = MappingProxyType({HIGH: 0, MEDIUM: 1})
_CONFIDENCE_BADGE: Mapping[str, str] = MappingProxyType({HIGH: "✓", MEDIUM: "~"})

GOVERNANCE_HEADING = "## Governance"


def format_framework_name(name: str) -> str:
    return DISPLAY_NAMES.get(name, name[:1].upper() + name[1:])


def format_category_title(category: str) -> str:
    return CATEGORY_TITLES.get(category, category)


def format_project_type(project_type: str) -> str:
    return PROJECT_TYPE_TITLES.get(project_type, project_type)


def format_date(iso_timestamp: str) -> str:
    try:
        return datetime.fromisoformat(iso_timestamp).date().isoformat()
    except ValueError:
        return iso_timestamp


# ---------------------------------------------------------------------------
# Detector summaries
# ---------------------------------------------------------------------------


def generate_structure_summary(analysis: StructureAnalysis) -> str:
    lines = [
        "## Project Structure",
        "",
        f"- **Total Files**: {analysis.file_count}",
        f"- **Total Directories**: {analysis.directory_count}",
        f"- **Maximum Depth**: {analysis.depth} levels",
        "",
    ]

    if analysis.entry_points:
        lines.append("### Entry Points")
        lines.extend(f"- `{e.file}` ({e.kind})" for e in analysis.entry_points)
        lines.append("")

    if analysis.patterns:
        lines.append("### Architectural Patterns")
        lines.extend(
            f"- **{p.name}**: {p.description} (confidence: {p.confidence})"
            for p in analysis.patterns
        )
        lines.append("")

    if analysis.organized_by_type:
        lines.append("### Directory Organization")
        for kind, dirs in analysis.organized_by_type.items():
            names = ", ".join(f"`{d.name}`" for d in dirs)
            lines.append(f"- **{kind}**: {names}")
        lines.append("")

    return "\n".join(lines)


def generate_pattern_summary(report: PatternReport) -> str:
    lines: list[str] = []

    if report.framework_patterns:
        lines.extend(["## Detected Framework Patterns", ""])
        for pattern in report.framework_patterns:
            lines.append(f"### {pattern.name}")
            lines.append(f"- **Files**: {pattern.file_count}")
            lines.append(f"- **Confidence**: {pattern.confidence}")
            if pattern.examples:
                lines.append("- **Examples**:")
                lines.extend(f"  - `{example}`" for example in pattern.examples)
            lines.append("")

    if report.coding_patterns:
        lines.extend(["## Coding Patterns", ""])
        lines.extend(
            f"- **{p.name}**: {p.description} "
            f"({p.occurrences} occurrences, confidence: {p.confidence})"
            for p in report.coding_patterns
        )
        lines.append("")

    return "\n".join(lines)


def generate_docs_summary(docs: DocumentationProfile) -> str:
    lines = ["## Documentation Overview", ""]

    if not docs.has_documentation:
        lines.append("No documentation files detected.")
        return "\n".join(lines)

    if docs.readme is not None:
        lines.append("### README")
        if docs.readme.description is not None:
            lines.append(docs.readme.description)
        if docs.readme.features:
            lines.extend(["", "**Features:**"])
            lines.extend(f"- {feature}" for feature in docs.readme.features[:5])
        lines.append("")

    if docs.architecture is not None:
        lines.extend(["### Architecture Documentation", "Architecture documentation found.", ""])

    if docs.setup is not None:
        lines.extend(["### Setup Documentation", "Setup/installation instructions found.", ""])

    if docs.additional_docs:
        lines.append("### Additional Documentation")
        lines.extend(f"- `{doc.file}`" for doc in docs.additional_docs)
        lines.append("")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Constitution section
# ---------------------------------------------------------------------------


def group_frameworks_by_category(
    frameworks: tuple[FrameworkSignal, ...],
) -> dict[str, list[FrameworkSignal]]:
    """Group frameworks, strongest confidence first, then by name."""
    grouped: dict[str, list[FrameworkSignal]] = {}
    for framework in frameworks:
        grouped.setdefault(framework.category, []).append(framework)
    for members in grouped.values():
        members.sort(key=lambda f: (_CONFIDENCE_ORDER.get(f.confidence, 2), f.name))
    return grouped


def derive_architectural_patterns(profile: TechStackDetection) -> list[dict[str, str]]:
    """Stack-level patterns inferred from the whole profile."""
    structure = profile.project_structure
    patterns: list[dict[str, str]] = []

    if structure.project_type == "monorepo":
        patterns.append(
            {
                "name": "Monorepo Architecture",
                "description": "Multiple related packages/applications in a single repository",
            }
        )
    if structure.has_backend and structure.has_frontend:
        patterns.append(
            {
                "name": "Full-stack Architecture",
                "description": "Integrated frontend and backend in a single project",
            }
        )
    if any(f.name in {"nextjs", "gatsby", "nuxt", "gridsome"} for f in profile.frameworks):
        patterns.append(
            {
                "name": "JAMstack",
                "description": "JavaScript, APIs, and Markup architecture for modern web applications",
            }
        )
    service_dirs = [d for d in structure.directories if "service" in d or "api" in d]
    if len(service_dirs) > 1:
        patterns.append(
            {
                "name": "Microservices",
                "description": "Application split into multiple independent services",
            }
        )
    typescript = next((f for f in profile.frameworks if f.name == "typescript"), None)
    if typescript is not None and typescript.confidence == HIGH:
        patterns.append(
            {
                "name": "TypeScript-First",
                "description": "Strong typing and type safety throughout the codebase",
            }
        )
    return patterns


def generate_technology_constraints(profile: TechStackDetection) -> list[dict[str, str]]:
    manifest = profile.manifest
    names = {f.name for f in profile.frameworks}
    constraints: list[dict[str, str]] = []

    if manifest is not None and "node" in manifest.engines:
        constraints.append(
            {
                "rule": "Node.js Version",
                "reason": f"Project requires Node.js {manifest.engines['node']} "
                f"as specified in {manifest.source}",
            }
        )
    if manifest is not None and "python" in manifest.engines:
        constraints.append(
            {
                "rule": "Python Version",
                "reason": f"Project requires Python {manifest.engines['python']} "
                f"as specified in {manifest.source}",
            }
        )
    if manifest is not None and manifest.module_type == "module":
        constraints.append(
            {
                "rule": "ES Modules Only",
                "reason": 'Project uses ES modules (type: "module" in package.json), '
                "all code must use import/export syntax",
            }
        )
    if "react" in names:
        constraints.append(
            {
                "rule": "React Component Standards",
                "reason": "All UI components must follow React component patterns "
                "and hooks guidelines",
            }
        )
    if "nextjs" in names:
        constraints.append(
            {
                "rule": "Next.js Conventions",
                "reason": "Routing, data fetching, and API routes must follow Next.js conventions",
            }
        )
    if "typescript" in names:
        constraints.append(
            {
                "rule": "Type Safety",
                "reason": 'All code must be properly typed; avoid using "any" type '
                "unless explicitly justified",
            }
        )
    testing = next((f for f in profile.frameworks if f.category == "testing"), None)
    if testing is not None:
        constraints.append(
            {
                "rule": "Test Coverage",
                "reason": f"All new features must include {format_framework_name(testing.name)} tests",
            }
        )
    return constraints


def generate_stack_principles(profile: TechStackDetection) -> list[dict[str, str]]:
    names = {f.name for f in profile.frameworks}
    principles: list[dict[str, str]] = []

    if "react" in names:
        principles.append(
            {
                "title": "React Best Practices",
                "description": "\n".join(
                    [
                        "- Use functional components and hooks exclusively",
                        "- Follow the Rules of Hooks (only call hooks at top level)",
                        "- Implement proper component memoization "
                        "(React.memo, useMemo, useCallback) where needed",
                        "- Keep components small and focused on a single responsibility",
                        "- Use TypeScript for all React components with proper prop types",
                    ]
                ),
            }
        )
    if "typescript" in names:
        principles.append(
            {
                "title": "TypeScript Guidelines",
                "description": "\n".join(
                    [
                        "- Maintain strict TypeScript configuration",
                        "- Define interfaces for all data structures",
                        "- Use type guards for runtime type checking",
                        '- Avoid "any" type; use "unknown" and narrow types when needed',
                        "- Export types/interfaces alongside implementation",
                    ]
                ),
            }
        )
    testing = next((f for f in profile.frameworks if f.category == "testing"), None)
    if testing is not None:
        principles.append(
            {
                "title": "Testing Standards",
                "description": "\n".join(
                    [
                        f"- Write tests using {format_framework_name(testing.name)}",
                        "- Maintain minimum 80% code coverage for critical paths",
                        "- Test behavior, not implementation details",
                        "- Include unit, integration and end-to-end tests as appropriate",
                        "- Ensure all tests pass before merging to main branch",
                    ]
                ),
            }
        )
    if not principles:
        principles.append(
            {
                "title": "Technology-Specific Guidelines",
                "description": "<!-- Add principles specific to your detected technology stack -->"
                "\n\n[PRINCIPLE_CONTENT - Define coding standards, patterns, "
                "and best practices for your stack]",
            }
        )
    return principles


def format_tech_stack_section(profile: TechStackDetection) -> str:
    """Render the "Technology Stack" constitution section."""
    lines = [
        "## Technology Stack",
        "<!-- Auto-populated during initialization from existing project scan "
        f"on {format_date(profile.detected_at)} -->",
        "",
    ]

    manifest = profile.manifest
    if manifest is not None:
        lines.append("### Project Information")
        lines.append(f"- **Name**: {manifest.name}")
        lines.append(f"- **Version**: {manifest.version}")
        lines.append(f"- **Module Type**: {manifest.module_type}")
        if profile.project_structure.project_type != "unknown":
            lines.append(
                f"- **Project Type**: {format_project_type(profile.project_structure.project_type)}"
            )
        if profile.package_manager is not PackageManager.UNKNOWN:
            lines.append(f"- **Package Manager**: {profile.package_manager.value}")
        lines.append("")

    if profile.languages:
        lines.append("### Primary Languages")
        for lang in profile.languages:
            if lang.primary:
                lines.append(
                    f"- **{lang.name}** - Primary language ({lang.file_count} files "
                    f"with extensions: {', '.join(lang.extensions)})"
                )
        for lang in profile.languages:
            if not lang.primary:
                lines.append(f"- **{lang.name}** - Supporting language ({lang.file_count} files)")
        lines.append("")

    grouped = group_frameworks_by_category(profile.frameworks)
    if grouped:
        lines.append("### Frameworks & Libraries")
        for category, frameworks in grouped.items():
            title = format_category_title(category)
            for fw in frameworks:
                badge = _CONFIDENCE_BADGE.get(fw.confidence, "?")
                lines.append(
                    f"- **{format_framework_name(fw.name)}** {fw.version} - {title} {badge}"
                )
        lines.append("")

    if profile.build_tools:
        lines.append("### Build & Development Tools")
        lines.extend(
            f"- **{format_framework_name(t.name)}** - {t.purpose}" for t in profile.build_tools
        )
        lines.append("")

    if manifest is not None and manifest.engines:
        lines.append("### Runtime Requirements")
        if "node" in manifest.engines:
            lines.append(f"- **Node.js**: {manifest.engines['node']}")
        if "npm" in manifest.engines:
            lines.append(f"- **npm**: {manifest.engines['npm']}")
        if "python" in manifest.engines:
            lines.append(f"- **Python**: {manifest.engines['python']}")
        lines.append("")

    patterns = derive_architectural_patterns(profile)
    if patterns:
        lines.append("### Architectural Patterns Detected")
        lines.extend(f"- **{p['name']}**: {p['description']}" for p in patterns)
        lines.append("")

    constraints = generate_technology_constraints(profile)
    if constraints:
        lines.append("### Technology Constraints")
        lines.append("<!-- Auto-generated based on detected stack -->")
        lines.extend(f"- **{c['rule']}**: {c['reason']}" for c in constraints)
        lines.append("")

    lines.append("### Stack-Specific Principles")
    lines.append("<!-- Define principles specific to your technology choices -->")
    lines.append("")
    for principle in generate_stack_principles(profile):
        lines.append(f"#### {principle['title']}")
        lines.append(principle["description"])
        lines.append("")

    return "\n".join(lines)


def format_detection_metadata(profile: TechStackDetection) -> str:
    """HTML comment summarizing the scan, placed atop enriched documents."""
    return "\n".join(
        [
            "<!--",
            "Technology Stack Detection Report",
            f"Detected: {profile.detected_at}",
            "Detection Method: Automated project scan",
            "",
            "Summary:",
            f"- Frameworks: {len(profile.frameworks)}",
            f"- Languages: {len(profile.languages)}",
            f"- Build Tools: {len(profile.build_tools)}",
            f"- Project Type: {profile.project_structure.project_type}",
            "",
            "Note: This constitution was automatically enhanced with the detected",
            "technology stack. Review and adjust as needed for your project.",
            "-->",
        ]
    )


def enrich_constitution(text: str, profile: TechStackDetection) -> str:
    """Insert the tech stack section before ``## Governance`` (or append it)."""
    section = format_tech_stack_section(profile)
    idx = text.find(GOVERNANCE_HEADING)
    if idx != -1:
        enriched = f"{text[:idx]}{section}\n{text[idx:]}"
    else:
        enriched = f"{text}\n\n{section}"
    return f"{format_detection_metadata(profile)}\n\n{enriched}"
