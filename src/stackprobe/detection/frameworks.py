"""Framework detection by dependency, config-file and directory evidence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from stackprobe.detection.models import HIGH, MEDIUM, FrameworkSignal, raise_confidence

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from stackprobe.detection.models import ManifestInfo, ProjectStructure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameworkRule:
    """Evidence that identifies one framework."""

    dependencies: tuple[str, ...]
    files: tuple[str, ...]
    directories: tuple[str, ...]
    category: str


FRAMEWORK_RULES: Mapping[str, FrameworkRule] = MappingProxyType(
    {
        # Frontend
        "react": FrameworkRule(
            ("react", "react-dom"),
            ("src/App.jsx", "src/App.js", "src/App.tsx"),
            ("src/components",),
            "frontend",
        ),
        "nextjs": FrameworkRule(
            ("next",),
            ("next.config.js", "next.config.mjs", "next.config.ts"),
            ("pages", "app"),
            "frontend",
        ),
        "vue": FrameworkRule(
            ("vue",), ("src/App.vue", "vite.config.js"), ("src/components",), "frontend"
        ),
        "angular": FrameworkRule(("@angular/core",), ("angular.json",), ("src/app",), "frontend"),
        "svelte": FrameworkRule(("svelte",), ("svelte.config.js",), ("src",), "frontend"),
        # Backend
        "express": FrameworkRule(
            ("express",), ("server.js", "app.js"), ("routes", "middleware"), "backend"
        ),
        "nestjs": FrameworkRule(("@nestjs/core",), ("nest-cli.json",), ("src/modules",), "backend"),
        "fastify": FrameworkRule(("fastify",), ("server.js",), ("routes",), "backend"),
        "koa": FrameworkRule(("koa",), ("app.js",), ("routes",), "backend"),
        "django": FrameworkRule(("django",), ("manage.py",), (), "backend"),
        "flask": FrameworkRule(("flask",), ("app.py", "wsgi.py"), ("templates",), "backend"),
        "fastapi": FrameworkRule(("fastapi",), ("main.py", "app/main.py"), ("routers",), "backend"),
        # Build tools
        "vite": FrameworkRule(
            ("vite",), ("vite.config.js", "vite.config.ts", "vite.config.mjs"), (), "build"
        ),
        "webpack": FrameworkRule(
            ("webpack",), ("webpack.config.js", "webpack.config.ts"), (), "build"
        ),
        # Testing
        "jest": FrameworkRule(
            ("jest", "@jest/core"), ("jest.config.js", "jest.config.ts"), ("__tests__",), "testing"
        ),
        "vitest": FrameworkRule(("vitest",), ("vitest.config.js", "vitest.config.ts"), (), "testing"),
        "mocha": FrameworkRule(("mocha",), (".mocharc.json", ".mocharc.js"), ("test",), "testing"),
        "pytest": FrameworkRule(("pytest",), ("pytest.ini", "conftest.py"), ("tests",), "testing"),
        # Mobile
        "react-native": FrameworkRule(
            ("react-native",), ("app.json", "metro.config.js"), ("android", "ios"), "mobile"
        ),
    }
)

TSCONFIG_FILE = "tsconfig.json"


def evaluate_rule(
    name: str,
    rule: FrameworkRule,
    deps: Mapping[str, str],
    *,
    has_config_file: bool,
    has_directory: bool,
) -> FrameworkSignal | None:
    """Fuse the evidence for one framework.

    No trigger dependency means no signal at all.  A dependency alone gives
    ``medium``; either corroboration raises it to ``high``.
    """
    dep_key = next((dep for dep in rule.dependencies if dep in deps), None)
    if dep_key is None:
        return None

    confidence = MEDIUM
    if has_config_file:
        confidence = raise_confidence(confidence, HIGH)
    if has_directory:
        confidence = raise_confidence(confidence, HIGH)

    return FrameworkSignal(
        name=name,
        category=rule.category,
        version=deps[dep_key],
        confidence=confidence,
    )


def detect_frameworks(
    project_root: Path,
    manifest: ManifestInfo | None,
    structure: ProjectStructure,
) -> tuple[FrameworkSignal, ...]:
    """Detect frameworks declared in *manifest*.

    Without a manifest nothing is reported.  Indicator directories count
    when the structure walk saw them or they exist on disk, so a capped
    walk never weakens the evidence.
    """
    if manifest is None:
        return ()

    deps = manifest.all_dependencies
    known_dirs = set(structure.directories)
    detected: list[FrameworkSignal] = []

    for name, rule in FRAMEWORK_RULES.items():
        signal = evaluate_rule(
            name,
            rule,
            deps,
            has_config_file=any((project_root / f).exists() for f in rule.files),
            has_directory=any(
                d in known_dirs or (project_root / d).is_dir() for d in rule.directories
            ),
        )
        if signal is not None:
            detected.append(signal)

    # TypeScript is a language dependency, corroborated only by tsconfig.
    if "typescript" in deps:
        has_tsconfig = (project_root / TSCONFIG_FILE).exists()
        detected.append(
            FrameworkSignal(
                name="typescript",
                category="language",
                version=deps["typescript"],
                confidence=HIGH if has_tsconfig else MEDIUM,
            )
        )

    logger.debug("Detected %d framework(s) in %s", len(detected), project_root)
    return tuple(detected)
