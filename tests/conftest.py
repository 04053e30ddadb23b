"""Shared test fixtures for stackprobe."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def write_files(root: Path, files: dict[str, str]) -> None:
    """Create *files* (relative path -> content) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def write_package_json(root: Path, data: dict[str, Any]) -> None:
    (root / "package.json").write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture()
def make_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a builder that writes a file mapping into ``tmp_path``."""

    def _make(files: dict[str, str]) -> Path:
        write_files(tmp_path, files)
        return tmp_path

    return _make


@pytest.fixture()
def react_vite_project(tmp_path: Path) -> Path:
    """React app built with Vite, without a ``src/components`` directory."""
    write_package_json(
        tmp_path,
        {
            "name": "shop-front",
            "version": "1.2.0",
            "type": "module",
            "description": "Storefront for the demo shop",
            "dependencies": {"react": "18.2.0", "react-dom": "18.2.0"},
            "devDependencies": {"vite": "^4.0.0", "typescript": "^5.0.0"},
            "engines": {"node": ">=18"},
            "scripts": {"dev": "vite", "build": "vite build"},
        },
    )
    write_files(
        tmp_path,
        {
            "vite.config.js": "export default {}\n",
            "pnpm-lock.yaml": "lockfileVersion: 6.0\n",
            "src/main.ts": "const root = document.getElementById('root')\n",
            "src/lib/format.ts": "export const fmt = (n: number) => `${n}`\n",
            "README.md": (
                "# Shop Front\n\n"
                "A small storefront.\n"
                "Built for demos.\n\n"
                "## Features\n\n"
                "- Product catalogue\n"
                "- Shopping cart\n"
                "* Checkout flow\n\n"
                "## Installation\n\n"
                "Run `pnpm install`.\n"
            ),
        },
    )
    return tmp_path
