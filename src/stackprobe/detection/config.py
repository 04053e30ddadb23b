"""Detection thresholds and traversal caps, optionally loaded from YAML."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

SETTINGS_FILENAMES = ("stackprobe.yml", ".stackprobe.yml")


class SettingsError(Exception):
    """Raised when a settings file holds values of the wrong type."""


@dataclass(frozen=True)
class DetectionSettings:
    """Confidence cutoffs and walk limits shared by all detectors.

    Configurable via the ``thresholds`` and ``limits`` sections of
    ``stackprobe.yml``.
    """

    # Thresholds
    primary_language_ratio: float = 0.30
    file_pattern_high: int = 10
    file_pattern_medium: int = 3
    coding_pattern_high_pct: float = 30.0
    coding_pattern_medium_pct: float = 10.0
    # Limits
    language_max_depth: int = 5
    language_max_files: int = 1000
    structure_max_depth: int = 6
    structure_max_files: int = 1000
    pattern_max_depth: int = 6
    pattern_max_files: int = 500


DEFAULT_SETTINGS = DetectionSettings()

_THRESHOLD_FIELDS: Mapping[str, type] = MappingProxyType(
    {
        "primary_language_ratio": float,
        "file_pattern_high": int,
        "file_pattern_medium": int,
        "coding_pattern_high_pct": float,
        "coding_pattern_medium_pct": float,
    }
)

_LIMIT_FIELDS: Mapping[str, type] = MappingProxyType(
    {
        f.name: int for f in fields(DetectionSettings) if f.name.endswith(("_depth", "_files"))
    }
)


def _coerce(section: str, key: str, value: Any, kind: type) -> float | int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsError(f"{section}.{key} must be a number, got {value!r}")
    if kind is int:
        if float(value) != int(value):
            raise SettingsError(f"{section}.{key} must be an integer, got {value!r}")
        return int(value)
    return float(value)


def settings_from_mapping(data: dict[str, Any]) -> DetectionSettings:
    """Build settings from a parsed mapping, keeping defaults for unset keys."""
    kwargs: dict[str, float | int] = {}
    for section, allowed in (("thresholds", _THRESHOLD_FIELDS), ("limits", _LIMIT_FIELDS)):
        values = data.get(section) or {}
        if not isinstance(values, dict):
            raise SettingsError(f"'{section}' must be a mapping")
        for key, value in values.items():
            if key not in allowed:
                logger.warning("Ignoring unknown setting %s.%s", section, key)
                continue
            kwargs[key] = _coerce(section, key, value, allowed[key])
    return replace(DEFAULT_SETTINGS, **kwargs)


def load_settings(config_path: Path | None) -> DetectionSettings:
    """Load settings from a YAML file.

    Falls back to defaults for a missing or unreadable file.
    """
    if config_path is None or not config_path.is_file():
        return DEFAULT_SETTINGS

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default settings", config_path)
        return DEFAULT_SETTINGS

    if not isinstance(data, dict):
        return DEFAULT_SETTINGS
    return settings_from_mapping(data)


def find_settings_file(project_root: Path) -> Path | None:
    """Return the first settings file present at *project_root*."""
    for name in SETTINGS_FILENAMES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None
