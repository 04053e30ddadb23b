"""Detection domain: languages, frameworks, structure, patterns and docs."""

from stackprobe.detection.build_tools import detect_build_tools, detect_package_manager
from stackprobe.detection.config import (
    DEFAULT_SETTINGS,
    DetectionSettings,
    SettingsError,
    find_settings_file,
    load_settings,
)
from stackprobe.detection.docs_parser import (
    extract_project_context,
    parse_documentation,
    parse_markdown,
)
from stackprobe.detection.frameworks import detect_frameworks
from stackprobe.detection.languages import detect_languages
from stackprobe.detection.manifest import MalformedManifestError, read_manifest
from stackprobe.detection.models import PackageManager, TechStackDetection
from stackprobe.detection.patterns import detect_patterns, extract_key_patterns
from stackprobe.detection.stack import (
    detect_technology_stack,
    detect_technology_stack_async,
    empty_detection,
)
from stackprobe.detection.structure import analyze_structure, detect_project_structure
from stackprobe.detection.walker import WalkEntry, WalkState, walk

__all__ = [
    "DEFAULT_SETTINGS",
    "DetectionSettings",
    "MalformedManifestError",
    "PackageManager",
    "SettingsError",
    "TechStackDetection",
    "WalkEntry",
    "WalkState",
    "analyze_structure",
    "detect_build_tools",
    "detect_frameworks",
    "detect_languages",
    "detect_package_manager",
    "detect_patterns",
    "detect_project_structure",
    "detect_technology_stack",
    "detect_technology_stack_async",
    "empty_detection",
    "extract_key_patterns",
    "extract_project_context",
    "find_settings_file",
    "load_settings",
    "parse_documentation",
    "parse_markdown",
    "read_manifest",
    "walk",
]
