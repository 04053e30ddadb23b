"""Reporting domain: template population and markdown summaries."""

from stackprobe.reporting.markdown import (
    enrich_constitution,
    format_tech_stack_section,
    generate_docs_summary,
    generate_pattern_summary,
    generate_structure_summary,
)
from stackprobe.reporting.populate import find_tokens, populate_template

__all__ = [
    "enrich_constitution",
    "find_tokens",
    "format_tech_stack_section",
    "generate_docs_summary",
    "generate_pattern_summary",
    "generate_structure_summary",
    "populate_template",
]
