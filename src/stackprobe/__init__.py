"""Stackprobe: technology stack and project pattern detection."""

__version__ = "0.3.0"
