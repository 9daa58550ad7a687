"""Core: settings and the composition root (roadwell.core.container)."""

from roadwell.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
