"""Configuration loading for covenant-monitor-api using platform_core TypedDict settings."""

from __future__ import annotations

from platform_core.config import CovenantMonitorSettings as Settings
from platform_core.config import load_covenant_monitor_settings


def settings_from_env() -> Settings:
    """Load covenant-monitor settings from the shared platform_core config."""
    return load_covenant_monitor_settings()


__all__ = ["Settings", "settings_from_env"]
