from __future__ import annotations

from .covenant_monitor import (
    CovenantMonitorLoggingConfig,
    CovenantMonitorRedisConfig,
    CovenantMonitorRQConfig,
    CovenantMonitorSettings,
    load_covenant_monitor_settings,
)

__all__ = [
    "CovenantMonitorLoggingConfig",
    "CovenantMonitorRQConfig",
    "CovenantMonitorRedisConfig",
    "CovenantMonitorSettings",
    "load_covenant_monitor_settings",
]
