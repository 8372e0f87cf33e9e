from __future__ import annotations

from typing import Literal, TypedDict

from platform_core.logging import LogFormat, LogLevel

from ._utils import _parse_bool, _parse_int, _parse_log_level, _parse_str


class CovenantMonitorLoggingConfig(TypedDict, total=True):
    level: LogLevel
    format: LogFormat


class CovenantMonitorRedisConfig(TypedDict, total=True):
    enabled: bool
    url: str


class CovenantMonitorRQConfig(TypedDict, total=True):
    queue_name: str
    job_timeout_sec: int
    result_ttl_sec: int
    failure_ttl_sec: int


class CovenantMonitorSettings(TypedDict, total=True):
    """Configuration for the covenant-monitor-api service and its worker."""

    app_env: Literal["dev", "prod"]
    logging: CovenantMonitorLoggingConfig
    redis: CovenantMonitorRedisConfig
    rq: CovenantMonitorRQConfig
    database_url: str


def load_covenant_monitor_settings() -> CovenantMonitorSettings:
    """Load covenant-monitor settings from environment variables.

    Environment variables:
        APP_ENV: dev or prod (default: dev)
        LOGGING__LEVEL: log level (default: INFO)
        LOGGING__FORMAT: json or text (default: json)
        REDIS__ENABLED: enable Redis (default: true)
        REDIS__URL or REDIS_URL: Redis URL (default: redis://redis:6379/0)
        RQ__QUEUE_NAME: queue name (default: covenant-tests)
        RQ__JOB_TIMEOUT_SEC: job timeout (default: 600)
        RQ__RESULT_TTL_SEC: result TTL (default: 86400)
        RQ__FAILURE_TTL_SEC: failure TTL (default: 604800)
        DATABASE_URL: PostgreSQL connection URL
    """
    format_str = _parse_str("LOGGING__FORMAT", "json").lower()
    log_format: LogFormat = "text" if format_str == "text" else "json"

    redis_url = _parse_str("REDIS__URL", "")
    if not redis_url:
        redis_url = _parse_str("REDIS_URL", "redis://redis:6379/0")

    app_env_str = _parse_str("APP_ENV", "dev")
    app_env: Literal["dev", "prod"] = "prod" if app_env_str == "prod" else "dev"

    return {
        "app_env": app_env,
        "logging": {
            "level": _parse_log_level("LOGGING__LEVEL", "INFO"),
            "format": log_format,
        },
        "redis": {
            "enabled": _parse_bool("REDIS__ENABLED", True),
            "url": redis_url,
        },
        "rq": {
            "queue_name": _parse_str("RQ__QUEUE_NAME", "covenant-tests"),
            "job_timeout_sec": _parse_int("RQ__JOB_TIMEOUT_SEC", 600),
            "result_ttl_sec": _parse_int("RQ__RESULT_TTL_SEC", 86_400),
            "failure_ttl_sec": _parse_int("RQ__FAILURE_TTL_SEC", 7 * 86_400),
        },
        "database_url": _parse_str("DATABASE_URL", ""),
    }


__all__ = [
    "CovenantMonitorLoggingConfig",
    "CovenantMonitorRQConfig",
    "CovenantMonitorRedisConfig",
    "CovenantMonitorSettings",
    "load_covenant_monitor_settings",
]
