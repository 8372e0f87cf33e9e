from __future__ import annotations

from typing import Literal

from . import _test_hooks

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _optional_env_str(key: str) -> str | None:
    value = _test_hooks.get_env(key)
    if value is None:
        return None
    trimmed = value.strip()
    if trimmed == "":
        return None
    return trimmed


def _parse_str(key: str, default: str) -> str:
    val = _optional_env_str(key)
    return val if val is not None else default


def _parse_int(key: str, default: int) -> int:
    val = _optional_env_str(key)
    if val is None:
        return default
    return int(val)


def _parse_bool(key: str, default: bool) -> bool:
    val = _optional_env_str(key)
    if val is None:
        return default
    normalized = val.lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {key}: {val!r}")


def _parse_log_level(key: str, default: LogLevel) -> LogLevel:
    val = _optional_env_str(key)
    if val is None:
        return default
    upper_val = val.upper()
    if upper_val == "DEBUG":
        return "DEBUG"
    if upper_val == "INFO":
        return "INFO"
    if upper_val == "WARNING":
        return "WARNING"
    if upper_val == "ERROR":
        return "ERROR"
    if upper_val == "CRITICAL":
        return "CRITICAL"
    return default


__all__ = [
    "LogLevel",
    "_optional_env_str",
    "_parse_bool",
    "_parse_int",
    "_parse_log_level",
    "_parse_str",
]
