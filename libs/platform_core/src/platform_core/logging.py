from __future__ import annotations

import logging
import os
import socket
import sys
import time
from typing import Literal

from platform_core.json_utils import JSONValue, dump_json_str
from platform_core.request_context import request_id_var

LogFormat = Literal["json", "text"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Structured fields emitted by the covenant monitor whenever they are attached
# to a record through ``extra=``.
COVENANT_LOG_FIELDS: tuple[str, ...] = (
    "loan_id",
    "covenant_id",
    "financial_period_id",
    "period_end_iso",
    "status",
    "error_kind",
    "error_code",
    "error_message",
    "tests_run",
    "alerts_created",
    "failures",
    "loans_tested",
    "job_id",
    "path",
    "method",
    "latency_ms",
)


def _json_field(record: logging.LogRecord, field_name: str) -> tuple[bool, JSONValue]:
    """Return (present, value) for a record attribute that is JSON-compatible."""
    if field_name not in record.__dict__:
        return False, None
    raw: object = record.__dict__[field_name]
    if isinstance(raw, (dict, list, str, int, float, bool)) or raw is None:
        value: JSONValue = raw
        return True, value
    return False, None


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp (UTC), level, logger, message,
    static fields, request id, covenant fields and exception text."""

    def __init__(
        self,
        *,
        static_fields: dict[str, str],
        extra_field_names: list[str],
    ) -> None:
        super().__init__()
        self._static = static_fields
        self._extra_fields = extra_field_names

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, JSONValue] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in self._static.items():
            payload[key] = value

        rid = request_id_var.get()
        if rid != "":
            payload["request_id"] = rid

        for field_name in (*self._extra_fields, *COVENANT_LOG_FIELDS):
            if field_name in payload:
                continue
            present, value = _json_field(record, field_name)
            if present:
                payload[field_name] = value

        if record.exc_info is not None:
            payload["exc_info"] = self.formatException(record.exc_info)

        return dump_json_str(payload, compact=False)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for local development.

    Format: [timestamp] [LEVEL] [logger] key=value ... message
    """

    def __init__(self, *, extra_fields: list[str]) -> None:
        super().__init__()
        self._extra_fields = extra_fields

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        parts: list[str] = [f"[{timestamp}]", f"[{record.levelname}]", f"[{record.name}]"]
        for field_name in (*self._extra_fields, *COVENANT_LOG_FIELDS):
            present, value = _json_field(record, field_name)
            if present:
                parts.append(f"{field_name}={value}")
        parts.append(record.getMessage())
        line = " ".join(parts)
        if record.exc_info is not None:
            line = line + "\n" + self.formatException(record.exc_info)
        return line


def _compute_instance_id() -> str:
    host = socket.gethostname().split(".")[0]
    return f"{host}-{os.getpid()}"


_LEVELS: dict[LogLevel, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(
    *,
    level: LogLevel,
    format_mode: LogFormat,
    service_name: str,
    instance_id: str | None,
    extra_fields: list[str] | None,
) -> logging.Logger:
    """Configure the root logger for a service and return it.

    Existing root handlers are removed so repeated calls (tests, app reloads)
    never duplicate output.

    Example:
        >>> from platform_core.logging import setup_logging
        >>> setup_logging(
        ...     level="INFO",
        ...     format_mode="json",
        ...     service_name="covenant-monitor-api",
        ...     instance_id=None,
        ...     extra_fields=None,
        ... )
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_LEVELS[level])

    static_fields: dict[str, str] = {
        "service": service_name,
        "instance_id": instance_id if instance_id is not None else _compute_instance_id(),
    }
    extra_names = extra_fields if extra_fields is not None else []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    if format_mode == "json":
        formatter = JsonFormatter(static_fields=static_fields, extra_field_names=extra_names)
        handler.setFormatter(formatter)
    else:
        handler.setFormatter(TextFormatter(extra_fields=extra_names))
    root.addHandler(handler)

    for noisy in ("urllib3", "httpx", "httpcore", "rq.worker"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (typically ``__name__``)."""
    return logging.getLogger(name)


# Typed access to stdlib logging for tests that build LogRecords.
stdlib_logging = logging


__all__ = [
    "COVENANT_LOG_FIELDS",
    "JsonFormatter",
    "LogFormat",
    "LogLevel",
    "TextFormatter",
    "get_logger",
    "setup_logging",
    "stdlib_logging",
]
