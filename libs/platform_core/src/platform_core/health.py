"""Health check responses shared by the service's health checks.

Liveness (/healthz) never touches dependencies. Readiness (/readyz) is
computed by the service from Redis and worker presence.
"""

from __future__ import annotations

from typing import Literal

from typing_extensions import TypedDict


class HealthResponse(TypedDict):
    """Response for liveness check (/healthz)."""

    status: Literal["ok"]


class ReadyResponse(TypedDict):
    """Response for readiness check (/readyz).

    When ready: {"status": "ready", "reason": None}
    When degraded: {"status": "degraded", "reason": "description of issue"}
    """

    status: Literal["ready", "degraded"]
    reason: str | None


def healthz() -> HealthResponse:
    return {"status": "ok"}


def ready() -> ReadyResponse:
    return {"status": "ready", "reason": None}


def degraded(reason: str) -> ReadyResponse:
    return {"status": "degraded", "reason": reason}


__all__ = [
    "HealthResponse",
    "ReadyResponse",
    "degraded",
    "healthz",
    "ready",
]
