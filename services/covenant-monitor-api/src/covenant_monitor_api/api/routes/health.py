"""Health check routes for covenant-monitor-api."""

from __future__ import annotations

from typing import Protocol

from fastapi import APIRouter, status
from platform_core.health import HealthResponse, ReadyResponse
from platform_core.json_utils import JSONValue
from platform_workers.redis import RedisStrProto
from starlette.responses import Response

from ...health import healthz_endpoint, readyz_endpoint

# OpenAPI response schemas (no type annotation for FastAPI compatibility)
_HEALTHZ_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "Service is alive",
        "content": {"application/json": {"example": {"status": "ok"}}},
    },
}

_READYZ_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "Service is ready",
        "content": {"application/json": {"example": {"status": "ready", "reason": None}}},
    },
    503: {
        "description": "Service is degraded",
        "content": {"application/json": {"example": {"status": "degraded", "reason": "no-worker"}}},
    },
}


class HealthContainerProtocol(Protocol):
    """Protocol for health check container."""

    redis: RedisStrProto | None


def build_router(get_container: HealthContainerProtocol) -> APIRouter:
    """Build health router with /healthz and /readyz endpoints."""
    router = APIRouter()

    def _healthz() -> HealthResponse:
        """Liveness check. Never touches Redis or the database."""
        return healthz_endpoint()

    def _readyz(resp: Response) -> ReadyResponse:
        """Readiness check checking Redis connectivity and worker availability.

        Returns 503 with {"status": "degraded", "reason": "..."} when Redis is
        disabled or unreachable, or no RQ worker is registered.
        """
        result = readyz_endpoint(redis=get_container.redis)
        if result["status"] == "degraded":
            resp.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return result

    router.add_api_route(
        "/healthz",
        _healthz,
        methods=["GET"],
        response_model=None,
        summary="Liveness check",
        response_description="Health status",
        responses=_HEALTHZ_RESPONSES,
        tags=["health"],
    )
    router.add_api_route(
        "/readyz",
        _readyz,
        methods=["GET"],
        response_model=None,
        summary="Readiness check",
        description="Checks Redis and RQ worker availability. Returns 503 when degraded.",
        response_description="Readiness status with optional reason",
        responses=_READYZ_RESPONSES,
        tags=["health"],
    )
    return router


__all__ = ["HealthContainerProtocol", "build_router"]
