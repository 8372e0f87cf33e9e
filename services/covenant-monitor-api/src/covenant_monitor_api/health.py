"""Health checks for covenant-monitor-api.

Uses platform_core.health for liveness and platform_workers.health for Redis checks.
"""

from __future__ import annotations

from platform_core.health import HealthResponse, ReadyResponse, degraded, healthz, ready
from platform_workers.health import readyz_redis_with_workers
from platform_workers.redis import RedisStrProto


def healthz_endpoint() -> HealthResponse:
    """Liveness check; always returns ok."""
    return healthz()


def readyz_endpoint(redis: RedisStrProto | None) -> ReadyResponse:
    """Readiness check of Redis and workers.

    Args:
        redis: Redis client for connectivity check, None when Redis is disabled.

    Returns:
        Ready response with status and optional reason
    """
    if redis is None:
        return degraded("redis disabled")
    redis_result = readyz_redis_with_workers(redis)
    if redis_result["status"] == "degraded":
        return redis_result
    return ready()


__all__ = [
    "healthz_endpoint",
    "readyz_endpoint",
]
