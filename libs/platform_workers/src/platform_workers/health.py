"""Redis-dependent readiness checks.

Liveness needs no dependencies; see platform_core.health.
"""

from __future__ import annotations

from platform_core.health import ReadyResponse, degraded, ready
from platform_core.logging import get_logger

from .redis import RedisStrProto, is_redis_error

_logger = get_logger(__name__)


def readyz_redis_with_workers(
    redis: RedisStrProto,
    *,
    workers_key: str = "rq:workers",
) -> ReadyResponse:
    """Ready when Redis answers ping and at least one RQ worker is registered.

    Redis errors degrade the check; any other error propagates.
    """
    try:
        pong = redis.ping()
    except Exception as exc:
        if not is_redis_error(exc):
            _logger.error("readyz ping non-redis error", exc_info=True)
            raise
        _logger.warning("readyz ping redis error: %s", exc)
        return degraded("redis error")

    if not pong:
        _logger.warning("readyz ping returned false")
        return degraded("redis no-pong")

    try:
        worker_count = redis.scard(workers_key)
    except Exception as exc:
        if not is_redis_error(exc):
            _logger.error("readyz scard non-redis error", exc_info=True)
            raise
        _logger.warning("readyz scard redis error: %s", exc)
        return degraded("redis error")

    if worker_count <= 0:
        _logger.warning("readyz no workers found")
        return degraded("no-worker")

    return ready()


__all__ = ["readyz_redis_with_workers"]
