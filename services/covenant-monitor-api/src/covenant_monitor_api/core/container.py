"""Service container for dependency injection in covenant-monitor-api.

Routes and the worker reach Redis, the RQ queue and the database through
the container rather than creating their own connections.
"""

from __future__ import annotations

from typing import Literal, TypedDict

from covenant_persistence import (
    AlertRepository,
    ConnectionProtocol,
    CovenantRepository,
    CovenantTestRepository,
    FinancialPeriodRepository,
    PostgresAlertRepository,
    PostgresCovenantRepository,
    PostgresCovenantTestRepository,
    PostgresFinancialPeriodRepository,
    ensure_schema,
)
from platform_core.errors import AppError, ErrorCode
from platform_core.json_utils import JSONValue
from platform_core.logging import get_logger
from platform_workers.redis import RedisStrProto, _RedisBytesClient
from platform_workers.rq_harness import RQClientQueue, load_no_such_job_error, rq_fetch_job

from . import _test_hooks
from .config import Settings

_log = get_logger(__name__)

JobState = Literal["queued", "started", "finished", "failed", "not_found"]


class JobStatus(TypedDict, total=True):
    """Status of a background job."""

    job_id: str
    status: JobState
    result: JSONValue | None


def _job_state(rq_status: str) -> JobState:
    if rq_status in ("queued", "deferred", "scheduled"):
        return "queued"
    if rq_status == "started":
        return "started"
    if rq_status == "finished":
        return "finished"
    if rq_status in ("failed", "stopped", "canceled"):
        return "failed"
    return "not_found"


class ServiceContainer:
    """Container holding shared service dependencies.

    Attributes:
        settings: Application configuration loaded from environment.
        redis: Redis client for readiness checks, None when Redis is disabled.
        db_conn: Database connection shared by the repositories.
    """

    settings: Settings
    redis: RedisStrProto | None
    db_conn: ConnectionProtocol
    _redis_rq: _RedisBytesClient | None

    def __init__(
        self: ServiceContainer,
        settings: Settings,
        redis: RedisStrProto | None,
        db_conn: ConnectionProtocol,
        redis_rq: _RedisBytesClient | None,
    ) -> None:
        self.settings = settings
        self.redis = redis
        self.db_conn = db_conn
        self._redis_rq = redis_rq

    @classmethod
    def from_settings(cls: type[ServiceContainer], settings: Settings) -> ServiceContainer:
        """Create container from settings, instantiating all dependencies.

        The database schema is created if missing. Redis clients are only
        opened when ``redis.enabled`` is set.
        """
        db_conn = _test_hooks.connection_factory(settings["database_url"])
        ensure_schema(db_conn)
        redis: RedisStrProto | None = None
        redis_rq: _RedisBytesClient | None = None
        if settings["redis"]["enabled"]:
            redis_url = settings["redis"]["url"]
            redis = _test_hooks.kv_factory(redis_url)
            redis_rq = _test_hooks.rq_client_factory(redis_url)
        return cls(settings=settings, redis=redis, db_conn=db_conn, redis_rq=redis_rq)

    def close(self: ServiceContainer) -> None:
        """Close all resources held by the container."""
        if self.redis is not None:
            self.redis.close()
        if self._redis_rq is not None:
            self._redis_rq.close()
        self.db_conn.close()

    def covenant_repo(self: ServiceContainer) -> CovenantRepository:
        repo: CovenantRepository = PostgresCovenantRepository(self.db_conn)
        return repo

    def period_repo(self: ServiceContainer) -> FinancialPeriodRepository:
        repo: FinancialPeriodRepository = PostgresFinancialPeriodRepository(self.db_conn)
        return repo

    def covenant_test_repo(self: ServiceContainer) -> CovenantTestRepository:
        repo: CovenantTestRepository = PostgresCovenantTestRepository(self.db_conn)
        return repo

    def alert_repo(self: ServiceContainer) -> AlertRepository:
        repo: AlertRepository = PostgresAlertRepository(self.db_conn)
        return repo

    def _require_rq_client(self: ServiceContainer) -> _RedisBytesClient:
        if self._redis_rq is None:
            raise AppError(ErrorCode.SERVICE_UNAVAILABLE, "Batch queue is disabled")
        return self._redis_rq

    def rq_queue(self: ServiceContainer) -> RQClientQueue:
        """Get the RQ queue that batch test jobs are enqueued on."""
        queue_name = self.settings["rq"]["queue_name"]
        return _test_hooks.queue_factory(queue_name, self._require_rq_client())

    def get_job_status(self: ServiceContainer, job_id: str) -> JobStatus:
        """Get status and, once finished, the result of a batch job."""
        connection = self._require_rq_client()
        no_such_job_error = load_no_such_job_error()
        try:
            job = rq_fetch_job(job_id, connection)
        except no_such_job_error:
            _log.debug("job not found: %s", job_id)
            return JobStatus(job_id=job_id, status="not_found", result=None)

        status = _job_state(job.get_status())
        result: JSONValue | None = None
        if status == "finished":
            raw_result = job.return_value()
            if isinstance(raw_result, dict):
                result = raw_result
        return JobStatus(job_id=job_id, status=status, result=result)


__all__ = ["JobState", "JobStatus", "ServiceContainer"]
