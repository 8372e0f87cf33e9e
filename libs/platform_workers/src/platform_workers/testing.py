"""Testing utilities for platform_workers.

Typed in-memory stand-ins for Redis and RQ, plus a HooksContainer. Production
code leaves every hook as None and loads the real modules; tests set hooks to
the fakes below.
"""

from __future__ import annotations

from typing import NamedTuple, Protocol

from platform_core.json_utils import JSONValue

from .redis import (
    RedisStrProto,
    _load_redis_error_class,
    _RedisBytesClient,
    _RedisBytesModule,
    _RedisStrClient,
    _RedisStrModule,
)
from .rq_harness import (
    FetchedJobProto,
    RQJobLike,
    _RQJobInternal,
    _RQModuleProtocol,
    _RQQueueInternal,
    _RQWorkerInternal,
)

# =============================================================================
# Redis Fakes
# =============================================================================


class FakeRedis(RedisStrProto):
    """In-memory Redis stub implementing RedisStrProto.

    ``workers`` is the value returned by scard, i.e. the number of
    registered RQ workers.
    """

    def __init__(self, workers: int = 1) -> None:
        self.workers = workers
        self.closed = False
        self.calls: list[str] = []

    def ping(self, **kwargs: str | int | float | bool | None) -> bool:
        self.calls.append("ping")
        return True

    def scard(self, key: str) -> int:
        self.calls.append("scard")
        return self.workers

    def close(self) -> None:
        self.closed = True


class FakeRedisNoPong(FakeRedis):
    def ping(self, **kwargs: str | int | float | bool | None) -> bool:
        self.calls.append("ping")
        return False


class FakeRedisError(FakeRedis):
    """Raises redis.exceptions.RedisError on ping."""

    def ping(self, **kwargs: str | int | float | bool | None) -> bool:
        self.calls.append("ping")
        raise _load_redis_error_class()("simulated Redis failure")


class FakeRedisScardError(FakeRedis):
    def scard(self, key: str) -> int:
        self.calls.append("scard")
        raise _load_redis_error_class()("simulated scard failure")


class FakeRedisNonRedisError(FakeRedis):
    def ping(self, **kwargs: str | int | float | bool | None) -> bool:
        self.calls.append("ping")
        raise RuntimeError("simulated non-Redis failure")


class FakeRedisBytesClient:
    """Stands in for the raw binary client handed to RQ."""

    def __init__(self) -> None:
        self.closed = False

    def ping(self, **kwargs: str | int | float | bool | None) -> bool:
        return True

    def close(self) -> None:
        self.closed = True


class _FakeRedisStrClient:
    def __init__(self, workers: int) -> None:
        self.workers = workers
        self.closed = False

    def ping(self, **kwargs: str | int | float | bool | None) -> bool:
        return True

    def scard(self, name: str) -> int:
        return self.workers

    def close(self) -> None:
        self.closed = True


class FakeRedisStrModule:
    """Fake ``redis`` module for redis_for_kv; records from_url calls."""

    def __init__(self, workers: int = 1) -> None:
        self.client = _FakeRedisStrClient(workers)
        self.urls: list[str] = []

    def from_url(
        self,
        url: str,
        *,
        encoding: str,
        decode_responses: bool,
        socket_connect_timeout: float,
        socket_timeout: float,
        retry_on_timeout: bool,
    ) -> _RedisStrClient:
        self.urls.append(url)
        return self.client


class FakeRedisBytesModule:
    def __init__(self) -> None:
        self.client = FakeRedisBytesClient()
        self.urls: list[str] = []

    def from_url(
        self,
        url: str,
        *,
        decode_responses: bool,
        socket_connect_timeout: float,
        socket_timeout: float,
        retry_on_timeout: bool,
    ) -> _RedisBytesClient:
        self.urls.append(url)
        return self.client


# =============================================================================
# RQ Fakes
# =============================================================================


class FakeJob(RQJobLike):
    def __init__(self, job_id: str = "test-job-id") -> None:
        self._id = job_id

    def get_id(self) -> str:
        return self._id


class FakeFetchedJob(FetchedJobProto):
    """Fake fetched RQ job for job status lookups."""

    def __init__(
        self,
        job_id: str = "test-job-id",
        status: str = "finished",
        result: JSONValue = None,
    ) -> None:
        self._id = job_id
        self._status = status
        self._result = result

    def get_id(self) -> str:
        return self._id

    def get_status(self) -> str:
        return self._status

    def return_value(self) -> JSONValue:
        return self._result


class EnqueuedJob(NamedTuple):
    """Record of an enqueued job."""

    func: str
    args: tuple[JSONValue, ...]
    job_timeout: int | None
    result_ttl: int | None
    failure_ttl: int | None
    description: str | None


class FakeQueue:
    """Fake RQClientQueue recording every enqueue call."""

    def __init__(self, job_id: str = "test-job-id") -> None:
        self._job_id = job_id
        self.jobs: list[EnqueuedJob] = []

    def enqueue(
        self,
        func_ref: str,
        *args: JSONValue,
        job_timeout: int | None = None,
        result_ttl: int | None = None,
        failure_ttl: int | None = None,
        description: str | None = None,
    ) -> RQJobLike:
        self.jobs.append(
            EnqueuedJob(
                func=func_ref,
                args=args,
                job_timeout=job_timeout,
                result_ttl=result_ttl,
                failure_ttl=failure_ttl,
                description=description,
            )
        )
        return FakeJob(self._job_id)


class _FakeRQQueueInternal:
    def __init__(self, name: str, job_id: str) -> None:
        self.name = name
        self._job_id = job_id
        self.enqueued: list[str] = []

    def enqueue(
        self,
        func_ref: str,
        *args: JSONValue,
        job_timeout: int | None = None,
        result_ttl: int | None = None,
        failure_ttl: int | None = None,
        description: str | None = None,
    ) -> _RQJobInternal:
        self.enqueued.append(func_ref)
        return FakeJob(self._job_id)


class _FakeRQWorkerInternal:
    def __init__(self, queues: list[_RQQueueInternal]) -> None:
        self.queues = queues
        self.worked_with_scheduler: bool | None = None

    def work(self, *, with_scheduler: bool) -> None:
        self.worked_with_scheduler = with_scheduler


class FakeRQModule:
    """Fake ``rq`` module exposing Queue and SimpleWorker constructors."""

    def __init__(self, job_id: str = "test-job-id") -> None:
        self._job_id = job_id
        self.queues: list[_FakeRQQueueInternal] = []
        self.workers: list[_FakeRQWorkerInternal] = []

    def Queue(self, name: str, *, connection: _RedisBytesClient) -> _RQQueueInternal:  # noqa: N802
        queue = _FakeRQQueueInternal(name, self._job_id)
        self.queues.append(queue)
        return queue

    def SimpleWorker(  # noqa: N802
        self, queues: list[_RQQueueInternal], *, connection: _RedisBytesClient
    ) -> _RQWorkerInternal:
        worker = _FakeRQWorkerInternal(queues)
        self.workers.append(worker)
        return worker


# =============================================================================
# Hooks Container for Dependency Injection
# =============================================================================


class LoadStrModuleHook(Protocol):
    def __call__(self) -> _RedisStrModule: ...


class LoadBytesModuleHook(Protocol):
    def __call__(self) -> _RedisBytesModule: ...


class LoadRQModuleHook(Protocol):
    def __call__(self) -> _RQModuleProtocol: ...


class FetchJobHook(Protocol):
    def __call__(self, job_id: str, connection: _RedisBytesClient) -> FetchedJobProto: ...


class HooksContainer:
    """Hooks consulted by platform_workers before loading redis or rq."""

    load_redis_str_module: LoadStrModuleHook | None = None
    load_redis_bytes_module: LoadBytesModuleHook | None = None
    load_rq_module: LoadRQModuleHook | None = None
    fetch_job: FetchJobHook | None = None

    @classmethod
    def reset(cls) -> None:
        """Reset all hooks to None (production defaults)."""
        cls.load_redis_str_module = None
        cls.load_redis_bytes_module = None
        cls.load_rq_module = None
        cls.fetch_job = None


hooks = HooksContainer


__all__ = [
    "EnqueuedJob",
    "FakeFetchedJob",
    "FakeJob",
    "FakeQueue",
    "FakeRQModule",
    "FakeRedis",
    "FakeRedisBytesClient",
    "FakeRedisBytesModule",
    "FakeRedisError",
    "FakeRedisNoPong",
    "FakeRedisNonRedisError",
    "FakeRedisScardError",
    "FakeRedisStrModule",
    "HooksContainer",
    "hooks",
]
