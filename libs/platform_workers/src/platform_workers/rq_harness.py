from __future__ import annotations

from typing import Protocol, TypedDict

from platform_core.json_utils import JSONValue
from platform_core.logging import get_logger

from .redis import _RedisBytesClient, redis_raw_for_rq

log = get_logger(__name__)


class WorkerConfig(TypedDict):
    redis_url: str
    queue_name: str


class _RQJobInternal(Protocol):
    def get_id(self) -> str: ...


class _RQQueueInternal(Protocol):
    def enqueue(
        self,
        func_ref: str,
        *args: JSONValue,
        job_timeout: int | None = ...,
        result_ttl: int | None = ...,
        failure_ttl: int | None = ...,
        description: str | None = ...,
    ) -> _RQJobInternal: ...


class _RQWorkerInternal(Protocol):
    def work(self, *, with_scheduler: bool) -> None: ...


class _QueueCtor(Protocol):
    def __call__(self, name: str, *, connection: _RedisBytesClient) -> _RQQueueInternal: ...


class _WorkerCtor(Protocol):
    def __call__(
        self, queues: list[_RQQueueInternal], *, connection: _RedisBytesClient
    ) -> _RQWorkerInternal: ...


class _RQModuleProtocol(Protocol):
    """The parts of the rq module this package uses."""

    Queue: _QueueCtor
    SimpleWorker: _WorkerCtor


def _load_rq_module() -> _RQModuleProtocol:
    from .testing import hooks

    if hooks.load_rq_module is not None:
        return hooks.load_rq_module()
    module: _RQModuleProtocol = __import__("rq")
    return module


class RQJobLike(Protocol):
    def get_id(self) -> str: ...


class RQClientQueue(Protocol):
    """Public protocol for an RQ queue client."""

    def enqueue(
        self,
        func_ref: str,
        *args: JSONValue,
        job_timeout: int | None = ...,
        result_ttl: int | None = ...,
        failure_ttl: int | None = ...,
        description: str | None = ...,
    ) -> RQJobLike: ...


class _Job(RQJobLike):
    def __init__(self, inner: _RQJobInternal) -> None:
        self._inner = inner

    def get_id(self) -> str:
        return str(self._inner.get_id())


class _RQQueueAdapter(RQClientQueue):
    def __init__(self, inner: _RQQueueInternal) -> None:
        self._inner = inner

    def enqueue(
        self,
        func_ref: str,
        *args: JSONValue,
        job_timeout: int | None = None,
        result_ttl: int | None = None,
        failure_ttl: int | None = None,
        description: str | None = None,
    ) -> RQJobLike:
        job = self._inner.enqueue(
            func_ref,
            *args,
            job_timeout=job_timeout,
            result_ttl=result_ttl,
            failure_ttl=failure_ttl,
            description=description,
        )
        return _Job(job)


def rq_queue(name: str, connection: _RedisBytesClient) -> RQClientQueue:
    """Create an RQ queue client bound to a raw client from ``redis_raw_for_rq``."""
    rq_mod = _load_rq_module()
    return _RQQueueAdapter(rq_mod.Queue(name, connection=connection))


def run_rq_worker(config: WorkerConfig) -> None:
    """Start a SimpleWorker on the configured queue. Blocks until stopped.

    Exceptions from RQ propagate; there is no fallback.
    """
    conn = redis_raw_for_rq(config["redis_url"])
    rq_mod = _load_rq_module()
    queue = rq_mod.Queue(config["queue_name"], connection=conn)
    worker = rq_mod.SimpleWorker([queue], connection=conn)
    log.info("starting rq worker on queue %s", config["queue_name"])
    worker.work(with_scheduler=True)


class FetchedJobProto(Protocol):
    def get_id(self) -> str: ...

    def get_status(self) -> str: ...

    def return_value(self) -> JSONValue: ...


class _JobFetchCallable(Protocol):
    def __call__(self, __job_id: str, *, connection: _RedisBytesClient) -> FetchedJobProto: ...


class _RQJobClassProto(Protocol):
    fetch: _JobFetchCallable


def load_no_such_job_error() -> type[Exception]:
    """Load rq.exceptions.NoSuchJobError for callers of rq_fetch_job to catch."""
    rq_exc = __import__("rq.exceptions", fromlist=["NoSuchJobError"])
    exc_cls: type[Exception] = rq_exc.NoSuchJobError
    return exc_cls


def rq_fetch_job(job_id: str, connection: _RedisBytesClient) -> FetchedJobProto:
    """Fetch an RQ job by ID.

    Raises:
        NoSuchJobError: If the job does not exist (see load_no_such_job_error).
    """
    from .testing import hooks

    if hooks.fetch_job is not None:
        return hooks.fetch_job(job_id, connection)

    rq_job_mod = __import__("rq.job", fromlist=["Job"])
    job_cls: _RQJobClassProto = rq_job_mod.Job
    result: FetchedJobProto = job_cls.fetch(job_id, connection=connection)
    return result


__all__ = [
    "FetchedJobProto",
    "RQClientQueue",
    "RQJobLike",
    "WorkerConfig",
    "_QueueCtor",
    "_RQJobInternal",
    "_RQModuleProtocol",
    "_RQQueueInternal",
    "_RQWorkerInternal",
    "_WorkerCtor",
    "load_no_such_job_error",
    "rq_fetch_job",
    "rq_queue",
    "run_rq_worker",
]
