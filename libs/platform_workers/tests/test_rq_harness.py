"""Tests for the typed RQ helpers."""

from __future__ import annotations

import pytest

from platform_workers.redis import _RedisBytesClient
from platform_workers.rq_harness import (
    FetchedJobProto,
    load_no_such_job_error,
    rq_fetch_job,
    rq_queue,
    run_rq_worker,
)
from platform_workers.testing import (
    FakeFetchedJob,
    FakeRedisBytesClient,
    FakeRedisBytesModule,
    FakeRQModule,
    hooks,
)


class TestRqQueue:
    def test_enqueue_returns_job_id(self) -> None:
        rq_mod = FakeRQModule(job_id="job-42")

        def _load() -> FakeRQModule:
            return rq_mod

        hooks.load_rq_module = _load
        queue = rq_queue("covenant-tests", FakeRedisBytesClient())
        job = queue.enqueue("pkg.mod.fn", ["loan-1"], job_timeout=60)
        assert job.get_id() == "job-42"
        assert rq_mod.queues[0].name == "covenant-tests"
        assert rq_mod.queues[0].enqueued == ["pkg.mod.fn"]


class TestRunRqWorker:
    def test_starts_worker_with_scheduler(self) -> None:
        rq_mod = FakeRQModule()
        redis_mod = FakeRedisBytesModule()

        def _load_rq() -> FakeRQModule:
            return rq_mod

        def _load_redis() -> FakeRedisBytesModule:
            return redis_mod

        hooks.load_rq_module = _load_rq
        hooks.load_redis_bytes_module = _load_redis
        run_rq_worker({"redis_url": "redis://r:6379/0", "queue_name": "covenant-tests"})
        assert redis_mod.urls == ["redis://r:6379/0"]
        assert [q.name for q in rq_mod.queues] == ["covenant-tests"]
        assert rq_mod.workers[0].worked_with_scheduler is True


class TestRqFetchJob:
    def test_uses_fetch_hook(self) -> None:
        def _fetch(job_id: str, connection: _RedisBytesClient) -> FetchedJobProto:
            return FakeFetchedJob(job_id=job_id, status="started")

        hooks.fetch_job = _fetch
        job = rq_fetch_job("abc", FakeRedisBytesClient())
        assert job.get_id() == "abc"
        assert job.get_status() == "started"

    def test_no_such_job_error_is_exception(self) -> None:
        error_cls = load_no_such_job_error()
        assert issubclass(error_cls, Exception)
        with pytest.raises(error_cls):
            raise error_cls("missing")
