"""Tests for the worker entry point."""

from __future__ import annotations

from platform_core.testing import make_fake_env
from platform_workers.rq_harness import WorkerConfig

from covenant_monitor_api.worker import _test_hooks
from covenant_monitor_api.worker.entry import main


class TestWorkerEntry:
    def test_main_runs_worker_with_env_config(self) -> None:
        env = make_fake_env()
        env.set("REDIS__URL", "redis://queue-host:6379/2")
        env.set("RQ__QUEUE_NAME", "nightly-tests")
        env.set("LOGGING__FORMAT", "text")
        captured: list[WorkerConfig] = []

        def _runner(config: WorkerConfig) -> None:
            captured.append(config)

        _test_hooks.test_runner = _runner
        main()
        assert captured == [
            {"redis_url": "redis://queue-host:6379/2", "queue_name": "nightly-tests"}
        ]

    def test_main_falls_back_to_redis_url(self) -> None:
        env = make_fake_env()
        env.set("REDIS_URL", "redis://legacy:6379/0")
        captured: list[WorkerConfig] = []

        def _runner(config: WorkerConfig) -> None:
            captured.append(config)

        _test_hooks.test_runner = _runner
        main()
        assert captured[0]["redis_url"] == "redis://legacy:6379/0"
        assert captured[0]["queue_name"] == "covenant-tests"
