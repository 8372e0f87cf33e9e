"""Test hooks for the batch worker.

Production code runs the real RQ worker; tests set ``test_runner`` to capture
the WorkerConfig instead.
"""

from __future__ import annotations

from typing import Protocol

from platform_workers.rq_harness import WorkerConfig


class WorkerRunnerProtocol(Protocol):
    def __call__(self, config: WorkerConfig) -> None: ...


test_runner: WorkerRunnerProtocol | None = None


__all__ = ["WorkerRunnerProtocol", "test_runner"]
