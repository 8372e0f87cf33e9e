"""Test doubles for covenant-monitor-api: deterministic ids, a fixed clock
and holders bundling the in-memory fakes a test needs to inspect."""

from __future__ import annotations

from covenant_persistence.testing import InMemoryConnection, InMemoryStore
from fastapi.testclient import TestClient
from platform_workers.testing import FakeQueue, FakeRedis, FakeRedisBytesClient


class SequentialIds:
    """Hands out "id-1", "id-2", ... in call order."""

    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"id-{self.count}"


class FixedClock:
    def __init__(self, now_iso: str) -> None:
        self.now_iso = now_iso

    def __call__(self) -> str:
        return self.now_iso


class ServiceFakes:
    """Everything the service talks to, replaced by in-memory fakes."""

    def __init__(
        self,
        store: InMemoryStore,
        redis: FakeRedis,
        rq_client: FakeRedisBytesClient,
        queue: FakeQueue,
        ids: SequentialIds,
        clock: FixedClock,
    ) -> None:
        self.store = store
        self.redis = redis
        self.rq_client = rq_client
        self.queue = queue
        self.ids = ids
        self.clock = clock
        self.connections: list[InMemoryConnection] = []


class ClientAndFakes:
    """TestClient for the full application plus the fakes behind it."""

    def __init__(self, client: TestClient, fakes: ServiceFakes) -> None:
        self.client = client
        self.fakes = fakes
        self.store = fakes.store


__all__ = ["ClientAndFakes", "FixedClock", "SequentialIds", "ServiceFakes"]
