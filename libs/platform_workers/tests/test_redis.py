"""Tests for the typed Redis client factories."""

from __future__ import annotations

from platform_workers.redis import is_redis_error, redis_for_kv, redis_raw_for_rq
from platform_workers.testing import FakeRedisBytesModule, FakeRedisStrModule, hooks


class TestRedisForKv:
    def test_adapter_wraps_client(self) -> None:
        module = FakeRedisStrModule(workers=3)

        def _load() -> FakeRedisStrModule:
            return module

        hooks.load_redis_str_module = _load
        client = redis_for_kv("redis://cache:6379/0")
        assert module.urls == ["redis://cache:6379/0"]
        assert client.ping() is True
        assert client.scard("rq:workers") == 3
        client.close()
        assert module.client.closed is True


class TestRedisRawForRq:
    def test_returns_raw_client(self) -> None:
        module = FakeRedisBytesModule()

        def _load() -> FakeRedisBytesModule:
            return module

        hooks.load_redis_bytes_module = _load
        client = redis_raw_for_rq("redis://queue:6379/1")
        assert client is module.client
        assert module.urls == ["redis://queue:6379/1"]


class TestIsRedisError:
    def test_redis_error_detected(self) -> None:
        redis_exceptions = __import__("redis.exceptions", fromlist=["ConnectionError"])
        assert is_redis_error(redis_exceptions.ConnectionError("down")) is True

    def test_other_error_not_detected(self) -> None:
        assert is_redis_error(ValueError("nope")) is False
