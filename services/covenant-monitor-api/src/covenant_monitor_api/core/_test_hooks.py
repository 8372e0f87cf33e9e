"""Hooks for container factories - production defaults, tests override.

Production code initializes these to real implementations at module level.
Tests replace them with fakes before exercising the code under test.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Protocol

from covenant_persistence import ConnectionProtocol
from platform_workers.redis import RedisStrProto, _RedisBytesClient, redis_for_kv, redis_raw_for_rq
from platform_workers.rq_harness import RQClientQueue, rq_queue


class KvClientFactoryProtocol(Protocol):
    def __call__(self, url: str) -> RedisStrProto: ...


class ConnectionFactoryProtocol(Protocol):
    def __call__(self, dsn: str) -> ConnectionProtocol: ...


class RqClientFactoryProtocol(Protocol):
    def __call__(self, url: str) -> _RedisBytesClient: ...


class QueueFactoryProtocol(Protocol):
    def __call__(self, name: str, connection: _RedisBytesClient) -> RQClientQueue: ...


class IdFactoryProtocol(Protocol):
    def __call__(self) -> str: ...


class ClockProtocol(Protocol):
    def __call__(self) -> str: ...


class PsycopgModuleProtocol(Protocol):
    def connect(self, conninfo: str) -> ConnectionProtocol: ...


class LoadPsycopgModuleHook(Protocol):
    def __call__(self) -> PsycopgModuleProtocol: ...


# Hook for loading psycopg module - tests override to provide fake
load_psycopg_module_hook: LoadPsycopgModuleHook | None = None


def _load_psycopg_module() -> PsycopgModuleProtocol:
    if load_psycopg_module_hook is not None:
        return load_psycopg_module_hook()
    module: PsycopgModuleProtocol = __import__("psycopg")
    return module


def _psycopg_connect(dsn: str) -> ConnectionProtocol:
    """Connect with autocommit off: repositories commit or roll back explicitly."""
    module = _load_psycopg_module()
    return module.connect(dsn)


def _uuid4() -> str:
    return str(uuid.uuid4())


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


kv_factory: KvClientFactoryProtocol = redis_for_kv
connection_factory: ConnectionFactoryProtocol = _psycopg_connect
rq_client_factory: RqClientFactoryProtocol = redis_raw_for_rq
queue_factory: QueueFactoryProtocol = rq_queue
new_id: IdFactoryProtocol = _uuid4
now_iso: ClockProtocol = _utc_now_iso
