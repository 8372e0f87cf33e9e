from __future__ import annotations

from typing import Protocol, runtime_checkable


class _RedisExceptionsModule(Protocol):
    RedisError: type[BaseException]


class _RedisModuleWithExceptions(Protocol):
    exceptions: _RedisExceptionsModule


def _load_redis_error_class() -> type[BaseException]:
    """Load redis.exceptions.RedisError without importing redis at module level."""
    redis_mod: _RedisModuleWithExceptions = __import__("redis")
    error_cls: type[BaseException] = redis_mod.exceptions.RedisError
    return error_cls


def is_redis_error(exc: BaseException) -> bool:
    """Check if an exception is a Redis error.

    Use this instead of catching redis.exceptions.RedisError directly.
    """
    return isinstance(exc, _load_redis_error_class())


class _RedisStrClient(Protocol):
    """Subset of redis.Redis[str] used by the service."""

    def ping(self, **kwargs: str | int | float | bool | None) -> bool | str: ...
    def scard(self, name: str) -> int: ...
    def close(self) -> None: ...


class _RedisBytesClient(Protocol):
    """Protocol for redis.Redis[bytes]; RQ drives the rest of its API itself."""

    def ping(self, **kwargs: str | int | float | bool | None) -> bool | bytes: ...
    def close(self) -> None: ...


class _RedisStrModule(Protocol):
    def from_url(
        self,
        url: str,
        *,
        encoding: str,
        decode_responses: bool,
        socket_connect_timeout: float,
        socket_timeout: float,
        retry_on_timeout: bool,
    ) -> _RedisStrClient: ...


class _RedisBytesModule(Protocol):
    def from_url(
        self,
        url: str,
        *,
        decode_responses: bool,
        socket_connect_timeout: float,
        socket_timeout: float,
        retry_on_timeout: bool,
    ) -> _RedisBytesClient: ...


def _load_redis_str_module() -> _RedisStrModule:
    from .testing import hooks

    if hooks.load_redis_str_module is not None:
        return hooks.load_redis_str_module()
    module: _RedisStrModule = __import__("redis")
    return module


def _load_redis_bytes_module() -> _RedisBytesModule:
    from .testing import hooks

    if hooks.load_redis_bytes_module is not None:
        return hooks.load_redis_bytes_module()
    module: _RedisBytesModule = __import__("redis")
    return module


@runtime_checkable
class RedisStrProto(Protocol):
    def ping(self, **kwargs: str | int | float | bool | None) -> bool: ...

    def scard(self, key: str) -> int: ...

    def close(self) -> None: ...


class _RedisStrAdapter(RedisStrProto):
    def __init__(self, inner: _RedisStrClient) -> None:
        self._inner = inner

    def ping(self, **kwargs: str | int | float | bool | None) -> bool:
        return bool(self._inner.ping(**kwargs))

    def scard(self, key: str) -> int:
        return int(self._inner.scard(name=key))

    def close(self) -> None:
        self._inner.close()


def redis_for_kv(url: str) -> RedisStrProto:
    """Strictly typed Redis client with decoded string responses."""
    redis_mod = _load_redis_str_module()
    client = redis_mod.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=1.0,
        socket_timeout=1.0,
        retry_on_timeout=True,
    )
    return _RedisStrAdapter(client)


def redis_raw_for_rq(url: str) -> _RedisBytesClient:
    """Return the raw binary Redis client RQ needs for its queue operations."""
    redis_mod = _load_redis_bytes_module()
    return redis_mod.from_url(
        url,
        decode_responses=False,
        socket_connect_timeout=1.0,
        socket_timeout=1.0,
        retry_on_timeout=True,
    )


__all__ = [
    "RedisStrProto",
    "_RedisBytesClient",
    "_RedisBytesModule",
    "_RedisStrClient",
    "_RedisStrModule",
    "_load_redis_error_class",
    "is_redis_error",
    "redis_for_kv",
    "redis_raw_for_rq",
]
