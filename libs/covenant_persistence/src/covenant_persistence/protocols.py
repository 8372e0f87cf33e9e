"""Database protocol definitions for psycopg with strict typing."""

from __future__ import annotations

from collections.abc import Generator, Sequence
from contextlib import contextmanager
from typing import Protocol

SqlValue = str | int | bool | None
SqlParams = tuple[SqlValue, ...]
SqlRow = tuple[SqlValue, ...]


class CursorProtocol(Protocol):
    """Protocol for psycopg cursor."""

    def execute(self, query: str, params: SqlParams = ()) -> None: ...

    def fetchone(self) -> SqlRow | None: ...

    def fetchall(self) -> Sequence[SqlRow]: ...

    @property
    def rowcount(self) -> int: ...


class ConnectionProtocol(Protocol):
    """Protocol for psycopg connection (autocommit off)."""

    def cursor(self) -> CursorProtocol: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


class ConnectCallable(Protocol):
    def __call__(self, conninfo: str) -> ConnectionProtocol: ...


def _get_psycopg_connect() -> ConnectCallable:
    psycopg = __import__("psycopg")
    connect_fn: ConnectCallable = psycopg.connect
    return connect_fn


def load_unique_violation() -> type[Exception]:
    """Load psycopg.errors.UniqueViolation for callers that map it to a conflict."""
    errors_mod = __import__("psycopg.errors", fromlist=["UniqueViolation"])
    exc_cls: type[Exception] = errors_mod.UniqueViolation
    return exc_cls


@contextmanager
def connect(
    dsn: str,
    connect_fn: ConnectCallable | None = None,
) -> Generator[ConnectionProtocol, None, None]:
    """Context manager yielding a typed connection that is closed on exit.

    Args:
        dsn: Database connection string
        connect_fn: Optional connection callable (uses psycopg.connect if not provided)
    """
    if connect_fn is None:
        connect_fn = _get_psycopg_connect()
    conn = connect_fn(dsn)
    try:
        yield conn
    finally:
        conn.close()


__all__ = [
    "ConnectCallable",
    "ConnectionProtocol",
    "CursorProtocol",
    "SqlParams",
    "SqlRow",
    "SqlValue",
    "connect",
    "load_unique_violation",
]
