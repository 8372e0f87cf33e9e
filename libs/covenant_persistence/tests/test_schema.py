"""Tests for ensure_schema in covenant_persistence.postgres."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import covenant_persistence.postgres as pg
from covenant_persistence.protocols import ConnectionProtocol, CursorProtocol, SqlParams, SqlRow


class _FakeCursor(CursorProtocol):
    """Minimal cursor capturing the executed SQL for assertions."""

    def __init__(self) -> None:
        self.queries: list[str] = []

    @property
    def rowcount(self) -> int:
        return 0

    def execute(self, query: str, params: SqlParams = ()) -> None:
        self.queries.append(query)

    def fetchone(self) -> SqlRow | None:
        return None

    def fetchall(self) -> Sequence[SqlRow]:
        return []


class _FakeConnection(ConnectionProtocol):
    def __init__(self) -> None:
        self.cursor_obj = _FakeCursor()
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self) -> CursorProtocol:
        return self.cursor_obj

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


class TestEnsureSchema:
    def test_executes_schema_file_and_commits_once(self) -> None:
        conn = _FakeConnection()
        pg.ensure_schema(conn)
        schema_text = (Path(pg.__file__).parent / "schema.sql").read_text(encoding="utf-8")
        assert conn.cursor_obj.queries == [schema_text]
        assert conn.commits == 1
        assert conn.rollbacks == 0

    def test_schema_declares_all_tables(self) -> None:
        schema_text = (Path(pg.__file__).parent / "schema.sql").read_text(encoding="utf-8")
        for table in ("covenants", "financial_periods", "covenant_tests", "alerts"):
            assert f"CREATE TABLE IF NOT EXISTS {table}" in schema_text
        assert "UNIQUE (loan_id, period_end)" in schema_text
