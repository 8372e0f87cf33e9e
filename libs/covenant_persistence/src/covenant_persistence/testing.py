"""Testing utilities for covenant_persistence.

Provides in-memory implementations of ConnectionProtocol and CursorProtocol
for testing services that use covenant_persistence without a real database.
The cursor understands exactly the statements issued by the Postgres
repositories; anything else (schema DDL) is accepted and ignored.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from covenant_domain.models import (
    Alert,
    AlertId,
    Covenant,
    CovenantId,
    CovenantTest,
    CovenantTestId,
    FinancialPeriod,
    FinancialPeriodId,
    LoanId,
)

from .postgres import (
    dump_step_downs,
    load_step_downs,
    narrow_covenant_type,
    narrow_frequency,
    narrow_operator,
    narrow_severity,
    narrow_status,
)
from .protocols import CursorProtocol, SqlParams, SqlRow, load_unique_violation

# =============================================================================
# Type Aliases
# =============================================================================

_QueryHandler = Callable[[str, SqlParams], None]
_Snapshot = tuple[
    dict[str, Covenant],
    dict[str, FinancialPeriod],
    list[CovenantTest],
    list[Alert],
]


# =============================================================================
# In-Memory Store
# =============================================================================


class InMemoryStore:
    """Shared in-memory storage for all repositories.

    Dicts preserve insertion order, which stands in for ``created_at``.
    Set ``fail_on`` to a lowercased statement prefix (for example
    ``"insert into alerts"``) to make the next matching statement raise.
    """

    def __init__(self) -> None:
        self.covenants: dict[str, Covenant] = {}
        self.periods: dict[str, FinancialPeriod] = {}
        self.tests: list[CovenantTest] = []
        self.alerts: list[Alert] = []
        self.fail_on: str | None = None

    def snapshot(self) -> _Snapshot:
        return (dict(self.covenants), dict(self.periods), list(self.tests), list(self.alerts))

    def restore(self, snapshot: _Snapshot) -> None:
        covenants, periods, tests, alerts = snapshot
        self.covenants = dict(covenants)
        self.periods = dict(periods)
        self.tests = list(tests)
        self.alerts = list(alerts)


# =============================================================================
# In-Memory Cursor
# =============================================================================


class InMemoryCursor:
    """In-memory cursor that simulates psycopg cursor behavior."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._results: list[SqlRow] = []
        self._rowcount = 0

    @property
    def rowcount(self) -> int:
        """Return number of rows affected by last execute."""
        return self._rowcount

    def execute(self, query: str, params: SqlParams = ()) -> None:
        """Execute SQL query against in-memory store."""
        self._results = []
        self._rowcount = 0
        query_lower = query.lower().strip()
        fail_on = self._store.fail_on
        if fail_on is not None and query_lower.startswith(fail_on):
            self._store.fail_on = None
            raise RuntimeError(f"Injected failure for: {fail_on}")
        handler = self._get_handler(query_lower)
        if handler is not None:
            handler(query_lower, params)

    def _get_handler(self, query: str) -> _QueryHandler | None:
        handler = self._get_covenant_handler(query)
        if handler is not None:
            return handler
        handler = self._get_period_handler(query)
        if handler is not None:
            return handler
        handler = self._get_test_handler(query)
        if handler is not None:
            return handler
        return self._get_alert_handler(query)

    def _get_covenant_handler(self, query: str) -> _QueryHandler | None:
        if query.startswith("insert into covenants"):
            return self._insert_covenant
        if query.startswith("select distinct loan_id from covenants"):
            return self._select_loan_ids
        if query.startswith("select") and "from covenants" in query:
            return self._select_covenants
        if query.startswith("delete from covenants"):
            return self._delete_covenant
        return None

    def _get_period_handler(self, query: str) -> _QueryHandler | None:
        if query.startswith("insert into financial_periods"):
            return self._insert_period
        if query.startswith("select") and "from financial_periods" in query:
            return self._select_periods
        return None

    def _get_test_handler(self, query: str) -> _QueryHandler | None:
        if query.startswith("insert into covenant_tests"):
            return self._insert_test
        if query.startswith("select") and "from covenant_tests" in query:
            return self._select_tests
        return None

    def _get_alert_handler(self, query: str) -> _QueryHandler | None:
        if query.startswith("insert into alerts"):
            return self._insert_alert
        if query.startswith("select") and "from alerts" in query:
            return self._select_alerts
        if query.startswith("update alerts"):
            return self._acknowledge_alert
        return None

    # covenants

    def _insert_covenant(self, query: str, params: SqlParams) -> None:
        cov_id = _p_str(params, 0)
        if cov_id in self._store.covenants:
            raise ValueError(f"Duplicate covenant ID: {cov_id}")
        self._store.covenants[cov_id] = Covenant(
            id=CovenantId(value=cov_id),
            loan_id=LoanId(value=_p_str(params, 1)),
            name=_p_str(params, 2),
            type=narrow_covenant_type(_p_str(params, 3)),
            operator=narrow_operator(_p_str(params, 4)),
            threshold_scaled=_p_int(params, 5),
            threshold_step_downs=load_step_downs(_p_str(params, 6)),
            formula=_p_optional_str(params, 7),
            testing_frequency=narrow_frequency(_p_str(params, 8)),
            grace_period_days=_p_int(params, 9),
        )
        self._rowcount = 1

    def _select_loan_ids(self, query: str, params: SqlParams) -> None:
        loan_ids = sorted({c["loan_id"]["value"] for c in self._store.covenants.values()})
        self._results = [(loan_id,) for loan_id in loan_ids]

    def _select_covenants(self, query: str, params: SqlParams) -> None:
        if "where id = %s" in query:
            cov = self._store.covenants.get(_p_str(params, 0))
            if cov is not None:
                self._results = [_covenant_to_row(cov)]
            return
        loan_id = _p_str(params, 0)
        self._results = [
            _covenant_to_row(c)
            for c in self._store.covenants.values()
            if c["loan_id"]["value"] == loan_id
        ]

    def _delete_covenant(self, query: str, params: SqlParams) -> None:
        cov_id = _p_str(params, 0)
        if cov_id not in self._store.covenants:
            return
        del self._store.covenants[cov_id]
        self._store.tests = [t for t in self._store.tests if t["covenant_id"]["value"] != cov_id]
        self._store.alerts = [a for a in self._store.alerts if a["covenant_id"]["value"] != cov_id]
        self._rowcount = 1

    # financial periods

    def _insert_period(self, query: str, params: SqlParams) -> None:
        period_id = _p_str(params, 0)
        loan_id = _p_str(params, 1)
        period_end = _p_str(params, 2)
        if period_id in self._store.periods:
            raise ValueError(f"Duplicate financial period ID: {period_id}")
        for existing in self._store.periods.values():
            if existing["loan_id"]["value"] == loan_id and existing["period_end_iso"] == period_end:
                unique_violation = load_unique_violation()
                raise unique_violation(f"Duplicate financial period: {loan_id} {period_end}")
        self._store.periods[period_id] = FinancialPeriod(
            id=FinancialPeriodId(value=period_id),
            loan_id=LoanId(value=loan_id),
            period_end_iso=period_end,
            period_type=narrow_frequency(_p_str(params, 3)),
            revenue=_p_optional_int(params, 4),
            ebitda_reported=_p_optional_int(params, 5),
            ebitda_adjusted=_p_optional_int(params, 6),
            total_debt=_p_optional_int(params, 7),
            interest_expense=_p_optional_int(params, 8),
            fixed_charges=_p_optional_int(params, 9),
            current_assets=_p_optional_int(params, 10),
            current_liabilities=_p_optional_int(params, 11),
            net_worth=_p_optional_int(params, 12),
        )
        self._rowcount = 1

    def _select_periods(self, query: str, params: SqlParams) -> None:
        if "where id = %s" in query:
            period = self._store.periods.get(_p_str(params, 0))
            if period is not None:
                self._results = [_period_to_row(period)]
            return
        loan_id = _p_str(params, 0)
        periods = [p for p in self._store.periods.values() if p["loan_id"]["value"] == loan_id]
        periods.sort(key=lambda p: p["period_end_iso"], reverse=True)
        if "limit 1" in query:
            periods = periods[:1]
        self._results = [_period_to_row(p) for p in periods]

    # covenant tests

    def _insert_test(self, query: str, params: SqlParams) -> None:
        test_id = _p_str(params, 0)
        if any(t["id"]["value"] == test_id for t in self._store.tests):
            raise ValueError(f"Duplicate covenant test ID: {test_id}")
        period_id = _p_optional_str(params, 3)
        self._store.tests.append(
            CovenantTest(
                id=CovenantTestId(value=test_id),
                covenant_id=CovenantId(value=_p_str(params, 1)),
                loan_id=LoanId(value=_p_str(params, 2)),
                financial_period_id=(
                    FinancialPeriodId(value=period_id) if period_id is not None else None
                ),
                period_end_iso=_p_str(params, 4),
                threshold_at_test_scaled=_p_int(params, 5),
                calculated_value_scaled=_p_int(params, 6),
                status=narrow_status(_p_str(params, 7)),
                headroom_absolute_scaled=_p_int(params, 8),
                headroom_percentage_scaled=_p_int(params, 9),
                tested_at_iso=_p_str(params, 10),
                notes=_p_optional_str(params, 11),
            )
        )
        self._rowcount = 1

    def _select_tests(self, query: str, params: SqlParams) -> None:
        key = "covenant_id" if "where covenant_id = %s" in query else "loan_id"
        wanted = _p_str(params, 0)
        tests: list[CovenantTest] = []
        for test in reversed(self._store.tests):
            owner = test["covenant_id"] if key == "covenant_id" else test["loan_id"]
            if owner["value"] == wanted:
                tests.append(test)
        tests.sort(key=lambda t: t["tested_at_iso"], reverse=True)
        self._results = [_test_to_row(t) for t in tests]

    # alerts

    def _insert_alert(self, query: str, params: SqlParams) -> None:
        alert_id = _p_str(params, 0)
        if any(a["id"]["value"] == alert_id for a in self._store.alerts):
            raise ValueError(f"Duplicate alert ID: {alert_id}")
        self._store.alerts.append(
            Alert(
                id=AlertId(value=alert_id),
                loan_id=LoanId(value=_p_str(params, 1)),
                covenant_id=CovenantId(value=_p_str(params, 2)),
                covenant_test_id=CovenantTestId(value=_p_str(params, 3)),
                severity=narrow_severity(_p_str(params, 4)),
                title=_p_str(params, 5),
                message=_p_str(params, 6),
                acknowledged=_p_bool(params, 7),
            )
        )
        self._rowcount = 1

    def _select_alerts(self, query: str, params: SqlParams) -> None:
        loan_id = _p_str(params, 0)
        self._results = [
            _alert_to_row(a)
            for a in reversed(self._store.alerts)
            if a["loan_id"]["value"] == loan_id
        ]

    def _acknowledge_alert(self, query: str, params: SqlParams) -> None:
        alert_id = _p_str(params, 0)
        for index, alert in enumerate(self._store.alerts):
            if alert["id"]["value"] == alert_id:
                updated = Alert(
                    id=alert["id"],
                    loan_id=alert["loan_id"],
                    covenant_id=alert["covenant_id"],
                    covenant_test_id=alert["covenant_test_id"],
                    severity=alert["severity"],
                    title=alert["title"],
                    message=alert["message"],
                    acknowledged=True,
                )
                self._store.alerts[index] = updated
                self._results = [_alert_to_row(updated)]
                self._rowcount = 1
                return

    def fetchone(self) -> SqlRow | None:
        """Fetch one row from results."""
        if self._results:
            return self._results[0]
        return None

    def fetchall(self) -> Sequence[SqlRow]:
        """Fetch all rows from results."""
        return list(self._results)


# =============================================================================
# In-Memory Connection
# =============================================================================


class InMemoryConnection:
    """In-memory connection that satisfies ConnectionProtocol.

    Rolling back restores the store to its state at the last commit.
    """

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._snapshot = store.snapshot()
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self) -> CursorProtocol:
        """Create a new cursor."""
        cursor: CursorProtocol = InMemoryCursor(self._store)
        return cursor

    def commit(self) -> None:
        self._snapshot = self._store.snapshot()
        self.commits += 1

    def rollback(self) -> None:
        self._store.restore(self._snapshot)
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


# =============================================================================
# Param / Row Conversion Helpers
# =============================================================================


def _p_str(params: SqlParams, index: int) -> str:
    value = params[index]
    if not isinstance(value, str):
        raise TypeError(f"Expected str param at {index}, got {type(value).__name__}")
    return value


def _p_optional_str(params: SqlParams, index: int) -> str | None:
    if params[index] is None:
        return None
    return _p_str(params, index)


def _p_int(params: SqlParams, index: int) -> int:
    value = params[index]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int param at {index}, got {type(value).__name__}")
    return value


def _p_optional_int(params: SqlParams, index: int) -> int | None:
    if params[index] is None:
        return None
    return _p_int(params, index)


def _p_bool(params: SqlParams, index: int) -> bool:
    value = params[index]
    if not isinstance(value, bool):
        raise TypeError(f"Expected bool param at {index}, got {type(value).__name__}")
    return value


def _covenant_to_row(c: Covenant) -> SqlRow:
    return (
        c["id"]["value"],
        c["loan_id"]["value"],
        c["name"],
        c["type"],
        c["operator"],
        c["threshold_scaled"],
        dump_step_downs(c["threshold_step_downs"]),
        c["formula"],
        c["testing_frequency"],
        c["grace_period_days"],
    )


def _period_to_row(p: FinancialPeriod) -> SqlRow:
    return (
        p["id"]["value"],
        p["loan_id"]["value"],
        p["period_end_iso"],
        p["period_type"],
        p["revenue"],
        p["ebitda_reported"],
        p["ebitda_adjusted"],
        p["total_debt"],
        p["interest_expense"],
        p["fixed_charges"],
        p["current_assets"],
        p["current_liabilities"],
        p["net_worth"],
    )


def _test_to_row(t: CovenantTest) -> SqlRow:
    period_id = t["financial_period_id"]
    return (
        t["id"]["value"],
        t["covenant_id"]["value"],
        t["loan_id"]["value"],
        period_id["value"] if period_id is not None else None,
        t["period_end_iso"],
        t["threshold_at_test_scaled"],
        t["calculated_value_scaled"],
        t["status"],
        t["headroom_absolute_scaled"],
        t["headroom_percentage_scaled"],
        t["tested_at_iso"],
        t["notes"],
    )


def _alert_to_row(a: Alert) -> SqlRow:
    return (
        a["id"]["value"],
        a["loan_id"]["value"],
        a["covenant_id"]["value"],
        a["covenant_test_id"]["value"],
        a["severity"],
        a["title"],
        a["message"],
        a["acknowledged"],
    )


__all__ = [
    "InMemoryConnection",
    "InMemoryCursor",
    "InMemoryStore",
]
