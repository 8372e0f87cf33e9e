"""PostgreSQL implementations of repository protocols."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from covenant_domain.decode import decode_step_downs
from covenant_domain.encode import encode_step_down
from covenant_domain.models import (
    Alert,
    AlertId,
    AlertSeverity,
    ComplianceStatus,
    Covenant,
    CovenantId,
    CovenantOperator,
    CovenantTest,
    CovenantTestId,
    CovenantType,
    FinancialPeriod,
    FinancialPeriodId,
    LoanId,
    TestingFrequency,
    ThresholdStepDown,
)
from platform_core.json_utils import (
    JSONValue,
    dump_json_str,
    load_json_str,
    narrow_json_to_list,
)

from .protocols import (
    ConnectionProtocol,
    CursorProtocol,
    SqlParams,
    SqlRow,
    load_unique_violation,
)
from .repositories import DuplicatePeriodError

_COVENANT_COLUMNS = """
    id, loan_id, name, type, operator, threshold_scaled,
    threshold_step_downs::text, formula, testing_frequency, grace_period_days
"""

_PERIOD_COLUMNS = """
    id, loan_id, period_end::text, period_type, revenue, ebitda_reported,
    ebitda_adjusted, total_debt, interest_expense, fixed_charges,
    current_assets, current_liabilities, net_worth
"""

_INSERT_PERIOD = """
    INSERT INTO financial_periods (id, loan_id, period_end, period_type, revenue,
                                   ebitda_reported, ebitda_adjusted, total_debt,
                                   interest_expense, fixed_charges, current_assets,
                                   current_liabilities, net_worth)
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
"""

_TEST_COLUMNS = """
    id, covenant_id, loan_id, financial_period_id, period_end::text,
    threshold_at_test_scaled, calculated_value_scaled, status,
    headroom_absolute_scaled, headroom_percentage_scaled,
    to_char(tested_at AT TIME ZONE 'UTC', 'YYYY-MM-DD"T"HH24:MI:SS"+00:00"'), notes
"""

_ALERT_COLUMNS = """
    id, loan_id, covenant_id, covenant_test_id, severity, title, message, acknowledged
"""


def ensure_schema(conn: ConnectionProtocol) -> None:
    """Create the covenant tables if they do not exist yet."""
    schema_path = Path(__file__).parent / "schema.sql"
    cursor = conn.cursor()
    cursor.execute(schema_path.read_text(encoding="utf-8"))
    conn.commit()


def _execute(conn: ConnectionProtocol, query: str, params: SqlParams = ()) -> CursorProtocol:
    """Run one statement; a failure rolls back so the connection stays usable."""
    cursor = conn.cursor()
    try:
        cursor.execute(query, params)
    except Exception:
        conn.rollback()
        raise
    return cursor


def dump_step_downs(steps: Sequence[ThresholdStepDown]) -> str:
    """Serialize step-downs for the JSONB column."""
    items: list[JSONValue] = [encode_step_down(step) for step in steps]
    return dump_json_str(items)


def load_step_downs(text: str) -> list[ThresholdStepDown]:
    return decode_step_downs(narrow_json_to_list(load_json_str(text)))


class PostgresCovenantRepository:
    """PostgreSQL implementation of CovenantRepository."""

    def __init__(self, conn: ConnectionProtocol) -> None:
        self._conn = conn

    def create(self, covenant: Covenant) -> None:
        """Insert new covenant. Raises on duplicate ID."""
        _execute(
            self._conn,
            """
            INSERT INTO covenants (id, loan_id, name, type, operator, threshold_scaled,
                                   threshold_step_downs, formula, testing_frequency,
                                   grace_period_days)
            VALUES (%s, %s, %s, %s, %s, %s, %s::jsonb, %s, %s, %s)
            """,
            (
                covenant["id"]["value"],
                covenant["loan_id"]["value"],
                covenant["name"],
                covenant["type"],
                covenant["operator"],
                covenant["threshold_scaled"],
                dump_step_downs(covenant["threshold_step_downs"]),
                covenant["formula"],
                covenant["testing_frequency"],
                covenant["grace_period_days"],
            ),
        )
        self._conn.commit()

    def get(self, covenant_id: CovenantId) -> Covenant:
        """Get covenant by ID. Raises KeyError if not found."""
        cursor = _execute(
            self._conn,
            f"SELECT {_COVENANT_COLUMNS} FROM covenants WHERE id = %s",
            (covenant_id["value"],),
        )
        row = cursor.fetchone()
        if row is None:
            raise KeyError(f"Covenant not found: {covenant_id['value']}")
        return row_to_covenant(row)

    def list_for_loan(self, loan_id: LoanId) -> Sequence[Covenant]:
        cursor = _execute(
            self._conn,
            f"SELECT {_COVENANT_COLUMNS} FROM covenants WHERE loan_id = %s "
            "ORDER BY created_at, id",
            (loan_id["value"],),
        )
        return [row_to_covenant(row) for row in cursor.fetchall()]

    def list_loan_ids(self) -> Sequence[LoanId]:
        cursor = _execute(self._conn, "SELECT DISTINCT loan_id FROM covenants ORDER BY loan_id")
        loan_ids: list[LoanId] = []
        for row in cursor.fetchall():
            loan_ids.append(LoanId(value=_str(row, 0, "loan_id")))
        return loan_ids

    def delete(self, covenant_id: CovenantId) -> None:
        """Delete covenant. Raises KeyError if not found."""
        cursor = _execute(
            self._conn, "DELETE FROM covenants WHERE id = %s", (covenant_id["value"],)
        )
        if cursor.rowcount == 0:
            raise KeyError(f"Covenant not found: {covenant_id['value']}")
        self._conn.commit()


class PostgresFinancialPeriodRepository:
    """PostgreSQL implementation of FinancialPeriodRepository."""

    def __init__(self, conn: ConnectionProtocol) -> None:
        self._conn = conn

    def create(self, period: FinancialPeriod) -> None:
        """Insert new period. Raises DuplicatePeriodError on a repeated (loan, period end)."""
        params: SqlParams = (
            period["id"]["value"],
            period["loan_id"]["value"],
            period["period_end_iso"],
            period["period_type"],
            period["revenue"],
            period["ebitda_reported"],
            period["ebitda_adjusted"],
            period["total_debt"],
            period["interest_expense"],
            period["fixed_charges"],
            period["current_assets"],
            period["current_liabilities"],
            period["net_worth"],
        )
        unique_violation = load_unique_violation()
        try:
            _execute(self._conn, _INSERT_PERIOD, params)
        except unique_violation as exc:
            raise DuplicatePeriodError(period["loan_id"], period["period_end_iso"]) from exc
        self._conn.commit()

    def get(self, period_id: FinancialPeriodId) -> FinancialPeriod:
        cursor = _execute(
            self._conn,
            f"SELECT {_PERIOD_COLUMNS} FROM financial_periods WHERE id = %s",
            (period_id["value"],),
        )
        row = cursor.fetchone()
        if row is None:
            raise KeyError(f"Financial period not found: {period_id['value']}")
        return row_to_financial_period(row)

    def latest_for_loan(self, loan_id: LoanId) -> FinancialPeriod:
        """Period with the latest end date. Raises KeyError if the loan has none."""
        cursor = _execute(
            self._conn,
            f"SELECT {_PERIOD_COLUMNS} FROM financial_periods WHERE loan_id = %s "
            "ORDER BY period_end DESC LIMIT 1",
            (loan_id["value"],),
        )
        row = cursor.fetchone()
        if row is None:
            raise KeyError(f"No financial period for loan: {loan_id['value']}")
        return row_to_financial_period(row)

    def list_for_loan(self, loan_id: LoanId) -> Sequence[FinancialPeriod]:
        cursor = _execute(
            self._conn,
            f"SELECT {_PERIOD_COLUMNS} FROM financial_periods WHERE loan_id = %s "
            "ORDER BY period_end DESC",
            (loan_id["value"],),
        )
        return [row_to_financial_period(row) for row in cursor.fetchall()]


class PostgresCovenantTestRepository:
    """PostgreSQL implementation of CovenantTestRepository.

    A test and the alert it raised are written in one transaction; on any
    failure the transaction is rolled back and the error propagates.
    """

    def __init__(self, conn: ConnectionProtocol) -> None:
        self._conn = conn

    def record(self, test: CovenantTest, alert: Alert | None) -> None:
        cursor = self._conn.cursor()
        period_id = test["financial_period_id"]
        try:
            cursor.execute(
                """
                INSERT INTO covenant_tests (id, covenant_id, loan_id, financial_period_id,
                                            period_end, threshold_at_test_scaled,
                                            calculated_value_scaled, status,
                                            headroom_absolute_scaled,
                                            headroom_percentage_scaled, tested_at, notes)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    test["id"]["value"],
                    test["covenant_id"]["value"],
                    test["loan_id"]["value"],
                    period_id["value"] if period_id is not None else None,
                    test["period_end_iso"],
                    test["threshold_at_test_scaled"],
                    test["calculated_value_scaled"],
                    test["status"],
                    test["headroom_absolute_scaled"],
                    test["headroom_percentage_scaled"],
                    test["tested_at_iso"],
                    test["notes"],
                ),
            )
            if alert is not None:
                cursor.execute(
                    """
                    INSERT INTO alerts (id, loan_id, covenant_id, covenant_test_id,
                                        severity, title, message, acknowledged)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        alert["id"]["value"],
                        alert["loan_id"]["value"],
                        alert["covenant_id"]["value"],
                        alert["covenant_test_id"]["value"],
                        alert["severity"],
                        alert["title"],
                        alert["message"],
                        alert["acknowledged"],
                    ),
                )
        except Exception:
            self._conn.rollback()
            raise
        self._conn.commit()

    def list_for_covenant(self, covenant_id: CovenantId) -> Sequence[CovenantTest]:
        cursor = _execute(
            self._conn,
            f"SELECT {_TEST_COLUMNS} FROM covenant_tests WHERE covenant_id = %s "
            "ORDER BY tested_at DESC",
            (covenant_id["value"],),
        )
        return [row_to_covenant_test(row) for row in cursor.fetchall()]

    def list_for_loan(self, loan_id: LoanId) -> Sequence[CovenantTest]:
        cursor = _execute(
            self._conn,
            f"SELECT {_TEST_COLUMNS} FROM covenant_tests WHERE loan_id = %s "
            "ORDER BY tested_at DESC",
            (loan_id["value"],),
        )
        return [row_to_covenant_test(row) for row in cursor.fetchall()]


class PostgresAlertRepository:
    """PostgreSQL implementation of AlertRepository."""

    def __init__(self, conn: ConnectionProtocol) -> None:
        self._conn = conn

    def list_for_loan(self, loan_id: LoanId) -> Sequence[Alert]:
        cursor = _execute(
            self._conn,
            f"SELECT {_ALERT_COLUMNS} FROM alerts WHERE loan_id = %s ORDER BY created_at DESC",
            (loan_id["value"],),
        )
        return [row_to_alert(row) for row in cursor.fetchall()]

    def acknowledge(self, alert_id: AlertId) -> Alert:
        """Mark alert acknowledged. Raises KeyError if not found."""
        cursor = _execute(
            self._conn,
            f"UPDATE alerts SET acknowledged = TRUE WHERE id = %s RETURNING {_ALERT_COLUMNS}",
            (alert_id["value"],),
        )
        row = cursor.fetchone()
        if row is None:
            raise KeyError(f"Alert not found: {alert_id['value']}")
        self._conn.commit()
        return row_to_alert(row)


def _str(row: SqlRow, index: int, name: str) -> str:
    value = row[index]
    if not isinstance(value, str):
        raise TypeError(f"Expected str for {name}, got {type(value).__name__}")
    return value


def _optional_str(row: SqlRow, index: int, name: str) -> str | None:
    value = row[index]
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected str or None for {name}, got {type(value).__name__}")
    return value


def _int(row: SqlRow, index: int, name: str) -> int:
    value = row[index]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int for {name}, got {type(value).__name__}")
    return value


def _optional_int(row: SqlRow, index: int, name: str) -> int | None:
    if row[index] is None:
        return None
    return _int(row, index, name)


def _bool(row: SqlRow, index: int, name: str) -> bool:
    value = row[index]
    if not isinstance(value, bool):
        raise TypeError(f"Expected bool for {name}, got {type(value).__name__}")
    return value


def narrow_covenant_type(value: str) -> CovenantType:
    """Validate and narrow a stored covenant type."""
    if value == "leverage":
        return "leverage"
    if value == "interest_coverage":
        return "interest_coverage"
    if value == "fixed_charge_coverage":
        return "fixed_charge_coverage"
    if value == "current_ratio":
        return "current_ratio"
    if value == "min_net_worth":
        return "min_net_worth"
    if value == "debt_service_coverage":
        return "debt_service_coverage"
    if value == "custom":
        return "custom"
    raise ValueError(f"Invalid covenant type: {value}")


def narrow_operator(value: str) -> CovenantOperator:
    if value == "max":
        return "max"
    if value == "min":
        return "min"
    raise ValueError(f"Invalid operator: {value}")


def narrow_frequency(value: str) -> TestingFrequency:
    if value == "quarterly":
        return "quarterly"
    if value == "semi_annual":
        return "semi_annual"
    if value == "annual":
        return "annual"
    raise ValueError(f"Invalid testing frequency: {value}")


def narrow_status(value: str) -> ComplianceStatus:
    if value == "compliant":
        return "compliant"
    if value == "warning":
        return "warning"
    if value == "breach":
        return "breach"
    raise ValueError(f"Invalid status: {value}")


def narrow_severity(value: str) -> AlertSeverity:
    if value == "critical":
        return "critical"
    if value == "warning":
        return "warning"
    raise ValueError(f"Invalid severity: {value}")


def row_to_covenant(row: SqlRow) -> Covenant:
    """Convert database row to Covenant TypedDict."""
    return Covenant(
        id=CovenantId(value=_str(row, 0, "id")),
        loan_id=LoanId(value=_str(row, 1, "loan_id")),
        name=_str(row, 2, "name"),
        type=narrow_covenant_type(_str(row, 3, "type")),
        operator=narrow_operator(_str(row, 4, "operator")),
        threshold_scaled=_int(row, 5, "threshold_scaled"),
        threshold_step_downs=load_step_downs(_str(row, 6, "threshold_step_downs")),
        formula=_optional_str(row, 7, "formula"),
        testing_frequency=narrow_frequency(_str(row, 8, "testing_frequency")),
        grace_period_days=_int(row, 9, "grace_period_days"),
    )


def row_to_financial_period(row: SqlRow) -> FinancialPeriod:
    return FinancialPeriod(
        id=FinancialPeriodId(value=_str(row, 0, "id")),
        loan_id=LoanId(value=_str(row, 1, "loan_id")),
        period_end_iso=_str(row, 2, "period_end"),
        period_type=narrow_frequency(_str(row, 3, "period_type")),
        revenue=_optional_int(row, 4, "revenue"),
        ebitda_reported=_optional_int(row, 5, "ebitda_reported"),
        ebitda_adjusted=_optional_int(row, 6, "ebitda_adjusted"),
        total_debt=_optional_int(row, 7, "total_debt"),
        interest_expense=_optional_int(row, 8, "interest_expense"),
        fixed_charges=_optional_int(row, 9, "fixed_charges"),
        current_assets=_optional_int(row, 10, "current_assets"),
        current_liabilities=_optional_int(row, 11, "current_liabilities"),
        net_worth=_optional_int(row, 12, "net_worth"),
    )


def row_to_covenant_test(row: SqlRow) -> CovenantTest:
    period_id = _optional_str(row, 3, "financial_period_id")
    return CovenantTest(
        id=CovenantTestId(value=_str(row, 0, "id")),
        covenant_id=CovenantId(value=_str(row, 1, "covenant_id")),
        loan_id=LoanId(value=_str(row, 2, "loan_id")),
        financial_period_id=FinancialPeriodId(value=period_id) if period_id is not None else None,
        period_end_iso=_str(row, 4, "period_end"),
        threshold_at_test_scaled=_int(row, 5, "threshold_at_test_scaled"),
        calculated_value_scaled=_int(row, 6, "calculated_value_scaled"),
        status=narrow_status(_str(row, 7, "status")),
        headroom_absolute_scaled=_int(row, 8, "headroom_absolute_scaled"),
        headroom_percentage_scaled=_int(row, 9, "headroom_percentage_scaled"),
        tested_at_iso=_str(row, 10, "tested_at"),
        notes=_optional_str(row, 11, "notes"),
    )


def row_to_alert(row: SqlRow) -> Alert:
    return Alert(
        id=AlertId(value=_str(row, 0, "id")),
        loan_id=LoanId(value=_str(row, 1, "loan_id")),
        covenant_id=CovenantId(value=_str(row, 2, "covenant_id")),
        covenant_test_id=CovenantTestId(value=_str(row, 3, "covenant_test_id")),
        severity=narrow_severity(_str(row, 4, "severity")),
        title=_str(row, 5, "title"),
        message=_str(row, 6, "message"),
        acknowledged=_bool(row, 7, "acknowledged"),
    )


__all__ = [
    "PostgresAlertRepository",
    "PostgresCovenantRepository",
    "PostgresCovenantTestRepository",
    "PostgresFinancialPeriodRepository",
    "dump_step_downs",
    "ensure_schema",
    "load_step_downs",
    "narrow_covenant_type",
    "narrow_frequency",
    "narrow_operator",
    "narrow_severity",
    "narrow_status",
    "row_to_alert",
    "row_to_covenant",
    "row_to_covenant_test",
    "row_to_financial_period",
]
