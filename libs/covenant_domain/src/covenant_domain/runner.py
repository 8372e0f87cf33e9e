"""Per-loan covenant test run.

Every caller that tests a loan (the API's "run tests" action, the batch
worker, a post-extraction trigger) goes through ``run_loan_tests`` so the
threshold resolution, figure mapping and alert rules cannot drift apart.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypedDict

from .alerts import build_alert
from .errors import CovenantErrorKind, CovenantEvaluationError
from .evaluator import evaluate
from .figures import figures_from_period
from .models import (
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
from .rules import assess
from .thresholds import resolve_threshold


class CovenantFailure(TypedDict, total=True):
    """A covenant that could not be evaluated; no test record exists for it."""

    covenant_id: CovenantId
    covenant_name: str
    kind: CovenantErrorKind
    message: str


class CovenantOutcome(TypedDict, total=True):
    covenant_name: str
    test: CovenantTest
    alert: Alert | None


class LoanTestRun(TypedDict, total=True):
    loan_id: LoanId
    financial_period_id: FinancialPeriodId
    period_end_iso: str
    outcomes: list[CovenantOutcome]
    failures: list[CovenantFailure]


def _outcome(covenant: Covenant, test: CovenantTest, new_id: Callable[[], str]) -> CovenantOutcome:
    alert: Alert | None = None
    if test["status"] != "compliant":
        alert = build_alert(covenant, test, AlertId(value=new_id()))
    return CovenantOutcome(covenant_name=covenant["name"], test=test, alert=alert)


def run_loan_tests(
    loan_id: LoanId,
    covenants: Sequence[Covenant],
    period: FinancialPeriod,
    tested_at_iso: str,
    new_id: Callable[[], str],
) -> LoanTestRun:
    """
    Test every covenant against one financial period.

    A covenant whose evaluation fails is reported in ``failures`` and the
    rest still run. Outcomes keep the order of ``covenants``.
    """
    figures = figures_from_period(period)
    period_end_iso = period["period_end_iso"]
    outcomes: list[CovenantOutcome] = []
    failures: list[CovenantFailure] = []

    for covenant in covenants:
        threshold = resolve_threshold(covenant, period_end_iso)
        try:
            result = evaluate(
                covenant["type"],
                covenant["operator"],
                threshold,
                figures,
                formula=covenant["formula"],
            )
        except CovenantEvaluationError as exc:
            failures.append(
                CovenantFailure(
                    covenant_id=covenant["id"],
                    covenant_name=covenant["name"],
                    kind=exc.kind,
                    message=str(exc),
                )
            )
            continue

        test = CovenantTest(
            id=CovenantTestId(value=new_id()),
            covenant_id=covenant["id"],
            loan_id=loan_id,
            financial_period_id=period["id"],
            period_end_iso=period_end_iso,
            threshold_at_test_scaled=threshold,
            calculated_value_scaled=result["calculated_value_scaled"],
            status=result["status"],
            headroom_absolute_scaled=result["headroom_absolute_scaled"],
            headroom_percentage_scaled=result["headroom_percentage_scaled"],
            tested_at_iso=tested_at_iso,
            notes=None,
        )
        outcomes.append(_outcome(covenant, test, new_id))

    return LoanTestRun(
        loan_id=loan_id,
        financial_period_id=period["id"],
        period_end_iso=period_end_iso,
        outcomes=outcomes,
        failures=failures,
    )


def record_manual_test(
    covenant: Covenant,
    calculated_value_scaled: int,
    period_end_iso: str,
    tested_at_iso: str,
    new_id: Callable[[], str],
    notes: str | None,
) -> CovenantOutcome:
    """Test record for a value entered by hand rather than computed.

    Raises InvalidThresholdError when the covenant's threshold is unusable.
    """
    threshold = resolve_threshold(covenant, period_end_iso)
    result = assess(covenant["operator"], threshold, calculated_value_scaled)
    test = CovenantTest(
        id=CovenantTestId(value=new_id()),
        covenant_id=covenant["id"],
        loan_id=covenant["loan_id"],
        financial_period_id=None,
        period_end_iso=period_end_iso,
        threshold_at_test_scaled=threshold,
        calculated_value_scaled=result["calculated_value_scaled"],
        status=result["status"],
        headroom_absolute_scaled=result["headroom_absolute_scaled"],
        headroom_percentage_scaled=result["headroom_percentage_scaled"],
        tested_at_iso=tested_at_iso,
        notes=notes,
    )
    return _outcome(covenant, test, new_id)


__all__ = [
    "CovenantFailure",
    "LoanTestRun",
    "CovenantOutcome",
    "record_manual_test",
    "run_loan_tests",
]
