"""Loan compliance testing against the stores.

Both the ``POST /loans/{loan_id}/test`` route and the batch worker call
``run_compliance_tests``; evaluation itself lives in covenant_domain.run_loan_tests.
"""

from __future__ import annotations

from typing import Literal, Protocol

from covenant_domain import (
    CovenantOutcome,
    LoanId,
    LoanTestRun,
    run_loan_tests,
)
from covenant_persistence import (
    CovenantRepository,
    CovenantTestRepository,
    FinancialPeriodRepository,
)
from platform_core.logging import get_logger

from . import _test_hooks

_log = get_logger(__name__)

UntestableReason = Literal["no_covenants", "no_financial_period"]


class LoanNotTestableError(Exception):
    """The loan has nothing to test: no covenants, or no financial period."""

    def __init__(self, loan_id: str, reason: UntestableReason) -> None:
        if reason == "no_covenants":
            message = f"Loan {loan_id} has no covenants"
        else:
            message = f"Loan {loan_id} has no financial period"
        super().__init__(message)
        self.loan_id = loan_id
        self.reason: UntestableReason = reason


class RepositoryProvider(Protocol):
    def covenant_repo(self) -> CovenantRepository: ...

    def period_repo(self) -> FinancialPeriodRepository: ...

    def covenant_test_repo(self) -> CovenantTestRepository: ...


def record_outcome(sink: CovenantTestRepository, outcome: CovenantOutcome) -> None:
    """Persist a test with its alert and log the result."""
    test = outcome["test"]
    sink.record(test, outcome["alert"])
    _log.info(
        "covenant_tested",
        extra={
            "loan_id": test["loan_id"]["value"],
            "covenant_id": test["covenant_id"]["value"],
            "period_end_iso": test["period_end_iso"],
            "status": test["status"],
        },
    )


def run_compliance_tests(provider: RepositoryProvider, loan_id: LoanId) -> LoanTestRun:
    """Test every covenant of a loan against its latest financial period.

    Raises:
        LoanNotTestableError: no covenants, or no financial period.
    """
    covenants = provider.covenant_repo().list_for_loan(loan_id)
    if len(covenants) == 0:
        raise LoanNotTestableError(loan_id["value"], "no_covenants")
    try:
        period = provider.period_repo().latest_for_loan(loan_id)
    except KeyError:
        raise LoanNotTestableError(loan_id["value"], "no_financial_period") from None

    run = run_loan_tests(loan_id, covenants, period, _test_hooks.now_iso(), _test_hooks.new_id)

    sink = provider.covenant_test_repo()
    for outcome in run["outcomes"]:
        record_outcome(sink, outcome)
    for failure in run["failures"]:
        _log.warning(
            "covenant_skipped",
            extra={
                "loan_id": loan_id["value"],
                "covenant_id": failure["covenant_id"]["value"],
                "financial_period_id": period["id"]["value"],
                "error_kind": failure["kind"],
                "error_message": failure["message"],
            },
        )

    alerts_created = sum(1 for o in run["outcomes"] if o["alert"] is not None)
    _log.info(
        "loan_tests_completed",
        extra={
            "loan_id": loan_id["value"],
            "financial_period_id": period["id"]["value"],
            "period_end_iso": period["period_end_iso"],
            "tests_run": len(run["outcomes"]),
            "alerts_created": alerts_created,
            "failures": len(run["failures"]),
        },
    )
    return run


__all__ = [
    "LoanNotTestableError",
    "RepositoryProvider",
    "UntestableReason",
    "record_outcome",
    "run_compliance_tests",
]
