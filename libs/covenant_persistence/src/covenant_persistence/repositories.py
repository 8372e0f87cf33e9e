"""Repository protocols for the stores the covenant monitor depends on."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from covenant_domain.models import (
    Alert,
    AlertId,
    Covenant,
    CovenantId,
    CovenantTest,
    FinancialPeriod,
    FinancialPeriodId,
    LoanId,
)


class DuplicatePeriodError(Exception):
    """The loan already has a financial period ending on that date."""

    def __init__(self, loan_id: LoanId, period_end_iso: str) -> None:
        self.loan_id = loan_id
        self.period_end_iso = period_end_iso
        super().__init__(
            f"Loan {loan_id['value']} already has a period ending {period_end_iso}"
        )


class CovenantRepository(Protocol):
    """Covenant Store."""

    def create(self, covenant: Covenant) -> None:
        """Insert new covenant. Raises on duplicate ID."""
        ...

    def get(self, covenant_id: CovenantId) -> Covenant:
        """Get covenant by ID. Raises KeyError if not found."""
        ...

    def list_for_loan(self, loan_id: LoanId) -> Sequence[Covenant]:
        """Covenants of a loan in creation order."""
        ...

    def list_loan_ids(self) -> Sequence[LoanId]:
        """Every loan that has at least one covenant."""
        ...

    def delete(self, covenant_id: CovenantId) -> None:
        """Delete covenant with its tests and alerts. Raises KeyError if not found."""
        ...


class FinancialPeriodRepository(Protocol):
    """Financial Period Store."""

    def create(self, period: FinancialPeriod) -> None:
        """Insert new period.

        Raises DuplicatePeriodError when the loan already has a period with
        the same end date.
        """
        ...

    def get(self, period_id: FinancialPeriodId) -> FinancialPeriod:
        """Raises KeyError if not found."""
        ...

    def latest_for_loan(self, loan_id: LoanId) -> FinancialPeriod:
        """Period with the latest end date. Raises KeyError if the loan has none."""
        ...

    def list_for_loan(self, loan_id: LoanId) -> Sequence[FinancialPeriod]:
        """Newest period first."""
        ...


class CovenantTestRepository(Protocol):
    """Persistence sink for test records and the alerts they raise."""

    def record(self, test: CovenantTest, alert: Alert | None) -> None:
        """Insert the test and its alert atomically: both rows or neither."""
        ...

    def list_for_covenant(self, covenant_id: CovenantId) -> Sequence[CovenantTest]:
        """Newest test first."""
        ...

    def list_for_loan(self, loan_id: LoanId) -> Sequence[CovenantTest]:
        """Newest test first."""
        ...


class AlertRepository(Protocol):
    def list_for_loan(self, loan_id: LoanId) -> Sequence[Alert]:
        """Newest alert first."""
        ...

    def acknowledge(self, alert_id: AlertId) -> Alert:
        """Mark acknowledged and return the updated alert. Raises KeyError if not found."""
        ...


__all__ = [
    "AlertRepository",
    "CovenantRepository",
    "CovenantTestRepository",
    "DuplicatePeriodError",
    "FinancialPeriodRepository",
]
