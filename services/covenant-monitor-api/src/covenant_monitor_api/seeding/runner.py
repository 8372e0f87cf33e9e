"""Write the demo portfolio through the repositories."""

from __future__ import annotations

from typing import TypedDict

from covenant_domain import (
    SCALE,
    Covenant,
    CovenantId,
    FinancialPeriod,
    FinancialPeriodId,
    LoanId,
)
from covenant_persistence import (
    ConnectionProtocol,
    CovenantRepository,
    CovenantTestRepository,
    FinancialPeriodRepository,
    PostgresCovenantRepository,
    PostgresCovenantTestRepository,
    PostgresFinancialPeriodRepository,
)
from platform_core.logging import get_logger

from ..core import _test_hooks
from ..core.compliance import run_compliance_tests
from .demo import DEMO_LOANS, LoanSeed

_log = get_logger(__name__)


class SeedResult(TypedDict, total=True):
    """Result of seeding operation."""

    loan_ids: list[str]
    covenants_created: int
    periods_created: int
    tests_recorded: int
    alerts_created: int


class _ConnectionRepositories:
    """Repository provider over a single connection."""

    def __init__(self, conn: ConnectionProtocol) -> None:
        self._conn = conn

    def covenant_repo(self) -> CovenantRepository:
        return PostgresCovenantRepository(self._conn)

    def period_repo(self) -> FinancialPeriodRepository:
        return PostgresFinancialPeriodRepository(self._conn)

    def covenant_test_repo(self) -> CovenantTestRepository:
        return PostgresCovenantTestRepository(self._conn)


def _scaled(value: int | None) -> int | None:
    return value * SCALE if value is not None else None


def _seed_loan(seed: LoanSeed, provider: _ConnectionRepositories) -> tuple[LoanId, int]:
    loan_id = LoanId(value=_test_hooks.new_id())
    covenant_repo = provider.covenant_repo()
    for cov in seed["covenants"]:
        covenant_repo.create(
            Covenant(
                id=CovenantId(value=_test_hooks.new_id()),
                loan_id=loan_id,
                name=cov["name"],
                type=cov["type"],
                operator=cov["operator"],
                threshold_scaled=cov["threshold_scaled"],
                threshold_step_downs=[],
                formula=None,
                testing_frequency="quarterly",
                grace_period_days=30,
            )
        )
    period = seed["period"]
    provider.period_repo().create(
        FinancialPeriod(
            id=FinancialPeriodId(value=_test_hooks.new_id()),
            loan_id=loan_id,
            period_end_iso=period["period_end_iso"],
            period_type="quarterly",
            revenue=_scaled(period["revenue"]),
            ebitda_reported=_scaled(period["ebitda_reported"]),
            ebitda_adjusted=None,
            total_debt=_scaled(period["total_debt"]),
            interest_expense=_scaled(period["interest_expense"]),
            fixed_charges=_scaled(period["fixed_charges"]),
            current_assets=_scaled(period["current_assets"]),
            current_liabilities=_scaled(period["current_liabilities"]),
            net_worth=None,
        )
    )
    _log.info("demo_loan_seeded", extra={"loan_id": loan_id["value"]})
    return loan_id, len(seed["covenants"])


def seed_demo(
    conn: ConnectionProtocol,
    loans: tuple[LoanSeed, ...] = DEMO_LOANS,
    *,
    run_tests: bool = False,
) -> SeedResult:
    """Seed the demo loans; with ``run_tests`` also test each loan once.

    Every loan gets a fresh id, so seeding twice creates a second portfolio.
    """
    provider = _ConnectionRepositories(conn)
    loan_ids: list[str] = []
    covenants_created = 0
    tests_recorded = 0
    alerts_created = 0
    for seed in loans:
        loan_id, count = _seed_loan(seed, provider)
        loan_ids.append(loan_id["value"])
        covenants_created += count
        if run_tests:
            run = run_compliance_tests(provider, loan_id)
            tests_recorded += len(run["outcomes"])
            alerts_created += sum(1 for o in run["outcomes"] if o["alert"] is not None)
    return SeedResult(
        loan_ids=loan_ids,
        covenants_created=covenants_created,
        periods_created=len(loans),
        tests_recorded=tests_recorded,
        alerts_created=alerts_created,
    )


__all__ = ["SeedResult", "seed_demo"]
