"""Demo portfolio: four loans, eleven covenants, one Q3 2025 period each.

Figures are whole currency units and are scaled when seeded. Thresholds
are already scaled. Tested against their periods the covenants give a mix
of compliant, warning and breach results.
"""

from __future__ import annotations

from typing import TypedDict

from covenant_domain import CovenantOperator, CovenantType


class CovenantSeed(TypedDict, total=True):
    name: str
    type: CovenantType
    operator: CovenantOperator
    threshold_scaled: int


class PeriodSeed(TypedDict, total=True):
    """Reported figures in whole units; None means not reported."""

    period_end_iso: str
    revenue: int | None
    ebitda_reported: int | None
    total_debt: int | None
    interest_expense: int | None
    fixed_charges: int | None
    current_assets: int | None
    current_liabilities: int | None


class LoanSeed(TypedDict, total=True):
    borrower: str
    facility: str
    covenants: tuple[CovenantSeed, ...]
    period: PeriodSeed


def _max_leverage(threshold_scaled: int) -> CovenantSeed:
    return CovenantSeed(
        name="Maximum Leverage Ratio",
        type="leverage",
        operator="max",
        threshold_scaled=threshold_scaled,
    )


def _min_interest_coverage(threshold_scaled: int) -> CovenantSeed:
    return CovenantSeed(
        name="Minimum Interest Coverage Ratio",
        type="interest_coverage",
        operator="min",
        threshold_scaled=threshold_scaled,
    )


def _min_current_ratio(threshold_scaled: int) -> CovenantSeed:
    return CovenantSeed(
        name="Minimum Current Ratio",
        type="current_ratio",
        operator="min",
        threshold_scaled=threshold_scaled,
    )


TECHFLOW: LoanSeed = {
    "borrower": "TechFlow Solutions Inc.",
    "facility": "Revolving Credit Facility",
    "covenants": (
        _max_leverage(4_000_000),
        _min_interest_coverage(2_500_000),
    ),
    "period": {
        "period_end_iso": "2025-09-30",
        "revenue": 42_500_000,
        "ebitda_reported": 12_450_000,
        "total_debt": 28_500_000,
        "interest_expense": 2_137_500,
        "fixed_charges": None,
        "current_assets": 18_500_000,
        "current_liabilities": 7_200_000,
    },
}

MIDWEST: LoanSeed = {
    "borrower": "Midwest Manufacturing Co.",
    "facility": "Term Loan Facility",
    "covenants": (
        _max_leverage(5_000_000),
        _min_interest_coverage(2_000_000),
        _min_current_ratio(1_250_000),
    ),
    "period": {
        "period_end_iso": "2025-09-30",
        "revenue": 62_600_000,
        "ebitda_reported": 13_000_000,
        "total_debt": 62_400_000,
        "interest_expense": 4_368_000,
        "fixed_charges": None,
        "current_assets": 24_500_000,
        "current_liabilities": 17_850_000,
    },
}

HARBOR: LoanSeed = {
    "borrower": "Harbor Retail Group, LLC",
    "facility": "Senior Secured Credit Facility",
    "covenants": (
        _max_leverage(4_500_000),
        _min_interest_coverage(2_000_000),
        CovenantSeed(
            name="Minimum Fixed Charge Coverage Ratio",
            type="fixed_charge_coverage",
            operator="min",
            threshold_scaled=1_100_000,
        ),
    ),
    "period": {
        "period_end_iso": "2025-09-30",
        "revenue": 62_600_000,
        "ebitda_reported": 7_150_000,
        "total_debt": 31_200_000,
        "interest_expense": 3_972_000,
        "fixed_charges": 6_472_000,
        "current_assets": 8_500_000,
        "current_liabilities": 9_200_000,
    },
}

SUNRISE: LoanSeed = {
    "borrower": "Sunrise Healthcare Systems, Inc.",
    "facility": "Term Loan Facility",
    "covenants": (
        _max_leverage(4_000_000),
        # The agreement calls this a DSCR; it is tested as fixed charge coverage.
        CovenantSeed(
            name="Minimum DSCR",
            type="fixed_charge_coverage",
            operator="min",
            threshold_scaled=1_250_000,
        ),
        _min_current_ratio(1_500_000),
    ),
    "period": {
        "period_end_iso": "2025-09-30",
        "revenue": 58_000_000,
        "ebitda_reported": 14_850_000,
        "total_debt": 36_250_000,
        "interest_expense": 2_537_500,
        "fixed_charges": 6_537_500,
        "current_assets": 18_200_000,
        "current_liabilities": 8_750_000,
    },
}

DEMO_LOANS: tuple[LoanSeed, ...] = (TECHFLOW, MIDWEST, HARBOR, SUNRISE)


__all__ = [
    "DEMO_LOANS",
    "HARBOR",
    "MIDWEST",
    "SUNRISE",
    "TECHFLOW",
    "CovenantSeed",
    "LoanSeed",
    "PeriodSeed",
]
