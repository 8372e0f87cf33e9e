from __future__ import annotations

from typing import Literal, TypedDict

# Fixed-point scale: every figure, ratio, threshold and percentage is an int
# holding the real value multiplied by SCALE (6 decimal places).
SCALE = 1_000_000

CovenantType = Literal[
    "leverage",
    "interest_coverage",
    "fixed_charge_coverage",
    "current_ratio",
    "min_net_worth",
    "debt_service_coverage",
    "custom",
]
CovenantOperator = Literal["max", "min"]
ComplianceStatus = Literal["compliant", "warning", "breach"]
TestingFrequency = Literal["quarterly", "semi_annual", "annual"]
AlertSeverity = Literal["critical", "warning"]


class CovenantDefinition(TypedDict, total=True):
    """What the evaluator needs to know about a covenant."""

    type: CovenantType
    operator: CovenantOperator
    threshold_scaled: int
    formula: str | None  # only read for "custom"


class FinancialFigures(TypedDict, total=True):
    """Figures for one loan and period. None means not supplied, never zero."""

    revenue: int | None
    ebitda: int | None
    total_debt: int | None
    interest_expense: int | None
    fixed_charges: int | None
    current_assets: int | None
    current_liabilities: int | None
    net_worth: int | None


FIGURE_NAMES: frozenset[str] = FinancialFigures.__required_keys__


class CovenantTestResult(TypedDict, total=True):
    """Evaluator output. Positive headroom is margin, negative is breach."""

    calculated_value_scaled: int
    status: ComplianceStatus
    headroom_absolute_scaled: int
    headroom_percentage_scaled: int


class LoanId(TypedDict, total=True):
    value: str


class CovenantId(TypedDict, total=True):
    value: str


class FinancialPeriodId(TypedDict, total=True):
    value: str


class CovenantTestId(TypedDict, total=True):
    value: str


class AlertId(TypedDict, total=True):
    value: str


class ThresholdStepDown(TypedDict, total=True):
    """Threshold in force from a date onward (e.g. leverage 4.5x -> 4.0x)."""

    effective_from_iso: str  # ISO 8601 date
    threshold_scaled: int


class Covenant(TypedDict, total=True):
    """Covenant record. Immutable by convention."""

    id: CovenantId
    loan_id: LoanId
    name: str
    type: CovenantType
    operator: CovenantOperator
    threshold_scaled: int
    threshold_step_downs: list[ThresholdStepDown]
    formula: str | None
    testing_frequency: TestingFrequency
    grace_period_days: int


class FinancialPeriod(TypedDict, total=True):
    """Reported financials of one loan for one period."""

    id: FinancialPeriodId
    loan_id: LoanId
    period_end_iso: str  # ISO 8601 date
    period_type: TestingFrequency
    revenue: int | None
    ebitda_reported: int | None
    ebitda_adjusted: int | None
    total_debt: int | None
    interest_expense: int | None
    fixed_charges: int | None
    current_assets: int | None
    current_liabilities: int | None
    net_worth: int | None


class CovenantTest(TypedDict, total=True):
    """Persisted test record. Never mutated after creation."""

    id: CovenantTestId
    covenant_id: CovenantId
    loan_id: LoanId
    financial_period_id: FinancialPeriodId | None  # None for manual tests
    period_end_iso: str
    threshold_at_test_scaled: int
    calculated_value_scaled: int
    status: ComplianceStatus
    headroom_absolute_scaled: int
    headroom_percentage_scaled: int
    tested_at_iso: str
    notes: str | None


class Alert(TypedDict, total=True):
    id: AlertId
    loan_id: LoanId
    covenant_id: CovenantId
    covenant_test_id: CovenantTestId
    severity: AlertSeverity
    title: str
    message: str
    acknowledged: bool


__all__ = [
    "FIGURE_NAMES",
    "SCALE",
    "Alert",
    "AlertId",
    "AlertSeverity",
    "ComplianceStatus",
    "Covenant",
    "CovenantDefinition",
    "CovenantId",
    "CovenantOperator",
    "CovenantTest",
    "CovenantTestId",
    "CovenantTestResult",
    "CovenantType",
    "FinancialFigures",
    "FinancialPeriod",
    "FinancialPeriodId",
    "LoanId",
    "TestingFrequency",
    "ThresholdStepDown",
]
