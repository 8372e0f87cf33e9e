"""Covenant evaluator: one covenant definition against one set of figures.

Pure and stateless. The same inputs always produce the same result, so
callers may evaluate concurrently or re-run freely.
"""

from __future__ import annotations

import math
from fractions import Fraction

from .errors import (
    DivisionByZeroError,
    InvalidThresholdError,
    MissingInputError,
    UnsupportedCovenantTypeError,
)
from .formula_parser import evaluate_formula_exact
from .models import (
    SCALE,
    CovenantDefinition,
    CovenantOperator,
    CovenantTestResult,
    CovenantType,
    FinancialFigures,
)
from .rules import assess


def _present(value: int | None, field: str, covenant_type: str) -> int:
    if value is None:
        raise MissingInputError(field, covenant_type)
    return value


def _ratio(
    numerator: int, denominator: int, denominator_name: str, covenant_type: str
) -> Fraction:
    if denominator == 0:
        raise DivisionByZeroError(denominator_name, covenant_type)
    return Fraction(numerator * SCALE, denominator)


def _require_ebitda(figures: FinancialFigures, covenant_type: str) -> int:
    # EBITDA is the base of every EBITDA ratio; zero makes them meaningless
    ebitda = _present(figures["ebitda"], "ebitda", covenant_type)
    if ebitda == 0:
        raise DivisionByZeroError("ebitda", covenant_type)
    return ebitda


def _leverage(figures: FinancialFigures) -> Fraction:
    total_debt = _present(figures["total_debt"], "total_debt", "leverage")
    ebitda = _require_ebitda(figures, "leverage")
    return _ratio(total_debt, ebitda, "ebitda", "leverage")


def _interest_coverage(figures: FinancialFigures) -> Fraction:
    ebitda = _require_ebitda(figures, "interest_coverage")
    interest = _present(figures["interest_expense"], "interest_expense", "interest_coverage")
    return _ratio(ebitda, interest, "interest_expense", "interest_coverage")


def _fixed_charge_coverage(figures: FinancialFigures) -> Fraction:
    ebitda = _require_ebitda(figures, "fixed_charge_coverage")
    fixed_charges = figures["fixed_charges"]
    if fixed_charges is not None and fixed_charges != 0:
        return _ratio(ebitda, fixed_charges, "fixed_charges", "fixed_charge_coverage")
    interest = _present(figures["interest_expense"], "interest_expense", "fixed_charge_coverage")
    return _ratio(ebitda, interest, "interest_expense", "fixed_charge_coverage")


def _current_ratio(figures: FinancialFigures) -> Fraction:
    assets = _present(figures["current_assets"], "current_assets", "current_ratio")
    liabilities = _present(figures["current_liabilities"], "current_liabilities", "current_ratio")
    return _ratio(assets, liabilities, "current_liabilities", "current_ratio")


def _figure_map(figures: FinancialFigures) -> dict[str, int | None]:
    return {
        "revenue": figures["revenue"],
        "ebitda": figures["ebitda"],
        "total_debt": figures["total_debt"],
        "interest_expense": figures["interest_expense"],
        "fixed_charges": figures["fixed_charges"],
        "current_assets": figures["current_assets"],
        "current_liabilities": figures["current_liabilities"],
        "net_worth": figures["net_worth"],
    }


def _custom(formula: str | None, figures: FinancialFigures) -> Fraction:
    if formula is None or formula.strip() == "":
        raise MissingInputError("formula", "custom")
    return evaluate_formula_exact(formula, _figure_map(figures))


def exact_value(definition: CovenantDefinition, figures: FinancialFigures) -> Fraction:
    """
    Compute the covenant's realized value from the figures, unrounded and
    in scaled units.

    Raises:
        MissingInputError: a figure the type needs is None
        DivisionByZeroError: a denominator (including EBITDA) is zero
        UnsupportedCovenantTypeError: the type has no calculation
        FormulaParseError: a custom formula is malformed
    """
    covenant_type = definition["type"]
    if covenant_type == "leverage":
        return _leverage(figures)
    if covenant_type == "interest_coverage":
        return _interest_coverage(figures)
    if covenant_type == "fixed_charge_coverage":
        return _fixed_charge_coverage(figures)
    if covenant_type == "current_ratio":
        return _current_ratio(figures)
    if covenant_type == "min_net_worth":
        return Fraction(_present(figures["net_worth"], "net_worth", "min_net_worth"))
    if covenant_type == "custom":
        return _custom(definition["formula"], figures)
    raise UnsupportedCovenantTypeError(covenant_type)


def calculate_value(definition: CovenantDefinition, figures: FinancialFigures) -> int:
    """The realized value in scaled units, floored."""
    return math.floor(exact_value(definition, figures))


def evaluate(
    covenant_type: CovenantType,
    operator: CovenantOperator,
    threshold_scaled: int,
    figures: FinancialFigures,
    *,
    formula: str | None = None,
) -> CovenantTestResult:
    """Evaluate one covenant. The threshold is validated before any figure is read."""
    if threshold_scaled <= 0:
        raise InvalidThresholdError(threshold_scaled)
    definition = CovenantDefinition(
        type=covenant_type,
        operator=operator,
        threshold_scaled=threshold_scaled,
        formula=formula,
    )
    value = exact_value(definition, figures)
    return assess(operator, threshold_scaled, value)


def evaluate_definition(
    definition: CovenantDefinition, figures: FinancialFigures
) -> CovenantTestResult:
    return evaluate(
        definition["type"],
        definition["operator"],
        definition["threshold_scaled"],
        figures,
        formula=definition["formula"],
    )


__all__ = [
    "calculate_value",
    "evaluate",
    "evaluate_definition",
    "exact_value",
]
