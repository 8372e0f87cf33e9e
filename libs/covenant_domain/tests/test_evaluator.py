"""Tests for covenant_domain.evaluator module."""

from __future__ import annotations

import pytest

from covenant_domain.errors import (
    DivisionByZeroError,
    InvalidThresholdError,
    MissingInputError,
    UnsupportedCovenantTypeError,
)
from covenant_domain.evaluator import calculate_value, evaluate, evaluate_definition, exact_value
from covenant_domain.figures import empty_figures
from covenant_domain.formula_parser import FormulaParseError
from covenant_domain.models import SCALE, CovenantDefinition, CovenantType, FinancialFigures
from covenant_domain.rules import WARNING_BAND_SCALED


def _figures(
    *,
    ebitda: int | None = None,
    total_debt: int | None = None,
    interest_expense: int | None = None,
    fixed_charges: int | None = None,
    current_assets: int | None = None,
    current_liabilities: int | None = None,
    net_worth: int | None = None,
) -> FinancialFigures:
    """Figures in whole currency units, scaled."""

    def _s(value: int | None) -> int | None:
        return None if value is None else value * SCALE

    figures = empty_figures()
    figures["ebitda"] = _s(ebitda)
    figures["total_debt"] = _s(total_debt)
    figures["interest_expense"] = _s(interest_expense)
    figures["fixed_charges"] = _s(fixed_charges)
    figures["current_assets"] = _s(current_assets)
    figures["current_liabilities"] = _s(current_liabilities)
    figures["net_worth"] = _s(net_worth)
    return figures


class TestScenarios:
    def test_a_leverage_compliant(self) -> None:
        figures = _figures(total_debt=28_500_000, ebitda=12_450_000)
        result = evaluate("leverage", "max", 4_000_000, figures)
        assert result["calculated_value_scaled"] == 2_289_156
        assert result["headroom_absolute_scaled"] == 1_710_843
        assert 42_700_000 < result["headroom_percentage_scaled"] < 42_800_000
        assert result["status"] == "compliant"

    def test_e_current_ratio_warning(self) -> None:
        figures = _figures(current_assets=24_500_000, current_liabilities=17_850_000)
        result = evaluate("current_ratio", "min", 1_250_000, figures)
        assert result["calculated_value_scaled"] == 1_372_549
        assert result["headroom_percentage_scaled"] == 9_803_921
        assert result["status"] == "warning"

    def test_f_zero_threshold_raises_before_reading_figures(self) -> None:
        with pytest.raises(InvalidThresholdError):
            evaluate("leverage", "max", 0, empty_figures())


class TestFormulas:
    def test_interest_coverage(self) -> None:
        figures = _figures(ebitda=13_000_000, interest_expense=4_368_000)
        result = evaluate("interest_coverage", "min", 2_000_000, figures)
        assert result["calculated_value_scaled"] == 2_976_190
        assert result["status"] == "compliant"

    def test_fixed_charge_coverage_uses_fixed_charges(self) -> None:
        figures = _figures(ebitda=7_150_000, interest_expense=3_972_000, fixed_charges=6_472_000)
        result = evaluate("fixed_charge_coverage", "min", 1_100_000, figures)
        assert result["calculated_value_scaled"] == 1_104_758
        assert result["status"] == "warning"

    def test_fixed_charge_coverage_falls_back_to_interest(self) -> None:
        figures = _figures(ebitda=8_000_000, interest_expense=4_000_000, fixed_charges=0)
        definition: CovenantDefinition = {
            "type": "fixed_charge_coverage",
            "operator": "min",
            "threshold_scaled": 1_000_000,
            "formula": None,
        }
        assert calculate_value(definition, figures) == 2_000_000

    def test_fixed_charge_coverage_missing_both_denominators(self) -> None:
        with pytest.raises(MissingInputError) as exc_info:
            evaluate("fixed_charge_coverage", "min", 1_100_000, _figures(ebitda=1))
        assert exc_info.value.field == "interest_expense"

    def test_min_net_worth_is_absolute(self) -> None:
        figures = _figures(net_worth=50_000_000)
        result = evaluate("min_net_worth", "min", 40_000_000 * SCALE, figures)
        assert result["calculated_value_scaled"] == 50_000_000 * SCALE
        assert result["headroom_percentage_scaled"] == 25_000_000
        assert result["status"] == "compliant"

    def test_negative_ebitda_is_computed(self) -> None:
        figures = _figures(total_debt=10_000_000, ebitda=-2_000_000)
        result = evaluate("leverage", "max", 4_000_000, figures)
        assert result["calculated_value_scaled"] == -5_000_000
        assert result["status"] == "compliant"

    def test_custom_formula(self) -> None:
        figures = _figures(total_debt=30_000_000, ebitda=10_000_000, net_worth=5_000_000)
        result = evaluate_definition(
            {
                "type": "custom",
                "operator": "max",
                "threshold_scaled": 5_000_000,
                "formula": "(total_debt - net_worth) / ebitda",
            },
            figures,
        )
        assert result["calculated_value_scaled"] == 2_500_000
        assert result["status"] == "compliant"


class TestFailures:
    def test_leverage_without_total_debt(self) -> None:
        with pytest.raises(MissingInputError) as exc_info:
            evaluate("leverage", "max", 4_000_000, _figures(ebitda=1_000))
        assert exc_info.value.field == "total_debt"
        assert "total_debt" in str(exc_info.value)

    def test_leverage_without_ebitda(self) -> None:
        with pytest.raises(MissingInputError, match="ebitda"):
            evaluate("leverage", "max", 4_000_000, _figures(total_debt=1_000))

    def test_zero_ebitda_is_division_by_zero(self) -> None:
        figures = _figures(ebitda=0, total_debt=1_000, interest_expense=100, fixed_charges=100)
        ebitda_types: list[CovenantType] = [
            "leverage",
            "interest_coverage",
            "fixed_charge_coverage",
        ]
        for covenant_type in ebitda_types:
            with pytest.raises(DivisionByZeroError) as exc_info:
                evaluate(covenant_type, "min", 1_000_000, figures)
            assert exc_info.value.denominator == "ebitda"
            assert exc_info.value.kind == "division_by_zero"

    def test_zero_interest_expense(self) -> None:
        with pytest.raises(DivisionByZeroError) as exc_info:
            evaluate("interest_coverage", "min", 2_000_000, _figures(ebitda=5, interest_expense=0))
        assert exc_info.value.denominator == "interest_expense"

    def test_current_ratio_requires_liabilities(self) -> None:
        with pytest.raises(MissingInputError) as exc_info:
            evaluate("current_ratio", "min", 1_250_000, _figures(current_assets=100))
        assert exc_info.value.field == "current_liabilities"

    def test_interest_coverage_requires_interest_expense(self) -> None:
        with pytest.raises(MissingInputError) as exc_info:
            evaluate("interest_coverage", "min", 2_000_000, _figures(ebitda=13_000_000))
        assert exc_info.value.field == "interest_expense"

    def test_min_net_worth_requires_net_worth(self) -> None:
        with pytest.raises(MissingInputError) as exc_info:
            evaluate("min_net_worth", "min", 40_000_000 * SCALE, _figures(ebitda=1))
        assert exc_info.value.field == "net_worth"

    def test_current_ratio_zero_liabilities(self) -> None:
        figures = _figures(current_assets=100, current_liabilities=0)
        with pytest.raises(DivisionByZeroError):
            evaluate("current_ratio", "min", 1_250_000, figures)

    def test_debt_service_coverage_is_unsupported(self) -> None:
        with pytest.raises(UnsupportedCovenantTypeError) as exc_info:
            evaluate("debt_service_coverage", "min", 1_250_000, _figures(ebitda=10))
        assert exc_info.value.kind == "unsupported_type"

    def test_custom_without_formula(self) -> None:
        with pytest.raises(MissingInputError) as exc_info:
            evaluate("custom", "max", 1_000_000, _figures(ebitda=1), formula="  ")
        assert exc_info.value.field == "formula"

    def test_custom_bad_formula(self) -> None:
        with pytest.raises(FormulaParseError):
            evaluate("custom", "max", 1_000_000, _figures(ebitda=1), formula="ebitda $ 2")


def test_evaluate_is_deterministic() -> None:
    figures = _figures(total_debt=62_400_000, ebitda=13_000_000)
    first = evaluate("leverage", "max", 5_000_000, figures)
    second = evaluate("leverage", "max", 5_000_000, figures)
    assert first == second
    assert first["calculated_value_scaled"] == 4_800_000
    assert first["status"] == "warning"


class TestExactHeadroom:
    def test_fraction_over_max_is_breach(self) -> None:
        # 4.00000014x floors to exactly the 4.0x maximum
        figures = _figures(total_debt=28_500_001, ebitda=7_125_000)
        result = evaluate("leverage", "max", 4_000_000, figures)
        assert result["calculated_value_scaled"] == 4_000_000
        assert result["headroom_absolute_scaled"] == -1
        assert result["headroom_percentage_scaled"] == -4
        assert result["status"] == "breach"

    def test_fraction_inside_band_edge_is_warning(self) -> None:
        # 3.40000014x floors to 3.4x, which would be exactly 15% headroom
        figures = _figures(total_debt=23_800_001, ebitda=7_000_000)
        result = evaluate("leverage", "max", 4_000_000, figures)
        assert result["calculated_value_scaled"] == 3_400_000
        assert result["headroom_percentage_scaled"] < WARNING_BAND_SCALED
        assert result["status"] == "warning"

    def test_fraction_over_min_is_not_breach(self) -> None:
        # 2.00000025x against a 2.0x minimum
        figures = _figures(ebitda=8_000_001, interest_expense=4_000_000)
        result = evaluate("interest_coverage", "min", 2_000_000, figures)
        assert result["calculated_value_scaled"] == 2_000_000
        assert result["headroom_absolute_scaled"] == 0
        assert result["status"] == "warning"

    def test_custom_formula_keeps_exact_sign(self) -> None:
        figures = _figures(total_debt=28_500_001, ebitda=7_125_000)
        result = evaluate(
            "custom", "max", 4_000_000, figures, formula="total_debt / ebitda"
        )
        assert result["calculated_value_scaled"] == 4_000_000
        assert result["status"] == "breach"

    def test_calculate_value_reports_floor(self) -> None:
        definition: CovenantDefinition = {
            "type": "leverage",
            "operator": "max",
            "threshold_scaled": 4_000_000,
            "formula": None,
        }
        figures = _figures(total_debt=28_500_001, ebitda=7_125_000)
        assert exact_value(definition, figures) > 4_000_000
        assert calculate_value(definition, figures) == 4_000_000
