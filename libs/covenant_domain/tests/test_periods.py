"""Tests for figure mapping and threshold step-down resolution."""

from __future__ import annotations

from covenant_domain.figures import figures_from_period
from covenant_domain.models import Covenant, FinancialPeriod
from covenant_domain.thresholds import resolve_threshold


def _period(*, reported: int | None, adjusted: int | None) -> FinancialPeriod:
    return {
        "id": {"value": "fp-1"},
        "loan_id": {"value": "loan-1"},
        "period_end_iso": "2025-09-30",
        "period_type": "quarterly",
        "revenue": 42_500_000_000_000,
        "ebitda_reported": reported,
        "ebitda_adjusted": adjusted,
        "total_debt": 28_500_000_000_000,
        "interest_expense": None,
        "fixed_charges": None,
        "current_assets": None,
        "current_liabilities": 0,
        "net_worth": None,
    }


def _covenant() -> Covenant:
    return {
        "id": {"value": "cov-1"},
        "loan_id": {"value": "loan-1"},
        "name": "Maximum Leverage",
        "type": "leverage",
        "operator": "max",
        "threshold_scaled": 4_500_000,
        "threshold_step_downs": [
            {"effective_from_iso": "2026-01-01", "threshold_scaled": 4_000_000},
            {"effective_from_iso": "2025-07-01", "threshold_scaled": 4_250_000},
        ],
        "formula": None,
        "testing_frequency": "quarterly",
        "grace_period_days": 30,
    }


class TestFiguresFromPeriod:
    def test_prefers_adjusted_ebitda(self) -> None:
        figures = figures_from_period(_period(reported=12_000_000, adjusted=13_000_000))
        assert figures["ebitda"] == 13_000_000

    def test_adjusted_zero_is_respected(self) -> None:
        assert figures_from_period(_period(reported=12_000_000, adjusted=0))["ebitda"] == 0

    def test_falls_back_to_reported(self) -> None:
        figures = figures_from_period(_period(reported=12_000_000, adjusted=None))
        assert figures["ebitda"] == 12_000_000

    def test_missing_stays_missing(self) -> None:
        figures = figures_from_period(_period(reported=None, adjusted=None))
        assert figures["ebitda"] is None
        assert figures["interest_expense"] is None
        assert figures["current_liabilities"] == 0
        assert figures["total_debt"] == 28_500_000_000_000


class TestResolveThreshold:
    def test_before_any_step_down(self) -> None:
        assert resolve_threshold(_covenant(), "2025-06-30") == 4_500_000

    def test_step_down_effective_on_its_date(self) -> None:
        assert resolve_threshold(_covenant(), "2025-07-01") == 4_250_000

    def test_latest_step_down_wins_regardless_of_order(self) -> None:
        assert resolve_threshold(_covenant(), "2026-03-31") == 4_000_000

    def test_no_step_downs(self) -> None:
        covenant = _covenant()
        covenant["threshold_step_downs"] = []
        assert resolve_threshold(covenant, "2030-12-31") == 4_500_000
