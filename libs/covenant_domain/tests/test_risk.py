"""Tests for covenant_domain.risk module."""

from __future__ import annotations

from covenant_domain.models import ComplianceStatus, CovenantTest
from covenant_domain.risk import (
    HeadroomTrend,
    RiskFactors,
    assess_loan_risk,
    calculate_risk_score,
    headroom_impact,
    risk_factors_from_tests,
    risk_level,
)


def _test(
    covenant_id: str, status: ComplianceStatus, percentage_scaled: int, test_id: str = "t-1"
) -> CovenantTest:
    return {
        "id": {"value": test_id},
        "covenant_id": {"value": covenant_id},
        "loan_id": {"value": "loan-1"},
        "financial_period_id": None,
        "period_end_iso": "2025-09-30",
        "threshold_at_test_scaled": 2_000_000,
        "calculated_value_scaled": 2_000_000,
        "status": status,
        "headroom_absolute_scaled": 0,
        "headroom_percentage_scaled": percentage_scaled,
        "tested_at_iso": "2025-10-15T09:00:00+00:00",
        "notes": None,
    }


def _factors(
    *,
    breaches: int = 0,
    warnings: int = 0,
    lowest: int | None = None,
    trend: HeadroomTrend = "unknown",
    rating: str | None = None,
) -> RiskFactors:
    factors: RiskFactors = {
        "breach_count": breaches,
        "warning_count": warnings,
        "lowest_headroom_percentage_scaled": lowest,
        "average_headroom_percentage_scaled": lowest,
        "headroom_trend": trend,
        "credit_rating": rating,
    }
    return factors


class TestHeadroomImpact:
    def test_band_edges(self) -> None:
        assert headroom_impact(-1) == 100
        assert headroom_impact(0) == 80
        assert headroom_impact(4_999_999) == 80
        assert headroom_impact(5_000_000) == 60
        assert headroom_impact(9_999_999) == 60
        assert headroom_impact(10_000_000) == 40
        assert headroom_impact(14_999_999) == 40
        assert headroom_impact(15_000_000) == 20
        assert headroom_impact(24_999_999) == 20
        assert headroom_impact(25_000_000) == 0


class TestRiskLevel:
    def test_level_edges(self) -> None:
        assert risk_level(0) == "low"
        assert risk_level(30) == "low"
        assert risk_level(31) == "medium"
        assert risk_level(60) == "medium"
        assert risk_level(61) == "high"
        assert risk_level(100) == "high"


class TestFactorsFromTests:
    def test_empty_history(self) -> None:
        factors = risk_factors_from_tests([])
        assert factors["breach_count"] == 0
        assert factors["warning_count"] == 0
        assert factors["lowest_headroom_percentage_scaled"] is None
        assert factors["average_headroom_percentage_scaled"] is None
        assert factors["headroom_trend"] == "unknown"

    def test_only_latest_test_counts(self) -> None:
        tests = [
            _test("cov-a", "warning", 8_000_000, "t-4"),
            _test("cov-b", "compliant", 30_000_000, "t-3"),
            _test("cov-a", "breach", -2_000_000, "t-2"),
            _test("cov-b", "breach", 20_000_000, "t-1"),
        ]
        factors = risk_factors_from_tests(tests, "BBB")
        assert factors["breach_count"] == 0
        assert factors["warning_count"] == 1
        assert factors["lowest_headroom_percentage_scaled"] == 8_000_000
        assert factors["average_headroom_percentage_scaled"] == 19_000_000
        assert factors["credit_rating"] == "BBB"

    def test_worst_trend_wins(self) -> None:
        tests = [
            _test("cov-a", "warning", 8_000_000, "t-4"),
            _test("cov-b", "compliant", 30_000_000, "t-3"),
            _test("cov-a", "compliant", 20_000_000, "t-2"),
            _test("cov-b", "compliant", 20_000_000, "t-1"),
        ]
        assert risk_factors_from_tests(tests)["headroom_trend"] == "deteriorating"

    def test_single_test_has_no_trend(self) -> None:
        tests = [_test("cov-a", "compliant", 30_000_000)]
        assert risk_factors_from_tests(tests)["headroom_trend"] == "unknown"

    def test_five_point_move_is_stable(self) -> None:
        up = [
            _test("cov-a", "compliant", 25_000_000, "t-2"),
            _test("cov-a", "compliant", 20_000_000),
        ]
        down = [
            _test("cov-a", "compliant", 15_000_000, "t-2"),
            _test("cov-a", "compliant", 20_000_000),
        ]
        assert risk_factors_from_tests(up)["headroom_trend"] == "stable"
        assert risk_factors_from_tests(down)["headroom_trend"] == "stable"

    def test_beyond_five_points_moves_trend(self) -> None:
        up = [
            _test("cov-a", "compliant", 25_000_001, "t-2"),
            _test("cov-a", "compliant", 20_000_000),
        ]
        down = [
            _test("cov-a", "warning", 14_999_999, "t-2"),
            _test("cov-a", "compliant", 20_000_000),
        ]
        assert risk_factors_from_tests(up)["headroom_trend"] == "improving"
        assert risk_factors_from_tests(down)["headroom_trend"] == "deteriorating"


class TestCalculateRiskScore:
    def test_nothing_known_scores_unknown_trend_only(self) -> None:
        risk = calculate_risk_score(_factors())
        assert risk["score"] == 5
        assert risk["level"] == "low"
        assert risk["factors"] == []
        assert risk["recommendations"] == []

    def test_half_rounds_up(self) -> None:
        # 15 * 20 + 30 * 15 = 750 over a weight of 100
        risk = calculate_risk_score(_factors(warnings=1))
        assert risk["score"] == 8

    def test_factors_ranked_and_recommendations_capped(self) -> None:
        factors = _factors(
            breaches=1, warnings=1, lowest=-10_000_000, trend="deteriorating", rating="bbb"
        )
        risk = calculate_risk_score(factors)
        assert risk["score"] == 45
        assert risk["level"] == "medium"
        assert [(f["name"], f["impact"], f["description"]) for f in risk["factors"]] == [
            ("Headroom Cushion", 100, "Lowest headroom: -10.0%"),
            ("Performance Trend", 80, "Trend: deteriorating"),
            ("Credit Rating", 28, "Rating: bbb"),
            ("Covenant Breaches", 20, "1 active breach"),
            ("Warning Covenants", 15, "1 covenant at warning level"),
        ]
        assert risk["recommendations"] == [
            "Immediate attention required for covenant breaches",
            "Consider requesting waiver or amendment from borrower",
            "Monitor warning covenants closely",
            "Schedule review meeting with borrower",
            "Low headroom - consider requesting updated financials",
        ]

    def test_impacts_are_capped_and_plurals_used(self) -> None:
        factors = _factors(
            breaches=5, warnings=6, lowest=-1, trend="deteriorating", rating="D"
        )
        risk = calculate_risk_score(factors)
        assert risk["score"] == 93
        assert risk["level"] == "high"
        by_name = {f["name"]: f for f in risk["factors"]}
        assert by_name["Covenant Breaches"]["impact"] == 100
        assert by_name["Covenant Breaches"]["description"] == "5 active breaches"
        assert by_name["Warning Covenants"]["impact"] == 80
        assert by_name["Warning Covenants"]["description"] == "6 covenants at warning level"
        assert len(risk["recommendations"]) == 5

    def test_unknown_rating_is_mid_range(self) -> None:
        risk = calculate_risk_score(_factors(rating="NR"))
        assert risk["factors"] == [
            {"name": "Credit Rating", "impact": 50, "description": "Rating: NR"}
        ]
        assert risk["score"] == 12

    def test_rating_lookup_ignores_case(self) -> None:
        risk = calculate_risk_score(_factors(rating="aa+"))
        assert risk["factors"][0]["impact"] == 5

    def test_improving_trend_is_listed_with_no_impact(self) -> None:
        risk = calculate_risk_score(_factors(lowest=40_000_000, trend="improving"))
        assert risk["score"] == 0
        assert [f["name"] for f in risk["factors"]] == ["Headroom Cushion", "Performance Trend"]
        assert risk["recommendations"] == []

    def test_high_level_adds_watchlist(self) -> None:
        risk = calculate_risk_score(_factors(breaches=5, lowest=-1, rating="D"))
        # 100*30 + 100*20 + 100*15 + 30*15 = 6950
        assert risk["score"] == 70
        assert risk["recommendations"] == [
            "Immediate attention required for covenant breaches",
            "Consider requesting waiver or amendment from borrower",
            "Low headroom - consider requesting updated financials",
            "Consider placing on watchlist",
            "Review collateral and security position",
        ]


class TestAssessLoanRisk:
    def test_scores_history(self) -> None:
        tests = [
            _test("cov-a", "warning", 8_000_000, "t-2"),
            _test("cov-a", "compliant", 20_000_000, "t-1"),
        ]
        risk = assess_loan_risk(tests)
        # 15*20 + 60*20 + 80*15 = 2700
        assert risk["score"] == 27
        assert risk["level"] == "low"
        assert risk["recommendations"] == [
            "Monitor warning covenants closely",
            "Schedule review meeting with borrower",
            "Low headroom - consider requesting updated financials",
            "Deteriorating trend - increase monitoring frequency",
            "Review borrower financial projections",
        ]
