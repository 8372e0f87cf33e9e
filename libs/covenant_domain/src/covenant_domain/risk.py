"""Loan risk score from covenant test history.

The score is a weighted average (0-100) of five factors: active breaches,
warning covenants, the lowest headroom, the credit rating and the headroom
trend. Only the latest test of each covenant counts towards the breach and
warning totals and the headroom figures; the previous test supplies the
trend. All arithmetic is on integers, so equal histories give equal scores.

Levels: 0-30 low, 31-60 medium, 61-100 high.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal, TypedDict

from .alerts import format_fixed
from .models import SCALE, CovenantTest

RiskLevel = Literal["low", "medium", "high"]
HeadroomTrend = Literal["improving", "stable", "deteriorating", "unknown"]


class RiskFactors(TypedDict, total=True):
    breach_count: int
    warning_count: int
    lowest_headroom_percentage_scaled: int | None
    average_headroom_percentage_scaled: int | None
    headroom_trend: HeadroomTrend
    credit_rating: str | None


class RiskFactor(TypedDict, total=True):
    name: str
    impact: int
    description: str


class RiskScore(TypedDict, total=True):
    score: int
    level: RiskLevel
    factors: list[RiskFactor]
    recommendations: list[str]


BREACH_WEIGHT = 30
WARNING_WEIGHT = 20
HEADROOM_WEIGHT = 20
RATING_WEIGHT = 15
TREND_WEIGHT = 15
_WEIGHT_TOTAL = BREACH_WEIGHT + WARNING_WEIGHT + HEADROOM_WEIGHT + RATING_WEIGHT + TREND_WEIGHT

# A move of more than five percentage points between the last two tests.
TREND_BAND_SCALED = 5 * SCALE

# Lowest headroom below each bound (scaled percent) maps to that impact.
_HEADROOM_BANDS: tuple[tuple[int, int], ...] = (
    (0, 100),
    (5 * SCALE, 80),
    (10 * SCALE, 60),
    (15 * SCALE, 40),
    (25 * SCALE, 20),
)

_UNRATED_IMPACT = 50

RATING_IMPACT: dict[str, int] = {
    "AAA": 0,
    "AA+": 5,
    "AA": 8,
    "AA-": 10,
    "A+": 12,
    "A": 15,
    "A-": 18,
    "BBB+": 22,
    "BBB": 28,
    "BBB-": 35,
    "BB+": 45,
    "BB": 52,
    "BB-": 60,
    "B+": 68,
    "B": 75,
    "B-": 82,
    "CCC+": 88,
    "CCC": 92,
    "CCC-": 95,
    "CC": 97,
    "C": 99,
    "D": 100,
}

_TREND_IMPACT: dict[HeadroomTrend, int] = {
    "improving": 0,
    "stable": 20,
    "deteriorating": 80,
    "unknown": 30,
}

# Across covenants the worst trend wins.
_TREND_RANK: dict[HeadroomTrend, int] = {
    "unknown": 0,
    "improving": 1,
    "stable": 2,
    "deteriorating": 3,
}

_MAX_RECOMMENDATIONS = 5


def _covenant_trend(latest: CovenantTest, previous: CovenantTest) -> HeadroomTrend:
    current = latest["headroom_percentage_scaled"]
    before = previous["headroom_percentage_scaled"]
    if current > before + TREND_BAND_SCALED:
        return "improving"
    if current < before - TREND_BAND_SCALED:
        return "deteriorating"
    return "stable"


def risk_factors_from_tests(
    tests: Sequence[CovenantTest], credit_rating: str | None = None
) -> RiskFactors:
    """
    Collect risk factors from a loan's test history.

    ``tests`` must be newest first, the order the test repositories return.
    A covenant with a single test contributes no trend.
    """
    history: dict[str, list[CovenantTest]] = {}
    for test in tests:
        history.setdefault(test["covenant_id"]["value"], []).append(test)

    breaches = 0
    warnings = 0
    headrooms: list[int] = []
    trend: HeadroomTrend = "unknown"
    for covenant_tests in history.values():
        latest = covenant_tests[0]
        if latest["status"] == "breach":
            breaches += 1
        elif latest["status"] == "warning":
            warnings += 1
        headrooms.append(latest["headroom_percentage_scaled"])
        if len(covenant_tests) >= 2:
            covenant_trend = _covenant_trend(latest, covenant_tests[1])
            if _TREND_RANK[covenant_trend] > _TREND_RANK[trend]:
                trend = covenant_trend

    return RiskFactors(
        breach_count=breaches,
        warning_count=warnings,
        lowest_headroom_percentage_scaled=min(headrooms) if headrooms else None,
        average_headroom_percentage_scaled=(
            sum(headrooms) // len(headrooms) if headrooms else None
        ),
        headroom_trend=trend,
        credit_rating=credit_rating,
    )


def headroom_impact(lowest_headroom_percentage_scaled: int) -> int:
    for bound, impact in _HEADROOM_BANDS:
        if lowest_headroom_percentage_scaled < bound:
            return impact
    return 0


def risk_level(score: int) -> RiskLevel:
    if score > 60:
        return "high"
    if score > 30:
        return "medium"
    return "low"


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _recommendations(factors: RiskFactors, level: RiskLevel) -> list[str]:
    items: list[str] = []
    if factors["breach_count"] > 0:
        items.append("Immediate attention required for covenant breaches")
        items.append("Consider requesting waiver or amendment from borrower")
    if factors["warning_count"] > 0:
        items.append("Monitor warning covenants closely")
        items.append("Schedule review meeting with borrower")
    lowest = factors["lowest_headroom_percentage_scaled"]
    if lowest is not None and lowest < 15 * SCALE:
        items.append("Low headroom - consider requesting updated financials")
    if factors["headroom_trend"] == "deteriorating":
        items.append("Deteriorating trend - increase monitoring frequency")
        items.append("Review borrower financial projections")
    if level == "high":
        items.append("Consider placing on watchlist")
        items.append("Review collateral and security position")
    return items[:_MAX_RECOMMENDATIONS]


def calculate_risk_score(factors: RiskFactors) -> RiskScore:
    """
    Weighted risk score for one loan.

    Absent factors (no breaches, no tests, no rating) add nothing to the
    weighted total but still count in the divisor; an unknown trend scores
    30. The average rounds half up. Factors are ranked by impact, highest
    first, and at most five recommendations are returned.
    """
    total = 0
    ranked: list[RiskFactor] = []

    breaches = factors["breach_count"]
    if breaches > 0:
        impact = min(breaches * 20, 100)
        total += impact * BREACH_WEIGHT
        ranked.append(
            RiskFactor(
                name="Covenant Breaches",
                impact=impact,
                description=f"{breaches} active {_plural(breaches, 'breach', 'breaches')}",
            )
        )

    warnings = factors["warning_count"]
    if warnings > 0:
        impact = min(warnings * 15, 80)
        total += impact * WARNING_WEIGHT
        ranked.append(
            RiskFactor(
                name="Warning Covenants",
                impact=impact,
                description=(
                    f"{warnings} {_plural(warnings, 'covenant', 'covenants')} at warning level"
                ),
            )
        )

    lowest = factors["lowest_headroom_percentage_scaled"]
    if lowest is not None:
        impact = headroom_impact(lowest)
        total += impact * HEADROOM_WEIGHT
        ranked.append(
            RiskFactor(
                name="Headroom Cushion",
                impact=impact,
                description=f"Lowest headroom: {format_fixed(lowest, 1)}%",
            )
        )

    rating = factors["credit_rating"]
    if rating:
        impact = RATING_IMPACT.get(rating.upper(), _UNRATED_IMPACT)
        total += impact * RATING_WEIGHT
        ranked.append(
            RiskFactor(name="Credit Rating", impact=impact, description=f"Rating: {rating}")
        )

    trend = factors["headroom_trend"]
    impact = _TREND_IMPACT[trend]
    total += impact * TREND_WEIGHT
    if trend != "unknown":
        ranked.append(
            RiskFactor(name="Performance Trend", impact=impact, description=f"Trend: {trend}")
        )

    score = (2 * total + _WEIGHT_TOTAL) // (2 * _WEIGHT_TOTAL)
    level = risk_level(score)
    ranked.sort(key=lambda factor: factor["impact"], reverse=True)
    return RiskScore(
        score=score,
        level=level,
        factors=ranked,
        recommendations=_recommendations(factors, level),
    )


def assess_loan_risk(tests: Sequence[CovenantTest], credit_rating: str | None = None) -> RiskScore:
    """Score a loan straight from its newest-first test history."""
    return calculate_risk_score(risk_factors_from_tests(tests, credit_rating))


__all__ = [
    "BREACH_WEIGHT",
    "HEADROOM_WEIGHT",
    "RATING_IMPACT",
    "RATING_WEIGHT",
    "TREND_BAND_SCALED",
    "TREND_WEIGHT",
    "WARNING_WEIGHT",
    "HeadroomTrend",
    "RiskFactor",
    "RiskFactors",
    "RiskLevel",
    "RiskScore",
    "assess_loan_risk",
    "calculate_risk_score",
    "headroom_impact",
    "risk_factors_from_tests",
    "risk_level",
]
