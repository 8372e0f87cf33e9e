from __future__ import annotations

from platform_core.json_utils import JSONValue

from .models import (
    Alert,
    Covenant,
    CovenantDefinition,
    CovenantTest,
    CovenantTestResult,
    FinancialFigures,
    FinancialPeriod,
    FinancialPeriodId,
    LoanId,
    ThresholdStepDown,
)
from .risk import RiskScore
from .runner import CovenantFailure, CovenantOutcome, LoanTestRun


def encode_id(value: str) -> dict[str, JSONValue]:
    """Encode any ``{"value": str}`` identifier."""
    result: dict[str, JSONValue] = {"value": value}
    return result


def _encode_optional_id(period_id: FinancialPeriodId | None) -> JSONValue:
    if period_id is None:
        return None
    return encode_id(period_id["value"])


def encode_step_down(step: ThresholdStepDown) -> dict[str, JSONValue]:
    result: dict[str, JSONValue] = {
        "effective_from_iso": step["effective_from_iso"],
        "threshold_scaled": step["threshold_scaled"],
    }
    return result


def encode_covenant(covenant: Covenant) -> dict[str, JSONValue]:
    """Encode Covenant to JSON-serializable dict."""
    step_downs: list[JSONValue] = [encode_step_down(s) for s in covenant["threshold_step_downs"]]
    result: dict[str, JSONValue] = {
        "id": encode_id(covenant["id"]["value"]),
        "loan_id": encode_id(covenant["loan_id"]["value"]),
        "name": covenant["name"],
        "type": covenant["type"],
        "operator": covenant["operator"],
        "threshold_scaled": covenant["threshold_scaled"],
        "threshold_step_downs": step_downs,
        "formula": covenant["formula"],
        "testing_frequency": covenant["testing_frequency"],
        "grace_period_days": covenant["grace_period_days"],
    }
    return result


def encode_definition(definition: CovenantDefinition) -> dict[str, JSONValue]:
    result: dict[str, JSONValue] = {
        "type": definition["type"],
        "operator": definition["operator"],
        "threshold_scaled": definition["threshold_scaled"],
        "formula": definition["formula"],
    }
    return result


def encode_figures(figures: FinancialFigures) -> dict[str, JSONValue]:
    """Missing figures encode as JSON null."""
    result: dict[str, JSONValue] = {
        "revenue": figures["revenue"],
        "ebitda": figures["ebitda"],
        "total_debt": figures["total_debt"],
        "interest_expense": figures["interest_expense"],
        "fixed_charges": figures["fixed_charges"],
        "current_assets": figures["current_assets"],
        "current_liabilities": figures["current_liabilities"],
        "net_worth": figures["net_worth"],
    }
    return result


def encode_financial_period(period: FinancialPeriod) -> dict[str, JSONValue]:
    result: dict[str, JSONValue] = {
        "id": encode_id(period["id"]["value"]),
        "loan_id": encode_id(period["loan_id"]["value"]),
        "period_end_iso": period["period_end_iso"],
        "period_type": period["period_type"],
        "revenue": period["revenue"],
        "ebitda_reported": period["ebitda_reported"],
        "ebitda_adjusted": period["ebitda_adjusted"],
        "total_debt": period["total_debt"],
        "interest_expense": period["interest_expense"],
        "fixed_charges": period["fixed_charges"],
        "current_assets": period["current_assets"],
        "current_liabilities": period["current_liabilities"],
        "net_worth": period["net_worth"],
    }
    return result


def encode_test_result(result_obj: CovenantTestResult) -> dict[str, JSONValue]:
    result: dict[str, JSONValue] = {
        "calculated_value_scaled": result_obj["calculated_value_scaled"],
        "status": result_obj["status"],
        "headroom_absolute_scaled": result_obj["headroom_absolute_scaled"],
        "headroom_percentage_scaled": result_obj["headroom_percentage_scaled"],
    }
    return result


def encode_covenant_test(test: CovenantTest) -> dict[str, JSONValue]:
    result: dict[str, JSONValue] = {
        "id": encode_id(test["id"]["value"]),
        "covenant_id": encode_id(test["covenant_id"]["value"]),
        "loan_id": encode_id(test["loan_id"]["value"]),
        "financial_period_id": _encode_optional_id(test["financial_period_id"]),
        "period_end_iso": test["period_end_iso"],
        "threshold_at_test_scaled": test["threshold_at_test_scaled"],
        "calculated_value_scaled": test["calculated_value_scaled"],
        "status": test["status"],
        "headroom_absolute_scaled": test["headroom_absolute_scaled"],
        "headroom_percentage_scaled": test["headroom_percentage_scaled"],
        "tested_at_iso": test["tested_at_iso"],
        "notes": test["notes"],
    }
    return result


def encode_alert(alert: Alert) -> dict[str, JSONValue]:
    result: dict[str, JSONValue] = {
        "id": encode_id(alert["id"]["value"]),
        "loan_id": encode_id(alert["loan_id"]["value"]),
        "covenant_id": encode_id(alert["covenant_id"]["value"]),
        "covenant_test_id": encode_id(alert["covenant_test_id"]["value"]),
        "severity": alert["severity"],
        "title": alert["title"],
        "message": alert["message"],
        "acknowledged": alert["acknowledged"],
    }
    return result


def encode_failure(failure: CovenantFailure) -> dict[str, JSONValue]:
    result: dict[str, JSONValue] = {
        "covenant_id": encode_id(failure["covenant_id"]["value"]),
        "covenant_name": failure["covenant_name"],
        "kind": failure["kind"],
        "message": failure["message"],
    }
    return result


def encode_outcome(outcome: CovenantOutcome) -> dict[str, JSONValue]:
    alert = outcome["alert"]
    result: dict[str, JSONValue] = {
        "covenant_name": outcome["covenant_name"],
        "test": encode_covenant_test(outcome["test"]),
        "alert": encode_alert(alert) if alert is not None else None,
    }
    return result


def encode_loan_test_run(run: LoanTestRun) -> dict[str, JSONValue]:
    """Encode a run; ``alerts_created`` counts outcomes that raised an alert."""
    outcomes: list[JSONValue] = [encode_outcome(o) for o in run["outcomes"]]
    failures: list[JSONValue] = [encode_failure(f) for f in run["failures"]]
    alerts_created = sum(1 for o in run["outcomes"] if o["alert"] is not None)
    result: dict[str, JSONValue] = {
        "loan_id": encode_id(run["loan_id"]["value"]),
        "financial_period_id": encode_id(run["financial_period_id"]["value"]),
        "period_end_iso": run["period_end_iso"],
        "outcomes": outcomes,
        "failures": failures,
        "tests_run": len(run["outcomes"]),
        "alerts_created": alerts_created,
    }
    return result


def encode_risk_score(loan_id: LoanId, risk: RiskScore) -> dict[str, JSONValue]:
    factors: list[JSONValue] = [
        {"name": f["name"], "impact": f["impact"], "description": f["description"]}
        for f in risk["factors"]
    ]
    recommendations: list[JSONValue] = list(risk["recommendations"])
    result: dict[str, JSONValue] = {
        "loan_id": encode_id(loan_id["value"]),
        "score": risk["score"],
        "level": risk["level"],
        "factors": factors,
        "recommendations": recommendations,
    }
    return result


__all__ = [
    "encode_alert",
    "encode_covenant",
    "encode_covenant_test",
    "encode_definition",
    "encode_failure",
    "encode_figures",
    "encode_financial_period",
    "encode_id",
    "encode_loan_test_run",
    "encode_outcome",
    "encode_risk_score",
    "encode_step_down",
    "encode_test_result",
]
