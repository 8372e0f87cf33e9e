"""HTTP request body parsing for covenant-monitor-api.

Parses raw request bytes into strictly-typed domain models.
Uses platform_core.json_utils and covenant_domain.decode functions.
No framework validation (e.g., Pydantic) - internal decoders only.

Create requests carry no ``id``; the route mints one and passes it in.
"""

from __future__ import annotations

from datetime import date
from typing import TypedDict

from covenant_domain import (
    Covenant,
    CovenantDefinition,
    CovenantId,
    FinancialFigures,
    FinancialPeriod,
    FinancialPeriodId,
    LoanId,
    ThresholdStepDown,
    decode_definition,
    decode_figures,
)
from covenant_domain.decode import (
    decode_step_downs,
    require_covenant_type,
    require_frequency,
    require_operator,
)
from platform_core.json_utils import (
    JSONObject,
    JSONTypeError,
    load_json_bytes,
    optional_int,
    optional_str,
    require_dict,
    require_int,
    require_str,
)


class EvaluateRequest(TypedDict, total=True):
    """Request body for stateless evaluation of one definition."""

    definition: CovenantDefinition
    figures: FinancialFigures


class ManualTestRequest(TypedDict, total=True):
    """Request body for recording a hand-entered covenant value."""

    calculated_value_scaled: int
    period_end_iso: str
    notes: str | None


def _parse_body_as_dict(body: bytes) -> JSONObject:
    """Parse request body as JSON dict. Raises on invalid JSON or non-dict."""
    raw = load_json_bytes(body)
    if not isinstance(raw, dict):
        raise JSONTypeError("Request body must be a JSON object")
    return raw


def _check_iso_date(value: str, key: str) -> str:
    """Return the date as YYYY-MM-DD; basic and week forms are normalized too."""
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        raise JSONTypeError(f"Field '{key}' must be an ISO 8601 date, got {value!r}") from None
    return parsed.isoformat()


def _require_iso_date(data: JSONObject, key: str) -> str:
    return _check_iso_date(require_str(data, key), key)


def _require_loan_id(data: JSONObject) -> LoanId:
    return LoanId(value=require_str(require_dict(data, "loan_id"), "value"))


def parse_covenant_request(body: bytes, covenant_id: CovenantId) -> Covenant:
    """Parse a create-covenant body into a Covenant with the given id.

    ``threshold_step_downs`` defaults to no step-downs, ``grace_period_days``
    to 0 and ``formula`` to None.

    Raises:
        JSONTypeError: Missing required field or invalid field type.
    """
    data = _parse_body_as_dict(body)
    step_downs_raw = data.get("threshold_step_downs")
    if step_downs_raw is None:
        step_downs_raw = []
    if not isinstance(step_downs_raw, list):
        raise JSONTypeError("Field 'threshold_step_downs' must be an array")
    step_downs = [
        ThresholdStepDown(
            effective_from_iso=_check_iso_date(step["effective_from_iso"], "effective_from_iso"),
            threshold_scaled=step["threshold_scaled"],
        )
        for step in decode_step_downs(step_downs_raw)
    ]
    grace = optional_int(data, "grace_period_days")
    return Covenant(
        id=covenant_id,
        loan_id=_require_loan_id(data),
        name=require_str(data, "name"),
        type=require_covenant_type(data, "type"),
        operator=require_operator(data, "operator"),
        threshold_scaled=require_int(data, "threshold_scaled"),
        threshold_step_downs=step_downs,
        formula=optional_str(data, "formula"),
        testing_frequency=require_frequency(data, "testing_frequency"),
        grace_period_days=grace if grace is not None else 0,
    )


def parse_financial_period_request(body: bytes, period_id: FinancialPeriodId) -> FinancialPeriod:
    """Parse a create-period body. Absent figures are stored as NULL, not zero.

    Raises:
        JSONTypeError: Missing required field or invalid field type.
    """
    data = _parse_body_as_dict(body)
    return FinancialPeriod(
        id=period_id,
        loan_id=_require_loan_id(data),
        period_end_iso=_require_iso_date(data, "period_end_iso"),
        period_type=require_frequency(data, "period_type"),
        revenue=optional_int(data, "revenue"),
        ebitda_reported=optional_int(data, "ebitda_reported"),
        ebitda_adjusted=optional_int(data, "ebitda_adjusted"),
        total_debt=optional_int(data, "total_debt"),
        interest_expense=optional_int(data, "interest_expense"),
        fixed_charges=optional_int(data, "fixed_charges"),
        current_assets=optional_int(data, "current_assets"),
        current_liabilities=optional_int(data, "current_liabilities"),
        net_worth=optional_int(data, "net_worth"),
    )


def parse_evaluate_request(body: bytes) -> EvaluateRequest:
    """Parse ``{"definition": {...}, "figures": {...}}``.

    Raises:
        JSONTypeError: Missing required field or invalid field type.
    """
    data = _parse_body_as_dict(body)
    return EvaluateRequest(
        definition=decode_definition(require_dict(data, "definition")),
        figures=decode_figures(require_dict(data, "figures")),
    )


def parse_manual_test_request(body: bytes) -> ManualTestRequest:
    data = _parse_body_as_dict(body)
    return ManualTestRequest(
        calculated_value_scaled=require_int(data, "calculated_value_scaled"),
        period_end_iso=_require_iso_date(data, "period_end_iso"),
        notes=optional_str(data, "notes"),
    )


def parse_batch_request(body: bytes) -> list[str]:
    """Parse ``{"loan_ids": [...]}``. An absent or empty list means every loan.

    Raises:
        JSONTypeError: Missing required field or invalid field type.
    """
    data = _parse_body_as_dict(body)
    raw = data.get("loan_ids")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise JSONTypeError("Field 'loan_ids' must be an array")
    loan_ids: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise JSONTypeError("Each loan id must be a string")
        loan_ids.append(item)
    return loan_ids


__all__ = [
    "EvaluateRequest",
    "ManualTestRequest",
    "parse_batch_request",
    "parse_covenant_request",
    "parse_evaluate_request",
    "parse_financial_period_request",
    "parse_manual_test_request",
]
