from __future__ import annotations

from platform_core.json_utils import (
    JSONObject,
    JSONTypeError,
    JSONValue,
    narrow_json_to_dict,
    optional_int,
    optional_str,
    require_bool,
    require_dict,
    require_int,
    require_list,
    require_str,
)

from .models import (
    Alert,
    AlertId,
    AlertSeverity,
    ComplianceStatus,
    Covenant,
    CovenantDefinition,
    CovenantId,
    CovenantOperator,
    CovenantTest,
    CovenantTestId,
    CovenantTestResult,
    CovenantType,
    FinancialFigures,
    FinancialPeriod,
    FinancialPeriodId,
    LoanId,
    TestingFrequency,
    ThresholdStepDown,
)


def require_covenant_type(data: JSONObject, key: str) -> CovenantType:
    """Extract and validate the CovenantType literal."""
    value = require_str(data, key)
    if value == "leverage":
        return "leverage"
    if value == "interest_coverage":
        return "interest_coverage"
    if value == "fixed_charge_coverage":
        return "fixed_charge_coverage"
    if value == "current_ratio":
        return "current_ratio"
    if value == "min_net_worth":
        return "min_net_worth"
    if value == "debt_service_coverage":
        return "debt_service_coverage"
    if value == "custom":
        return "custom"
    raise JSONTypeError(f"Invalid CovenantType: {value}")


def require_operator(data: JSONObject, key: str) -> CovenantOperator:
    value = require_str(data, key)
    if value == "max":
        return "max"
    if value == "min":
        return "min"
    raise JSONTypeError(f"Invalid CovenantOperator: {value}")


def require_frequency(data: JSONObject, key: str) -> TestingFrequency:
    value = require_str(data, key)
    if value == "quarterly":
        return "quarterly"
    if value == "semi_annual":
        return "semi_annual"
    if value == "annual":
        return "annual"
    raise JSONTypeError(f"Invalid TestingFrequency: {value}")


def _require_status(data: JSONObject, key: str) -> ComplianceStatus:
    value = require_str(data, key)
    if value == "compliant":
        return "compliant"
    if value == "warning":
        return "warning"
    if value == "breach":
        return "breach"
    raise JSONTypeError(f"Invalid ComplianceStatus: {value}")


def _require_severity(data: JSONObject, key: str) -> AlertSeverity:
    value = require_str(data, key)
    if value == "critical":
        return "critical"
    if value == "warning":
        return "warning"
    raise JSONTypeError(f"Invalid AlertSeverity: {value}")


def _require_id_value(data: JSONObject, key: str) -> str:
    return require_str(require_dict(data, key), "value")


def decode_step_down(data: JSONObject) -> ThresholdStepDown:
    return ThresholdStepDown(
        effective_from_iso=require_str(data, "effective_from_iso"),
        threshold_scaled=require_int(data, "threshold_scaled"),
    )


def decode_step_downs(items: list[JSONValue]) -> list[ThresholdStepDown]:
    return [decode_step_down(narrow_json_to_dict(item)) for item in items]


def decode_definition(data: JSONObject) -> CovenantDefinition:
    """Decode CovenantDefinition from JSON dict. Raises on invalid data."""
    return CovenantDefinition(
        type=require_covenant_type(data, "type"),
        operator=require_operator(data, "operator"),
        threshold_scaled=require_int(data, "threshold_scaled"),
        formula=optional_str(data, "formula"),
    )


def decode_figures(data: JSONObject) -> FinancialFigures:
    """Decode FinancialFigures. Absent keys and nulls decode to None."""
    return FinancialFigures(
        revenue=optional_int(data, "revenue"),
        ebitda=optional_int(data, "ebitda"),
        total_debt=optional_int(data, "total_debt"),
        interest_expense=optional_int(data, "interest_expense"),
        fixed_charges=optional_int(data, "fixed_charges"),
        current_assets=optional_int(data, "current_assets"),
        current_liabilities=optional_int(data, "current_liabilities"),
        net_worth=optional_int(data, "net_worth"),
    )


def decode_covenant(data: JSONObject) -> Covenant:
    """Decode Covenant from JSON dict. Raises on invalid data."""
    return Covenant(
        id=CovenantId(value=_require_id_value(data, "id")),
        loan_id=LoanId(value=_require_id_value(data, "loan_id")),
        name=require_str(data, "name"),
        type=require_covenant_type(data, "type"),
        operator=require_operator(data, "operator"),
        threshold_scaled=require_int(data, "threshold_scaled"),
        threshold_step_downs=decode_step_downs(require_list(data, "threshold_step_downs")),
        formula=optional_str(data, "formula"),
        testing_frequency=require_frequency(data, "testing_frequency"),
        grace_period_days=require_int(data, "grace_period_days"),
    )


def decode_financial_period(data: JSONObject) -> FinancialPeriod:
    return FinancialPeriod(
        id=FinancialPeriodId(value=_require_id_value(data, "id")),
        loan_id=LoanId(value=_require_id_value(data, "loan_id")),
        period_end_iso=require_str(data, "period_end_iso"),
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


def decode_test_result(data: JSONObject) -> CovenantTestResult:
    return CovenantTestResult(
        calculated_value_scaled=require_int(data, "calculated_value_scaled"),
        status=_require_status(data, "status"),
        headroom_absolute_scaled=require_int(data, "headroom_absolute_scaled"),
        headroom_percentage_scaled=require_int(data, "headroom_percentage_scaled"),
    )


def decode_covenant_test(data: JSONObject) -> CovenantTest:
    period_raw = data.get("financial_period_id")
    period_id: FinancialPeriodId | None = None
    if period_raw is not None:
        period_id = FinancialPeriodId(
            value=require_str(narrow_json_to_dict(period_raw), "value")
        )
    return CovenantTest(
        id=CovenantTestId(value=_require_id_value(data, "id")),
        covenant_id=CovenantId(value=_require_id_value(data, "covenant_id")),
        loan_id=LoanId(value=_require_id_value(data, "loan_id")),
        financial_period_id=period_id,
        period_end_iso=require_str(data, "period_end_iso"),
        threshold_at_test_scaled=require_int(data, "threshold_at_test_scaled"),
        calculated_value_scaled=require_int(data, "calculated_value_scaled"),
        status=_require_status(data, "status"),
        headroom_absolute_scaled=require_int(data, "headroom_absolute_scaled"),
        headroom_percentage_scaled=require_int(data, "headroom_percentage_scaled"),
        tested_at_iso=require_str(data, "tested_at_iso"),
        notes=optional_str(data, "notes"),
    )


def decode_alert(data: JSONObject) -> Alert:
    return Alert(
        id=AlertId(value=_require_id_value(data, "id")),
        loan_id=LoanId(value=_require_id_value(data, "loan_id")),
        covenant_id=CovenantId(value=_require_id_value(data, "covenant_id")),
        covenant_test_id=CovenantTestId(value=_require_id_value(data, "covenant_test_id")),
        severity=_require_severity(data, "severity"),
        title=require_str(data, "title"),
        message=require_str(data, "message"),
        acknowledged=require_bool(data, "acknowledged"),
    )


__all__ = [
    "decode_alert",
    "decode_covenant",
    "decode_covenant_test",
    "decode_definition",
    "decode_figures",
    "decode_financial_period",
    "decode_step_down",
    "decode_step_downs",
    "decode_test_result",
    "require_covenant_type",
    "require_frequency",
    "require_operator",
]
