"""Tests for covenant_domain.encode and covenant_domain.decode."""

from __future__ import annotations

import pytest

from covenant_domain.decode import (
    decode_covenant,
    decode_covenant_test,
    decode_definition,
    decode_figures,
)
from covenant_domain.encode import encode_covenant, encode_covenant_test
from covenant_domain.models import Covenant, CovenantTest
from platform_core.json_utils import JSONObject, JSONTypeError, dump_json_str, load_json_str


def _covenant() -> Covenant:
    return {
        "id": {"value": "cov-1"},
        "loan_id": {"value": "loan-1"},
        "name": "Maximum Leverage",
        "type": "leverage",
        "operator": "max",
        "threshold_scaled": 4_500_000,
        "threshold_step_downs": [
            {"effective_from_iso": "2026-01-01", "threshold_scaled": 4_000_000}
        ],
        "formula": None,
        "testing_frequency": "semi_annual",
        "grace_period_days": 30,
    }


def test_covenant_survives_json() -> None:
    raw = load_json_str(dump_json_str(encode_covenant(_covenant())))
    assert isinstance(raw, dict)
    assert decode_covenant(raw) == _covenant()


def test_manual_test_without_period_survives_json() -> None:
    test: CovenantTest = {
        "id": {"value": "t-1"},
        "covenant_id": {"value": "cov-1"},
        "loan_id": {"value": "loan-1"},
        "financial_period_id": None,
        "period_end_iso": "2025-09-30",
        "threshold_at_test_scaled": 1_100_000,
        "calculated_value_scaled": 750_000,
        "status": "breach",
        "headroom_absolute_scaled": -350_000,
        "headroom_percentage_scaled": -31_818_182,
        "tested_at_iso": "2025-10-01T00:00:00+00:00",
        "notes": None,
    }
    raw = load_json_str(dump_json_str(encode_covenant_test(test)))
    assert isinstance(raw, dict)
    assert decode_covenant_test(raw) == test


class TestDecodeValidation:
    def test_unknown_type(self) -> None:
        data: JSONObject = {"type": "ebitda_margin", "operator": "max", "threshold_scaled": 1}
        with pytest.raises(JSONTypeError, match="CovenantType"):
            decode_definition(data)

    def test_unknown_operator(self) -> None:
        data: JSONObject = {"type": "leverage", "operator": "<=", "threshold_scaled": 1}
        with pytest.raises(JSONTypeError, match="CovenantOperator"):
            decode_definition(data)

    def test_float_threshold_rejected(self) -> None:
        data: JSONObject = {"type": "leverage", "operator": "max", "threshold_scaled": 4.5}
        with pytest.raises(JSONTypeError, match="threshold_scaled"):
            decode_definition(data)

    def test_figures_absent_and_null_are_missing(self) -> None:
        figures = decode_figures({"ebitda": None, "total_debt": 0})
        assert figures["ebitda"] is None
        assert figures["revenue"] is None
        assert figures["total_debt"] == 0

    def test_bad_frequency(self) -> None:
        data = encode_covenant(_covenant())
        data["testing_frequency"] = "monthly"
        with pytest.raises(JSONTypeError, match="TestingFrequency"):
            decode_covenant(data)
