"""Tests for the stateless evaluate route."""

from __future__ import annotations

from httpx import Response
from platform_core.json_utils import JSONValue, dump_json_str, load_json_str, narrow_json_to_dict

from covenant_monitor_api.testing import ClientAndFakes


def _body(resp: Response) -> dict[str, JSONValue]:
    return narrow_json_to_dict(load_json_str(resp.text))


def _evaluate(
    api: ClientAndFakes, definition: dict[str, JSONValue], figures: dict[str, JSONValue]
) -> Response:
    return api.client.post(
        "/evaluate", content=dump_json_str({"definition": definition, "figures": figures})
    )


_LEVERAGE: dict[str, JSONValue] = {
    "type": "leverage",
    "operator": "max",
    "threshold_scaled": 4_000_000,
}


class TestEvaluateRoute:
    def test_demo_leverage_is_compliant(self, api: ClientAndFakes) -> None:
        resp = _evaluate(
            api,
            _LEVERAGE,
            {"ebitda": 12_450_000_000_000, "total_debt": 28_500_000_000_000},
        )
        assert resp.status_code == 200
        assert _body(resp) == {
            "calculated_value_scaled": 2_289_156,
            "status": "compliant",
            "headroom_absolute_scaled": 1_710_843,
            "headroom_percentage_scaled": 42_771_084,
        }

    def test_nothing_is_persisted(self, api: ClientAndFakes) -> None:
        _evaluate(api, _LEVERAGE, {"ebitda": 10, "total_debt": 20})
        assert api.store.tests == []
        assert api.store.alerts == []

    def test_missing_figure_is_422(self, api: ClientAndFakes) -> None:
        resp = _evaluate(api, _LEVERAGE, {"ebitda": 10})
        assert resp.status_code == 422
        body = _body(resp)
        assert body["code"] == "MISSING_INPUT"
        assert "total_debt" in str(body["message"])

    def test_zero_ebitda_is_422(self, api: ClientAndFakes) -> None:
        resp = _evaluate(api, _LEVERAGE, {"ebitda": 0, "total_debt": 20})
        assert resp.status_code == 422
        assert _body(resp)["code"] == "DIVISION_BY_ZERO"

    def test_zero_threshold_is_422(self, api: ClientAndFakes) -> None:
        definition: dict[str, JSONValue] = {**_LEVERAGE, "threshold_scaled": 0}
        resp = _evaluate(api, definition, {"ebitda": 10, "total_debt": 20})
        assert resp.status_code == 422
        assert _body(resp)["code"] == "INVALID_THRESHOLD"

    def test_debt_service_coverage_is_unsupported(self, api: ClientAndFakes) -> None:
        definition: dict[str, JSONValue] = {
            "type": "debt_service_coverage",
            "operator": "min",
            "threshold_scaled": 1_250_000,
        }
        resp = _evaluate(api, definition, {"ebitda": 10})
        assert resp.status_code == 422
        assert _body(resp)["code"] == "UNSUPPORTED_COVENANT_TYPE"

    def test_malformed_custom_formula_is_422(self, api: ClientAndFakes) -> None:
        definition: dict[str, JSONValue] = {
            "type": "custom",
            "operator": "max",
            "threshold_scaled": 1_000_000,
            "formula": "total_debt / (ebitda",
        }
        resp = _evaluate(api, definition, {"ebitda": 10, "total_debt": 20})
        assert resp.status_code == 422
        assert _body(resp)["code"] == "INVALID_FORMULA"

    def test_missing_definition_is_400(self, api: ClientAndFakes) -> None:
        resp = api.client.post("/evaluate", content=dump_json_str({"figures": {}}))
        assert resp.status_code == 400
