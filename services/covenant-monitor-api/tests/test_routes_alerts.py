"""Tests for alert listing and acknowledgement."""

from __future__ import annotations

from httpx import Response
from platform_core.json_utils import (
    JSONValue,
    dump_json_str,
    load_json_str,
    narrow_json_to_dict,
    narrow_json_to_list,
)

from covenant_monitor_api.testing import ClientAndFakes


def _body(resp: Response) -> dict[str, JSONValue]:
    return narrow_json_to_dict(load_json_str(resp.text))


def _breach_alert(api: ClientAndFakes, loan_id: str) -> str:
    """Create a covenant and a breaching manual test; return the alert id."""
    covenant = dump_json_str(
        {
            "loan_id": {"value": loan_id},
            "name": "Minimum Interest Coverage",
            "type": "interest_coverage",
            "operator": "min",
            "threshold_scaled": 2_000_000,
            "testing_frequency": "quarterly",
        }
    )
    covenant_id = narrow_json_to_dict(
        _body(api.client.post("/covenants", content=covenant))["id"]
    )["value"]
    manual = dump_json_str({"calculated_value_scaled": 1_800_100, "period_end_iso": "2025-09-30"})
    resp = api.client.post(f"/covenants/{covenant_id}/tests", content=manual)
    alert = narrow_json_to_dict(_body(resp)["alert"])
    return str(narrow_json_to_dict(alert["id"])["value"])


class TestListAlerts:
    def test_lists_only_the_loans_alerts(self, api: ClientAndFakes) -> None:
        first = _breach_alert(api, "loan-1")
        _breach_alert(api, "loan-2")
        resp = api.client.get("/loans/loan-1/alerts")
        assert resp.status_code == 200
        items = narrow_json_to_list(load_json_str(resp.text))
        assert len(items) == 1
        alert = narrow_json_to_dict(items[0])
        assert alert["id"] == {"value": first}
        assert alert["severity"] == "critical"
        assert alert["title"] == "Minimum Interest Coverage Breach"
        assert alert["message"] == (
            "Minimum Interest Coverage is in breach with a calculated value of 1.80x "
            "against a threshold of ≥ 2x (10.0% over)."
        )
        assert alert["acknowledged"] is False

    def test_no_alerts_is_empty_list(self, api: ClientAndFakes) -> None:
        resp = api.client.get("/loans/loan-1/alerts")
        assert narrow_json_to_list(load_json_str(resp.text)) == []


class TestAcknowledgeAlert:
    def test_acknowledge_sets_flag_and_keeps_alert_listed(self, api: ClientAndFakes) -> None:
        alert_id = _breach_alert(api, "loan-1")
        resp = api.client.post(f"/alerts/{alert_id}/acknowledge")
        assert resp.status_code == 200
        assert _body(resp)["acknowledged"] is True
        listed = narrow_json_to_list(load_json_str(api.client.get("/loans/loan-1/alerts").text))
        assert narrow_json_to_dict(listed[0])["acknowledged"] is True

    def test_acknowledge_twice_is_idempotent(self, api: ClientAndFakes) -> None:
        alert_id = _breach_alert(api, "loan-1")
        api.client.post(f"/alerts/{alert_id}/acknowledge")
        resp = api.client.post(f"/alerts/{alert_id}/acknowledge")
        assert resp.status_code == 200
        assert _body(resp)["acknowledged"] is True

    def test_unknown_alert_is_404(self, api: ClientAndFakes) -> None:
        resp = api.client.post("/alerts/nope/acknowledge")
        assert resp.status_code == 404
        assert _body(resp)["code"] == "NOT_FOUND"
