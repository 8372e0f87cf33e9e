"""Tests for loan test runs, manual tests and test history."""

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


def _items(resp: Response) -> list[JSONValue]:
    return narrow_json_to_list(load_json_str(resp.text))


def _manual(value_scaled: int, period_end_iso: str) -> str:
    return dump_json_str(
        {"calculated_value_scaled": value_scaled, "period_end_iso": period_end_iso}
    )


def _create_covenant(
    api: ClientAndFakes, loan_id: str, covenant_type: str, threshold_scaled: int
) -> None:
    payload = dump_json_str(
        {
            "loan_id": {"value": loan_id},
            "name": "Maximum Leverage Ratio" if covenant_type == "leverage" else "Min Coverage",
            "type": covenant_type,
            "operator": "max" if covenant_type == "leverage" else "min",
            "threshold_scaled": threshold_scaled,
            "threshold_step_downs": [
                {"effective_from_iso": "2026-01-01", "threshold_scaled": threshold_scaled // 2}
            ],
            "testing_frequency": "quarterly",
        }
    )
    assert api.client.post("/covenants", content=payload).status_code == 201


def _create_period(api: ClientAndFakes, loan_id: str, interest_expense: int) -> None:
    payload = dump_json_str(
        {
            "loan_id": {"value": loan_id},
            "period_end_iso": "2025-09-30",
            "period_type": "quarterly",
            "ebitda_reported": 13_000_000_000_000,
            "total_debt": 62_400_000_000_000,
            "interest_expense": interest_expense,
        }
    )
    assert api.client.post("/financial-periods", content=payload).status_code == 201


class TestRunLoanTests:
    def test_no_covenants_is_404(self, api: ClientAndFakes) -> None:
        resp = api.client.post("/loans/loan-1/test")
        assert resp.status_code == 404
        assert _body(resp)["message"] == "Loan loan-1 has no covenants"

    def test_no_period_is_400(self, api: ClientAndFakes) -> None:
        _create_covenant(api, "loan-1", "leverage", 5_000_000)
        resp = api.client.post("/loans/loan-1/test")
        assert resp.status_code == 400
        assert _body(resp)["message"] == "Loan loan-1 has no financial period"
        assert api.store.tests == []

    def test_warning_persists_test_and_alert(self, api: ClientAndFakes) -> None:
        _create_covenant(api, "loan-1", "leverage", 5_000_000)
        _create_period(api, "loan-1", 4_368_000_000_000)
        resp = api.client.post("/loans/loan-1/test")
        assert resp.status_code == 200
        body = _body(resp)
        assert body["financial_period_id"] == {"value": "id-2"}
        assert body["tests_run"] == 1
        assert body["alerts_created"] == 1
        assert body["failures"] == []

        assert len(api.store.tests) == 1
        test = api.store.tests[0]
        assert test["id"] == {"value": "id-3"}
        assert test["calculated_value_scaled"] == 4_800_000
        assert test["threshold_at_test_scaled"] == 5_000_000
        assert test["headroom_percentage_scaled"] == 4_000_000
        assert test["status"] == "warning"
        assert test["tested_at_iso"] == "2025-10-15T09:30:00+00:00"

        assert len(api.store.alerts) == 1
        alert = api.store.alerts[0]
        assert alert["covenant_test_id"] == {"value": "id-3"}
        assert alert["severity"] == "warning"
        assert alert["title"] == "Maximum Leverage Ratio Warning"
        assert alert["message"] == (
            "Maximum Leverage Ratio is at warning level with a calculated value of 4.80x "
            "against a threshold of ≤ 5x (4.0% headroom)."
        )

    def test_unevaluable_covenant_is_reported_and_run_continues(
        self, api: ClientAndFakes
    ) -> None:
        _create_covenant(api, "loan-1", "interest_coverage", 2_000_000)
        _create_covenant(api, "loan-1", "leverage", 6_000_000)
        _create_period(api, "loan-1", 0)
        resp = api.client.post("/loans/loan-1/test")
        assert resp.status_code == 200
        body = _body(resp)
        assert body["tests_run"] == 1
        assert body["alerts_created"] == 0
        failures = narrow_json_to_list(body["failures"])
        assert len(failures) == 1
        failure = narrow_json_to_dict(failures[0])
        assert failure["covenant_id"] == {"value": "id-1"}
        assert failure["kind"] == "division_by_zero"
        assert len(api.store.tests) == 1
        assert api.store.tests[0]["covenant_id"] == {"value": "id-2"}


class TestManualTests:
    def test_manual_warning_creates_alert(self, api: ClientAndFakes) -> None:
        _create_covenant(api, "loan-1", "leverage", 4_000_000)
        payload = dump_json_str(
            {
                "calculated_value_scaled": 3_600_000,
                "period_end_iso": "2025-12-31",
                "notes": "From borrower compliance certificate",
            }
        )
        resp = api.client.post("/covenants/id-1/tests", content=payload)
        assert resp.status_code == 201
        body = _body(resp)
        test = narrow_json_to_dict(body["test"])
        assert test["financial_period_id"] is None
        assert test["status"] == "warning"
        assert test["headroom_percentage_scaled"] == 10_000_000
        assert test["notes"] == "From borrower compliance certificate"
        alert = narrow_json_to_dict(body["alert"])
        assert alert["covenant_test_id"] == {"value": "id-2"}
        assert len(api.store.alerts) == 1

    def test_step_down_threshold_applies_by_period_end(self, api: ClientAndFakes) -> None:
        _create_covenant(api, "loan-1", "leverage", 4_000_000)
        resp = api.client.post("/covenants/id-1/tests", content=_manual(3_600_000, "2026-03-31"))
        test = narrow_json_to_dict(_body(resp)["test"])
        assert test["threshold_at_test_scaled"] == 2_000_000
        assert test["status"] == "breach"
        assert api.store.alerts[0]["severity"] == "critical"

    def test_compliant_manual_test_has_no_alert(self, api: ClientAndFakes) -> None:
        _create_covenant(api, "loan-1", "leverage", 4_000_000)
        resp = api.client.post("/covenants/id-1/tests", content=_manual(1_000_000, "2025-06-30"))
        assert resp.status_code == 201
        assert _body(resp)["alert"] is None
        assert api.store.alerts == []

    def test_unknown_covenant_is_404(self, api: ClientAndFakes) -> None:
        payload = _manual(1, "2025-06-30")
        assert api.client.post("/covenants/nope/tests", content=payload).status_code == 404


class TestListTests:
    def test_lists_by_covenant_and_loan(self, api: ClientAndFakes) -> None:
        _create_covenant(api, "loan-1", "leverage", 4_000_000)
        _create_covenant(api, "loan-2", "leverage", 4_000_000)
        first = _manual(1_000_000, "2025-06-30")
        api.client.post("/covenants/id-1/tests", content=first)
        api.client.post("/covenants/id-2/tests", content=first)

        by_covenant = _items(api.client.get("/covenants/id-1/tests"))
        assert len(by_covenant) == 1
        assert narrow_json_to_dict(by_covenant[0])["covenant_id"] == {"value": "id-1"}

        by_loan = _items(api.client.get("/loans/loan-2/tests"))
        assert len(by_loan) == 1
        assert narrow_json_to_dict(by_loan[0])["loan_id"] == {"value": "loan-2"}

    def test_empty_history(self, api: ClientAndFakes) -> None:
        resp = api.client.get("/loans/loan-9/tests")
        assert resp.status_code == 200
        assert _items(resp) == []
