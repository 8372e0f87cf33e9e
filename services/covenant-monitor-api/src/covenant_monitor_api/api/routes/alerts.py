"""Alert listing and acknowledgement."""

from __future__ import annotations

from typing import Protocol

from covenant_domain import AlertId, LoanId, encode_alert
from covenant_persistence import AlertRepository
from fastapi import APIRouter, Response
from platform_core.json_utils import JSONValue, dump_json_str
from platform_core.logging import get_logger

_log = get_logger(__name__)

_ALERT_EXAMPLE: dict[str, JSONValue] = {
    "id": {"value": "9a8b7c6d-5e4f-4a3b-2c1d-0e9f8a7b6c5d"},
    "loan_id": {"value": "a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d"},
    "covenant_id": {"value": "c1d2e3f4-a5b6-4c7d-8e9f-0a1b2c3d4e5f"},
    "covenant_test_id": {"value": "d4c3b2a1-f6e5-4b7a-9c8d-5f4e3d2c1b0a"},
    "severity": "warning",
    "title": "Minimum Current Ratio Warning",
    "message": (
        "Minimum Current Ratio is at warning level with a calculated value of "
        "1.37x against a threshold of ≥ 1.25x (9.8% headroom)."
    ),
    "acknowledged": False,
}

_ACK_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "Acknowledged Alert object",
        "content": {"application/json": {"example": {**_ALERT_EXAMPLE, "acknowledged": True}}},
    },
    404: {"description": "Alert not found"},
}


class ContainerProtocol(Protocol):
    def alert_repo(self) -> AlertRepository: ...


def build_router(get_container: ContainerProtocol) -> APIRouter:
    router = APIRouter(tags=["alerts"])

    def _list_alerts(loan_id: str) -> Response:
        """Alerts raised for a loan, newest first, acknowledged ones included."""
        alerts = get_container.alert_repo().list_for_loan(LoanId(value=loan_id))
        body: list[dict[str, JSONValue]] = [encode_alert(a) for a in alerts]
        return Response(content=dump_json_str(body), media_type="application/json")

    def _acknowledge(alert_id: str) -> Response:
        alert = get_container.alert_repo().acknowledge(AlertId(value=alert_id))
        _log.info(
            "alert_acknowledged",
            extra={"alert_id": alert_id, "loan_id": alert["loan_id"]["value"]},
        )
        return Response(content=dump_json_str(encode_alert(alert)), media_type="application/json")

    router.add_api_route(
        "/loans/{loan_id}/alerts",
        _list_alerts,
        methods=["GET"],
        response_model=None,
        summary="List alerts for loan",
        response_description="Array of Alert objects",
        responses={200: {"content": {"application/json": {"example": [_ALERT_EXAMPLE]}}}},
    )
    router.add_api_route(
        "/alerts/{alert_id}/acknowledge",
        _acknowledge,
        methods=["POST"],
        response_model=None,
        summary="Acknowledge an alert",
        response_description="Acknowledged Alert object",
        responses=_ACK_RESPONSES,
    )
    return router


__all__ = ["build_router"]
