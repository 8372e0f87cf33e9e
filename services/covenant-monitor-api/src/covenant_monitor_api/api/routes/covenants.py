"""CRUD endpoints for Covenant resources."""

from __future__ import annotations

from typing import Protocol

from covenant_domain import CovenantId, LoanId, encode_covenant
from covenant_persistence import CovenantRepository
from fastapi import APIRouter, Request, Response, status
from platform_core.json_utils import JSONValue, dump_json_str
from platform_core.logging import get_logger

from ...core import _test_hooks
from ..decode import parse_covenant_request

_log = get_logger(__name__)

# OpenAPI response schemas (no type annotation for FastAPI compatibility)
_COVENANT_EXAMPLE: dict[str, JSONValue] = {
    "id": {"value": "c1d2e3f4-a5b6-4c7d-8e9f-0a1b2c3d4e5f"},
    "loan_id": {"value": "a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d"},
    "name": "Maximum Leverage Ratio",
    "type": "leverage",
    "operator": "max",
    "threshold_scaled": 4_000_000,
    "threshold_step_downs": [{"effective_from_iso": "2026-01-01", "threshold_scaled": 3_500_000}],
    "formula": None,
    "testing_frequency": "quarterly",
    "grace_period_days": 0,
}

_COVENANT_EXAMPLE_WRAPPED: dict[str, JSONValue] = {"example": _COVENANT_EXAMPLE}

_LIST_COVENANTS_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "Array of Covenant objects",
        "content": {"application/json": {"example": [_COVENANT_EXAMPLE]}},
    },
}

_CREATE_COVENANT_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    201: {
        "description": "Created Covenant object",
        "content": {"application/json": _COVENANT_EXAMPLE_WRAPPED},
    },
    400: {"description": "Invalid request body"},
}

_GET_COVENANT_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "Covenant object",
        "content": {"application/json": _COVENANT_EXAMPLE_WRAPPED},
    },
    404: {"description": "Covenant not found"},
}

_DELETE_COVENANT_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    204: {"description": "Covenant deleted with its tests and alerts"},
    404: {"description": "Covenant not found"},
}


class ContainerProtocol(Protocol):
    """Protocol for service container with covenant_repo method."""

    def covenant_repo(self) -> CovenantRepository: ...


def build_router(get_container: ContainerProtocol) -> APIRouter:
    """Build FastAPI router for covenant CRUD operations."""
    router = APIRouter(tags=["covenants"])

    def _list_covenants_for_loan(loan_id: str) -> Response:
        """List all covenants attached to a loan, oldest first."""
        covenants = get_container.covenant_repo().list_for_loan(LoanId(value=loan_id))
        body: list[dict[str, JSONValue]] = [encode_covenant(c) for c in covenants]
        return Response(content=dump_json_str(body), media_type="application/json")

    async def _create_covenant(request: Request) -> Response:
        """Create a covenant for a loan.

        Request body requires: loan_id ({"value": ...}), name, type, operator
        ("max" or "min"), threshold_scaled, testing_frequency. Optional:
        threshold_step_downs, formula (custom type only), grace_period_days.
        """
        body_bytes = await request.body()
        covenant = parse_covenant_request(body_bytes, CovenantId(value=_test_hooks.new_id()))
        get_container.covenant_repo().create(covenant)
        _log.info(
            "covenant_created",
            extra={
                "covenant_id": covenant["id"]["value"],
                "loan_id": covenant["loan_id"]["value"],
            },
        )
        return Response(
            content=dump_json_str(encode_covenant(covenant)),
            media_type="application/json",
            status_code=201,
        )

    def _get_covenant(covenant_id: str) -> Response:
        """Get a covenant by id. Returns 404 if not found."""
        covenant = get_container.covenant_repo().get(CovenantId(value=covenant_id))
        return Response(
            content=dump_json_str(encode_covenant(covenant)),
            media_type="application/json",
        )

    def _delete_covenant(covenant_id: str) -> Response:
        get_container.covenant_repo().delete(CovenantId(value=covenant_id))
        _log.info("covenant_deleted", extra={"covenant_id": covenant_id})
        return Response(status_code=204)

    router.add_api_route(
        "/loans/{loan_id}/covenants",
        _list_covenants_for_loan,
        methods=["GET"],
        response_model=None,
        summary="List covenants for loan",
        response_description="Array of Covenant objects",
        responses=_LIST_COVENANTS_RESPONSES,
    )
    router.add_api_route(
        "/covenants",
        _create_covenant,
        methods=["POST"],
        status_code=status.HTTP_201_CREATED,
        response_model=None,
        summary="Create a covenant",
        description=(
            "Create a covenant for a loan with type, operator, threshold, "
            "optional step-downs and testing frequency."
        ),
        response_description="Created Covenant object",
        responses=_CREATE_COVENANT_RESPONSES,
    )
    router.add_api_route(
        "/covenants/{covenant_id}",
        _get_covenant,
        methods=["GET"],
        response_model=None,
        summary="Get a covenant",
        response_description="Covenant object",
        responses=_GET_COVENANT_RESPONSES,
    )
    router.add_api_route(
        "/covenants/{covenant_id}",
        _delete_covenant,
        methods=["DELETE"],
        response_model=None,
        status_code=204,
        summary="Delete a covenant",
        description="Delete a covenant; its test history and alerts go with it.",
        response_description="No content",
        responses=_DELETE_COVENANT_RESPONSES,
    )

    return router


__all__ = ["build_router"]
