"""Financial period endpoints."""

from __future__ import annotations

from typing import Protocol

from covenant_domain import FinancialPeriodId, LoanId, encode_financial_period
from covenant_persistence import DuplicatePeriodError, FinancialPeriodRepository
from fastapi import APIRouter, Request, Response, status
from platform_core.errors import AppError, ErrorCode
from platform_core.json_utils import JSONValue, dump_json_str
from platform_core.logging import get_logger

from ...core import _test_hooks
from ..decode import parse_financial_period_request

_log = get_logger(__name__)

_PERIOD_EXAMPLE: dict[str, JSONValue] = {
    "id": {"value": "f1e2d3c4-b5a6-4978-8695-a4b3c2d1e0f9"},
    "loan_id": {"value": "a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d"},
    "period_end_iso": "2025-09-30",
    "period_type": "quarterly",
    "revenue": 85_000_000_000_000,
    "ebitda_reported": 12_500_000_000_000,
    "ebitda_adjusted": 13_000_000_000_000,
    "total_debt": 62_400_000_000_000,
    "interest_expense": 4_368_000_000_000,
    "fixed_charges": None,
    "current_assets": 24_500_000_000_000,
    "current_liabilities": 17_850_000_000_000,
    "net_worth": None,
}

_CREATE_PERIOD_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    201: {
        "description": "Created FinancialPeriod object",
        "content": {"application/json": {"example": _PERIOD_EXAMPLE}},
    },
    409: {"description": "The loan already has a period with this end date"},
}

_LIST_PERIODS_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "Array of FinancialPeriod objects, latest first",
        "content": {"application/json": {"example": [_PERIOD_EXAMPLE]}},
    },
}


class ContainerProtocol(Protocol):
    def period_repo(self) -> FinancialPeriodRepository: ...


def build_router(get_container: ContainerProtocol) -> APIRouter:
    """Build FastAPI router for financial periods."""
    router = APIRouter(tags=["financial-periods"])

    async def _create_period(request: Request) -> Response:
        """Store the reported financials of one loan for one period.

        Figures omitted from the body are stored as absent, never as zero.
        Returns 409 when the loan already has a period ending on that date.
        """
        body_bytes = await request.body()
        period = parse_financial_period_request(
            body_bytes, FinancialPeriodId(value=_test_hooks.new_id())
        )
        try:
            get_container.period_repo().create(period)
        except DuplicatePeriodError as exc:
            raise AppError(ErrorCode.CONFLICT, str(exc)) from exc
        _log.info(
            "financial_period_created",
            extra={
                "financial_period_id": period["id"]["value"],
                "loan_id": period["loan_id"]["value"],
                "period_end_iso": period["period_end_iso"],
            },
        )
        return Response(
            content=dump_json_str(encode_financial_period(period)),
            media_type="application/json",
            status_code=201,
        )

    def _list_periods(loan_id: str) -> Response:
        periods = get_container.period_repo().list_for_loan(LoanId(value=loan_id))
        body: list[dict[str, JSONValue]] = [encode_financial_period(p) for p in periods]
        return Response(content=dump_json_str(body), media_type="application/json")

    router.add_api_route(
        "/financial-periods",
        _create_period,
        methods=["POST"],
        status_code=status.HTTP_201_CREATED,
        response_model=None,
        summary="Create a financial period",
        response_description="Created FinancialPeriod object",
        responses=_CREATE_PERIOD_RESPONSES,
    )
    router.add_api_route(
        "/loans/{loan_id}/financial-periods",
        _list_periods,
        methods=["GET"],
        response_model=None,
        summary="List financial periods for loan",
        response_description="Array of FinancialPeriod objects",
        responses=_LIST_PERIODS_RESPONSES,
    )
    return router


__all__ = ["build_router"]
