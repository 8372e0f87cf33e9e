"""Loan risk score endpoint."""

from __future__ import annotations

from typing import Protocol

from covenant_domain import LoanId, assess_loan_risk, encode_risk_score
from covenant_persistence import CovenantRepository, CovenantTestRepository
from fastapi import APIRouter, Response
from platform_core.errors import AppError, ErrorCode
from platform_core.json_utils import JSONValue, dump_json_str
from platform_core.logging import get_logger

_log = get_logger(__name__)

_RISK_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "RiskScore for the loan",
        "content": {
            "application/json": {
                "example": {
                    "loan_id": {"value": "a1b2c3d4-e5f6-4a7b-8c9d-0e1f2a3b4c5d"},
                    "score": 44,
                    "level": "medium",
                    "factors": [
                        {
                            "name": "Covenant Breaches",
                            "impact": 20,
                            "description": "1 active breach",
                        },
                    ],
                    "recommendations": [
                        "Immediate attention required for covenant breaches",
                    ],
                }
            }
        },
    },
    404: {"description": "The loan has no covenants"},
}


class ContainerProtocol(Protocol):
    def covenant_repo(self) -> CovenantRepository: ...

    def covenant_test_repo(self) -> CovenantTestRepository: ...


def build_router(get_container: ContainerProtocol) -> APIRouter:
    router = APIRouter(tags=["risk"])

    def _loan_risk(loan_id: str, credit_rating: str | None = None) -> Response:
        """Score a loan from the latest test of each covenant and its trend.

        ``credit_rating`` (for example ``BBB+``) adds the rating factor;
        unknown ratings score as mid-range.
        """
        loan = LoanId(value=loan_id)
        if not get_container.covenant_repo().list_for_loan(loan):
            raise AppError(ErrorCode.NOT_FOUND, f"Loan {loan_id} has no covenants")
        tests = get_container.covenant_test_repo().list_for_loan(loan)
        risk = assess_loan_risk(tests, credit_rating)
        _log.info(
            "loan_risk_scored",
            extra={"loan_id": loan_id, "risk_score": risk["score"], "risk_level": risk["level"]},
        )
        return Response(
            content=dump_json_str(encode_risk_score(loan, risk)),
            media_type="application/json",
        )

    router.add_api_route(
        "/loans/{loan_id}/risk",
        _loan_risk,
        methods=["GET"],
        response_model=None,
        summary="Risk score for loan",
        response_description="RiskScore object",
        responses=_RISK_RESPONSES,
    )
    return router


__all__ = ["build_router"]
