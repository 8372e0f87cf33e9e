"""Stateless covenant evaluation endpoint."""

from __future__ import annotations

from covenant_domain import CovenantEvaluationError, encode_test_result, evaluate_definition
from fastapi import APIRouter, Request, Response
from platform_core.json_utils import JSONValue, dump_json_str

from ..decode import parse_evaluate_request
from ..errors import evaluation_app_error

_EVALUATE_RESPONSES: dict[int | str, dict[str, JSONValue]] = {
    200: {
        "description": "CovenantTestResult",
        "content": {
            "application/json": {
                "example": {
                    "calculated_value_scaled": 2_289_156,
                    "status": "compliant",
                    "headroom_absolute_scaled": 1_710_843,
                    "headroom_percentage_scaled": 42_771_084,
                }
            }
        },
    },
    422: {"description": "Figures or definition cannot be evaluated"},
}


def build_router() -> APIRouter:
    """Build FastAPI router for stateless evaluation. Nothing is persisted."""
    router = APIRouter(tags=["evaluate"])

    async def _evaluate(request: Request) -> Response:
        """Evaluate one covenant definition against one set of figures.

        Request body:
            definition: {type, operator, threshold_scaled, formula}
            figures: {revenue, ebitda, total_debt, ...}; absent means not supplied

        Errors map to 422 with MISSING_INPUT, INVALID_THRESHOLD,
        DIVISION_BY_ZERO, UNSUPPORTED_COVENANT_TYPE or INVALID_FORMULA.
        """
        body_bytes = await request.body()
        req = parse_evaluate_request(body_bytes)
        try:
            result = evaluate_definition(req["definition"], req["figures"])
        except CovenantEvaluationError as exc:
            raise evaluation_app_error(exc) from exc
        return Response(
            content=dump_json_str(encode_test_result(result)),
            media_type="application/json",
        )

    router.add_api_route(
        "/evaluate",
        _evaluate,
        methods=["POST"],
        response_model=None,
        summary="Evaluate a covenant",
        response_description="CovenantTestResult",
        responses=_EVALUATE_RESPONSES,
    )
    return router


__all__ = ["build_router"]
