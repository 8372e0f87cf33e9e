"""Map covenant evaluation failures onto HTTP errors."""

from __future__ import annotations

from covenant_domain import CovenantErrorKind, CovenantEvaluationError
from platform_core.errors import AppError, ErrorCode

_KIND_CODES: dict[CovenantErrorKind, ErrorCode] = {
    "missing_input": ErrorCode.MISSING_INPUT,
    "invalid_threshold": ErrorCode.INVALID_THRESHOLD,
    "division_by_zero": ErrorCode.DIVISION_BY_ZERO,
    "unsupported_type": ErrorCode.UNSUPPORTED_COVENANT_TYPE,
    "invalid_formula": ErrorCode.INVALID_FORMULA,
}


def evaluation_app_error(exc: CovenantEvaluationError) -> AppError:
    """Wrap a domain evaluation error as a 422 AppError keeping its message."""
    return AppError(_KIND_CODES[exc.kind], str(exc))


__all__ = ["evaluation_app_error"]
