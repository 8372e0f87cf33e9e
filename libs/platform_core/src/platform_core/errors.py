from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from enum import Enum
from typing import Protocol, runtime_checkable

from fastapi.responses import JSONResponse as _FastAPIJSONResponse

from platform_core.json_utils import InvalidJsonError, JSONTypeError
from platform_core.logging import get_logger
from platform_core.request_context import request_id_var as _global_request_id_var


class ErrorCodeBase(str, Enum):
    """Base class for service error codes.

    Each member is both an Enum and a str, so it serializes as its value.
    """

    value: str


class ErrorCode(ErrorCodeBase):
    """Platform error codes for application errors.

    User errors (4xx) and system errors (5xx), sorted by status code.
    """

    INVALID_INPUT = "INVALID_INPUT"  # 400 - validation failed
    INVALID_JSON = "INVALID_JSON"  # 400 - JSON parse error
    NOT_FOUND = "NOT_FOUND"  # 404 - resource not found
    JOB_NOT_FOUND = "JOB_NOT_FOUND"  # 404 - job ID doesn't exist
    CONFLICT = "CONFLICT"  # 409 - resource conflict
    MISSING_INPUT = "MISSING_INPUT"  # 422 - required financial figure absent
    INVALID_THRESHOLD = "INVALID_THRESHOLD"  # 422 - threshold zero or negative
    DIVISION_BY_ZERO = "DIVISION_BY_ZERO"  # 422 - ratio denominator is zero
    UNSUPPORTED_COVENANT_TYPE = "UNSUPPORTED_COVENANT_TYPE"  # 422 - no formula for type
    INVALID_FORMULA = "INVALID_FORMULA"  # 422 - custom formula does not parse

    INTERNAL_ERROR = "INTERNAL_ERROR"  # 500 - unexpected server error
    DATABASE_ERROR = "DATABASE_ERROR"  # 500 - database operation failed
    CONFIG_ERROR = "CONFIG_ERROR"  # 500 - configuration missing/invalid
    JOB_FAILED = "JOB_FAILED"  # 500 - job execution failed
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"  # 503 - service not ready


class AppError(Exception):
    """Application error with a structured code and HTTP status.

    Example:
        >>> raise AppError(ErrorCode.NOT_FOUND, "Covenant not found")
    """

    def __init__(self, code: ErrorCodeBase, message: str, http_status: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status if http_status is not None else _default_status_for(code)


_ERROR_CODE_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.INVALID_JSON: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.JOB_NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.MISSING_INPUT: 422,
    ErrorCode.INVALID_THRESHOLD: 422,
    ErrorCode.DIVISION_BY_ZERO: 422,
    ErrorCode.UNSUPPORTED_COVENANT_TYPE: 422,
    ErrorCode.INVALID_FORMULA: 422,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.DATABASE_ERROR: 500,
    ErrorCode.CONFIG_ERROR: 500,
    ErrorCode.JOB_FAILED: 500,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
}


def _default_status_for(code: ErrorCodeBase) -> int:
    if isinstance(code, ErrorCode):
        return _ERROR_CODE_STATUS.get(code, 500)
    return 500


def _code_value(code: ErrorCodeBase) -> str:
    # members are str instances; this yields "NOT_FOUND", not "ErrorCode.NOT_FOUND"
    result: str = code
    return result


@runtime_checkable
class _URLProto(Protocol):
    @property
    def path(self) -> str: ...


@runtime_checkable
class _RequestProto(Protocol):
    """Minimal protocol for a Starlette request."""

    @property
    def url(self) -> _URLProto: ...

    @property
    def method(self) -> str: ...


@runtime_checkable
class _JSONResponseProto(Protocol):
    """Minimal protocol for a JSON response."""

    @property
    def body(self) -> bytes | memoryview: ...

    @property
    def status_code(self) -> int: ...


_ExceptionHandlerProto = Callable[[_RequestProto, Exception], Awaitable[_JSONResponseProto]]


@runtime_checkable
class _FastAPIAppProto(Protocol):
    """Anything that can register exception handlers (see platform_core.fastapi)."""

    def add_exception_handler(
        self,
        exc_class_or_status_code: int | type[Exception],
        handler: _ExceptionHandlerProto,
    ) -> None: ...


def install_exception_handlers(
    app: _FastAPIAppProto,
    *,
    request_id_var: ContextVar[str] | None = _global_request_id_var,
    logger_name: str = "app",
    log_user_errors: bool = True,
    internal_error_code: ErrorCodeBase = ErrorCode.INTERNAL_ERROR,
) -> None:
    """Install centralized exception handlers with structured logging.

    Registers handlers for:
    - AppError: structured application errors
    - JSONTypeError / InvalidJsonError: malformed request bodies (400)
    - KeyError: lookups of unknown records (404)
    - Exception: everything else (500)

    User errors (4xx) are logged at INFO without traceback. System errors
    (5xx) and unhandled exceptions are logged at ERROR with full traceback.
    Every response body is ``{"code", "message", "request_id"}``.
    """
    logger = get_logger(logger_name)

    def _rid() -> str:
        return request_id_var.get() if request_id_var is not None else ""

    def _respond(
        request: _RequestProto, code: ErrorCodeBase, message: str, http_status: int
    ) -> _JSONResponseProto:
        rid = _rid()
        code_value = _code_value(code)
        fields: dict[str, str] = {
            "error_code": code_value,
            "request_id": rid,
            "error_message": message,
            "path": request.url.path,
            "method": request.method,
        }
        if http_status < 500:
            if log_user_errors:
                logger.info("user_error", extra=fields)
        else:
            logger.error("system_error", extra=fields, exc_info=True)
        body: dict[str, str] = {"code": code_value, "message": message, "request_id": rid}
        return _FastAPIJSONResponse(content=body, status_code=http_status)

    async def _app_error_handler(request: _RequestProto, exc: Exception) -> _JSONResponseProto:
        if not isinstance(exc, AppError):
            return await _unhandled_handler(request, exc)
        return _respond(request, exc.code, exc.message, exc.http_status)

    async def _json_error_handler(request: _RequestProto, exc: Exception) -> _JSONResponseProto:
        return _respond(request, ErrorCode.INVALID_INPUT, str(exc), 400)

    async def _key_error_handler(request: _RequestProto, exc: Exception) -> _JSONResponseProto:
        # KeyError str() wraps the message in quotes
        message = str(exc.args[0]) if exc.args else "Not found"
        return _respond(request, ErrorCode.NOT_FOUND, message, 404)

    async def _unhandled_handler(request: _RequestProto, exc: Exception) -> _JSONResponseProto:
        rid = _rid()
        logger.error(
            "unhandled_exception",
            extra={
                "error_type": type(exc).__name__,
                "request_id": rid,
                "path": request.url.path,
                "method": request.method,
                "error_message": str(exc),
            },
            exc_info=True,
        )
        body: dict[str, str] = {
            "code": _code_value(internal_error_code),
            "message": "Internal server error",
            "request_id": rid,
        }
        return _FastAPIJSONResponse(content=body, status_code=500)

    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(JSONTypeError, _json_error_handler)
    app.add_exception_handler(InvalidJsonError, _json_error_handler)
    app.add_exception_handler(KeyError, _key_error_handler)
    app.add_exception_handler(Exception, _unhandled_handler)


__all__ = [
    "AppError",
    "ErrorCode",
    "ErrorCodeBase",
    "install_exception_handlers",
]
