from __future__ import annotations

from contextvars import ContextVar
from typing import Protocol

from starlette.requests import Request
from starlette.responses import Response

from platform_core.errors import (
    ErrorCode,
    ErrorCodeBase,
    _ExceptionHandlerProto,
    _FastAPIAppProto,
    _JSONResponseProto,
    install_exception_handlers,
)
from platform_core.request_context import request_id_var as _global_request_id_var


class _StarletteExceptionHandler(Protocol):
    async def __call__(self, request: Request, exc: Exception) -> Response: ...


class _FastAPILike(Protocol):
    def add_exception_handler(
        self,
        exc_class_or_status_code: int | type[Exception],
        handler: _StarletteExceptionHandler,
    ) -> None: ...


class FastAPIAppAdapter:
    """Wraps a FastAPI app so protocol-typed handlers can be registered on it.

    Usage:
        app = FastAPI()
        install_exception_handlers(FastAPIAppAdapter(app))
    """

    def __init__(self, app: _FastAPILike) -> None:
        self._app = app

    def add_exception_handler(
        self,
        exc_class_or_status_code: int | type[Exception],
        handler: _ExceptionHandlerProto,
    ) -> None:
        async def _wrapped(request: Request, exc: Exception) -> Response:
            proto_response: _JSONResponseProto = await handler(request, exc)
            body_bytes = proto_response.body
            if isinstance(body_bytes, memoryview):
                body_bytes = bytes(body_bytes)
            return Response(
                content=body_bytes,
                status_code=proto_response.status_code,
                media_type="application/json",
            )

        self._app.add_exception_handler(exc_class_or_status_code, _wrapped)


def install_exception_handlers_fastapi(
    app: _FastAPILike,
    *,
    request_id_var: ContextVar[str] | None = _global_request_id_var,
    logger_name: str = "app",
    log_user_errors: bool = True,
    internal_error_code: ErrorCodeBase = ErrorCode.INTERNAL_ERROR,
) -> None:
    """Install the platform exception handlers on a FastAPI application."""
    adapter: _FastAPIAppProto = FastAPIAppAdapter(app)
    install_exception_handlers(
        adapter,
        request_id_var=request_id_var,
        logger_name=logger_name,
        log_user_errors=log_user_errors,
        internal_error_code=internal_error_code,
    )


__all__ = [
    "FastAPIAppAdapter",
    "install_exception_handlers_fastapi",
]
