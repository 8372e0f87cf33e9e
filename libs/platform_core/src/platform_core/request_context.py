from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import Response

# Request id for the current HTTP request; empty outside a request.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "x-request-id"


def _decode_request_id(request: Request) -> str:
    """Use the caller's X-Request-ID when supplied, otherwise mint a UUID4."""
    supplied = request.headers.get(REQUEST_ID_HEADER)
    if supplied is not None and supplied.strip() != "":
        return supplied.strip()
    return str(uuid.uuid4())


def install_request_id_middleware(app: FastAPI) -> None:
    """Bind a request id to every HTTP request and echo it in the response."""

    async def _middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        rid = _decode_request_id(request)
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            request_id_var.reset(token)

    app.middleware("http")(_middleware)


__all__ = [
    "REQUEST_ID_HEADER",
    "install_request_id_middleware",
    "request_id_var",
]
