from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import Response

from platform_core.request_context import install_request_id_middleware, request_id_var


def _app() -> FastAPI:
    app = FastAPI()

    async def _echo(request: Request) -> Response:
        return Response(content=request_id_var.get(), media_type="text/plain")

    app.add_api_route("/echo", _echo, methods=["GET"])
    install_request_id_middleware(app)
    return app


def test_request_id_is_propagated() -> None:
    client = TestClient(_app())
    response = client.get("/echo", headers={"X-Request-ID": "abc-123"})
    assert response.text == "abc-123"
    assert response.headers["x-request-id"] == "abc-123"


def test_request_id_is_generated_when_absent() -> None:
    client = TestClient(_app())
    response = client.get("/echo")
    rid = response.headers["x-request-id"]
    assert len(rid) == 36
    assert response.text == rid


def test_request_id_reset_after_request() -> None:
    client = TestClient(_app())
    client.get("/echo", headers={"X-Request-ID": "xyz"})
    assert request_id_var.get() == ""
