"""Unit tests for the request log middleware."""

import logging

import pytest
from fastapi import FastAPI, HTTPException, Request
from httpx import ASGITransport, AsyncClient

from src.pt_gateway.middleware.request_log import RequestLogMiddleware, _level


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLogMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict[str, str]:
        return {"request_id": request.state.request_id}

    @app.get("/busy")
    async def busy() -> None:
        raise HTTPException(status_code=409, detail="busy")

    return app


@pytest.fixture
async def client() -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=_app()), base_url="http://test") as ac:
        yield ac


class TestRequestId:
    async def test_generated_when_absent(self, client: AsyncClient) -> None:
        resp = await client.get("/echo")
        rid = resp.headers["X-Request-ID"]
        assert rid.startswith("req_")
        assert resp.json()["request_id"] == rid

    async def test_client_id_kept(self, client: AsyncClient) -> None:
        resp = await client.get("/echo", headers={"X-Request-ID": "buy-retry-7"})
        assert resp.headers["X-Request-ID"] == "buy-retry-7"

    async def test_oversized_client_id_replaced(self, client: AsyncClient) -> None:
        resp = await client.get("/echo", headers={"X-Request-ID": "x" * 65})
        assert resp.headers["X-Request-ID"].startswith("req_")


class TestLogLevel:
    @pytest.mark.parametrize(
        ("status_code", "level"),
        [(200, logging.INFO), (404, logging.INFO), (409, logging.WARNING), (500, logging.ERROR)],
    )
    def test_level_by_status(self, status_code: int, level: int) -> None:
        assert _level(status_code) == level

    async def test_conflict_logged_as_warning(
        self, client: AsyncClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="pt.request"):
            await client.get("/busy")

        (record,) = [r for r in caplog.records if r.name == "pt.request"]
        assert record.levelno == logging.WARNING
        assert "/busy" in record.getMessage()
