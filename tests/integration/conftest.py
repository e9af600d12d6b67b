"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Pre-condition: PostgreSQL + Redis running, `alembic upgrade head` applied.
"""

import uuid
from collections.abc import Awaitable, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from tests.integration.seed import MarketUser


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def make_user(client: AsyncClient) -> Callable[[str], Awaitable[MarketUser]]:
    """Factory: register + login a fresh user, return id and auth headers."""

    async def _make(prefix: str = "mkt") -> MarketUser:
        uid = uuid.uuid4().hex[:8]
        creds = {
            "username": f"{prefix}_{uid}",
            "email": f"{prefix}_{uid}@example.com",
            "password": "TestPass1",
        }
        await client.post("/api/v1/auth/register", json=creds)
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": creds["username"], "password": creds["password"]},
        )
        data = resp.json()["data"]
        return MarketUser(
            user_id=data["user"]["user_id"],
            username=creds["username"],
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )

    return _make
