"""Integration tests for account onboarding (requires running PG + Redis).

Pre-condition: alembic upgrade head
"""

import uuid
from decimal import Decimal
from typing import Any

import pytest
from httpx import AsyncClient, Response

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


def _credentials(prefix: str = "onb") -> dict[str, str]:
    uid = uuid.uuid4().hex[:8]
    return {
        "username": f"{prefix}_{uid}",
        "email": f"{prefix}_{uid}@example.com",
        "password": "TestPass1",
    }


async def _register(client: AsyncClient, creds: dict[str, str]) -> Response:
    return await client.post("/api/v1/auth/register", json=creds)


async def _tokens(client: AsyncClient, creds: dict[str, str]) -> dict[str, Any]:
    await _register(client, creds)
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": creds["username"], "password": creds["password"]},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestSignUp:
    async def test_assigns_user_code_and_opens_wallet(self, client: AsyncClient) -> None:
        creds = _credentials()
        resp = await _register(client, creds)

        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["request_id"]
        user, wallet = body["data"]["user"], body["data"]["wallet"]
        assert user["username"] == creds["username"]
        assert user["display_code"].startswith("USR-")
        assert wallet["user_id"] == user["user_id"]
        assert Decimal(wallet["balance_usdt"]) == 0

    @pytest.mark.parametrize(
        ("field", "code"),
        [("username", 1001), ("email", 1002)],
    )
    async def test_taken_username_or_email(
        self, client: AsyncClient, field: str, code: int
    ) -> None:
        first = _credentials()
        await _register(client, first)
        second = {**_credentials(), field: first[field]}

        resp = await _register(client, second)

        assert resp.status_code == 409
        assert resp.json()["code"] == code

    async def test_weak_password_rejected(self, client: AsyncClient) -> None:
        resp = await _register(client, {**_credentials(), "password": "alllowercase"})
        assert resp.status_code == 422


class TestSignIn:
    async def test_returns_token_pair_and_profile(self, client: AsyncClient) -> None:
        creds = _credentials()
        data = await _tokens(client, creds)

        assert data["token_type"] == "Bearer"
        assert data["expires_in"] > 0
        assert data["access_token"] != data["refresh_token"]
        assert data["user"]["username"] == creds["username"]
        assert data["user"]["display_code"].startswith("USR-")

    @pytest.mark.parametrize("known_user", [True, False])
    async def test_bad_credentials(self, client: AsyncClient, known_user: bool) -> None:
        creds = _credentials()
        if known_user:
            await _register(client, creds)

        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": creds["username"], "password": "WrongPass1"},
        )

        assert resp.status_code == 401
        assert resp.json()["code"] == 1003


class TestTokens:
    async def test_refreshed_token_opens_wallet(self, client: AsyncClient) -> None:
        data = await _tokens(client, _credentials())

        refreshed = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]}
        )
        assert refreshed.status_code == 200
        access = refreshed.json()["data"]["access_token"]

        resp = await client.get("/api/v1/wallet/balance", headers=_bearer(access))
        assert resp.status_code == 200
        assert Decimal(resp.json()["data"]["balance_usdt"]) == 0

    @pytest.mark.parametrize("which", ["access_token", "garbage"])
    async def test_refresh_needs_refresh_token(self, client: AsyncClient, which: str) -> None:
        data = await _tokens(client, _credentials())
        token = data.get(which, "not.a.real.token")

        resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})

        assert resp.status_code == 401
        assert resp.json()["code"] == 1005

    async def test_refresh_token_is_not_an_access_token(self, client: AsyncClient) -> None:
        data = await _tokens(client, _credentials())
        resp = await client.get(
            "/api/v1/marketplace/my-listings", headers=_bearer(data["refresh_token"])
        )
        assert resp.status_code == 401

    async def test_my_trades_needs_a_token(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/marketplace/my-trades")
        assert resp.status_code == 401


class TestHealth:
    async def test_reports_dependencies(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": "0.1.0", "database": "ok", "redis": "ok"}
