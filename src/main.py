"""Property token marketplace API.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from src.pt_common.database import engine
from src.pt_common.errors import AppError
from src.pt_common.redis_client import close_redis, get_redis
from src.pt_common.response import request_error
from src.pt_gateway.api.router import router as auth_router
from src.pt_gateway.middleware.request_log import RequestLogMiddleware
from src.pt_holding.api.router import router as holding_router
from src.pt_listing.api.router import router as listing_router
from src.pt_settlement.api.trades_router import router as trades_router
from src.pt_settlement.application.service import get_settlement_engine
from src.pt_wallet.api.router import router as wallet_router

VERSION = "0.1.0"

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("pt.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Fail fast if PG or Redis is down; build the settlement engine up front."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    get_settlement_engine()
    logger.info("%s %s ready", settings.APP_NAME, VERSION)
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(title=settings.APP_NAME, version=VERSION, lifespan=lifespan)
app.add_middleware(RequestLogMiddleware)

for _router in (auth_router, wallet_router, holding_router, listing_router, trades_router):
    app.include_router(_router, prefix="/api/v1")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    body = request_error(request, exc)
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness plus database and Redis checks; 503 when PG or Redis is unreachable."""
    checks: dict[str, str] = {}
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError):
        logger.warning("health: database unreachable", exc_info=True)
        checks["database"] = "down"
    try:
        await (await get_redis()).ping()
        checks["redis"] = "ok"
    except (RedisError, OSError):
        logger.warning("health: redis unreachable", exc_info=True)
        checks["redis"] = "down"

    healthy = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "version": VERSION, **checks},
    )
