"""Async engine, session factory and the PostgreSQL lock helpers settlement uses."""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings

LOCK_NOT_AVAILABLE = "55P03"
DEADLOCK_DETECTED = "40P01"
SERIALIZATION_FAILURE = "40001"

_LOCK_CONFLICTS = frozenset({LOCK_NOT_AVAILABLE, DEADLOCK_DETECTED, SERIALIZATION_FAILURE})


class Base(DeclarativeBase):
    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
)

# rows stay readable after commit
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


async def set_lock_timeout(db: AsyncSession, timeout_ms: int) -> None:
    """Bound row-lock waits for the rest of the current transaction.

    SET LOCAL does not accept bind parameters, so the value is formatted
    from a validated int.
    """
    await db.execute(text(f"SET LOCAL lock_timeout = {int(timeout_ms)}"))


def sqlstate_of(exc: BaseException) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_lock_conflict(exc: BaseException) -> bool:
    """Lock wait timeout, detected deadlock or serialization failure.

    All three abort the transaction with nothing written; resubmitting is safe.
    """
    return sqlstate_of(exc) in _LOCK_CONFLICTS
