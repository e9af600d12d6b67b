"""Human-readable display codes backed by PostgreSQL sequences.

Each entity kind owns one sequence, so codes are monotonic per kind
(gaps are possible when a transaction rolls back after nextval()).
"""

from enum import Enum

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession


class CodeKind(str, Enum):
    LISTING = "MKT"
    TRADE = "TRD"
    HOLDING = "INV"
    TRANSACTION = "TXN"
    USER = "USR"


_SEQUENCES: dict[CodeKind, str] = {
    CodeKind.LISTING: "marketplace_listing_display_seq",
    CodeKind.TRADE: "marketplace_trade_display_seq",
    CodeKind.HOLDING: "holding_display_seq",
    CodeKind.TRANSACTION: "transaction_display_seq",
    CodeKind.USER: "user_display_seq",
}

_NEXTVAL_SQL = {
    kind: text(f"SELECT nextval('{seq}') AS value") for kind, seq in _SEQUENCES.items()
}


def format_display_code(kind: CodeKind, value: int) -> str:
    """format_display_code(CodeKind.LISTING, 123) -> 'MKT-000123'."""
    return f"{kind.value}-{value:06d}"


async def next_display_code(db: AsyncSession, kind: CodeKind) -> str:
    result = await db.execute(_NEXTVAL_SQL[kind])
    return format_display_code(kind, int(result.scalar_one()))


def mask_display_code(code: str) -> str:
    """'USR-000123' -> 'USR***23'. Short codes are fully masked."""
    if len(code) <= 5:
        return "***"
    return f"{code[:3]}***{code[-2:]}"
