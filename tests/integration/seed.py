"""Raw-SQL seeding helpers for integration tests.

Holdings and wallet balances come from the primary market and deposits,
which this service does not expose, so tests write them directly.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import text

from src.pt_common.database import async_session_factory

DEMO_PROPERTY_ID = "00000000-0000-4000-8000-000000000001"

_SEED_HOLDING_SQL = text("""
    INSERT INTO holdings
        (display_code, user_id, property_id, tokens_purchased, amount_usdt, expected_roi, status)
    VALUES
        ('INV-' || LPAD(nextval('holding_display_seq')::text, 6, '0'),
         :user_id, :property_id, :tokens, :amount, 8.5, 'confirmed')
""")

_FUND_WALLET_SQL = text("""
    UPDATE wallets
    SET balance_usdt = balance_usdt + :amount,
        total_deposited_usdt = total_deposited_usdt + :amount
    WHERE user_id = :user_id
""")


@dataclass
class MarketUser:
    user_id: str
    username: str
    headers: dict[str, str]


async def seed_holding(user_id: str, tokens: str, amount: str) -> None:
    """Give a user an open holding in the demo property."""
    async with async_session_factory() as session:
        await session.execute(
            _SEED_HOLDING_SQL,
            {
                "user_id": user_id,
                "property_id": DEMO_PROPERTY_ID,
                "tokens": Decimal(tokens),
                "amount": Decimal(amount),
            },
        )
        await session.commit()


async def fund_wallet(user_id: str, amount: str) -> None:
    async with async_session_factory() as session:
        await session.execute(_FUND_WALLET_SQL, {"user_id": user_id, "amount": Decimal(amount)})
        await session.commit()
