"""Domain models for pt_holding — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pt_common.enums import OPEN_HOLDING_STATUSES
from src.pt_common.usdt import ZERO, usdt_div


@dataclass
class Holding:
    id: str
    display_code: str
    user_id: str
    property_id: str
    tokens_purchased: Decimal
    amount_usdt: Decimal        # cost basis of the tokens still held
    expected_roi: Decimal | None
    status: str                 # HoldingStatus value
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_HOLDING_STATUSES

    @property
    def average_cost(self) -> Decimal:
        if self.tokens_purchased == 0:
            return ZERO
        return usdt_div(self.amount_usdt, self.tokens_purchased)


@dataclass
class HoldingPosition:
    """A holding plus what active listings already reserve from it."""

    holding: Holding
    locked_tokens: Decimal = ZERO

    @property
    def free_tokens(self) -> Decimal:
        return max(self.holding.tokens_purchased - self.locked_tokens, ZERO)
