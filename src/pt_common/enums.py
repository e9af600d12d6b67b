"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class ListingStatus(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"
    CANCELLED = "cancelled"


class HoldingStatus(str, Enum):
    """confirmed/active holdings are tradable; sold means fully consumed."""
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    SOLD = "sold"


OPEN_HOLDING_STATUSES: tuple[str, ...] = (
    HoldingStatus.CONFIRMED.value,
    HoldingStatus.ACTIVE.value,
)


class TransactionType(str, Enum):
    MARKETPLACE_BUY = "marketplace_buy"
    MARKETPLACE_SELL = "marketplace_sell"


class TransactionStatus(str, Enum):
    COMPLETED = "completed"


class ListingSort(str, Enum):
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    CREATED_AT_DESC = "created_at_desc"
    CREATED_AT_ASC = "created_at_asc"
    ROI_DESC = "roi_desc"


class TradeSide(str, Enum):
    BUY = "buy"
    SELL = "sell"
