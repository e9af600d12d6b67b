"""Settlement validation rules: small pure checks that raise AppError.

Each check runs before the first write it guards, under whatever row locks
the engine already holds, so it sees committed state.
"""

from decimal import Decimal

from src.pt_common.errors import (
    InsufficientBalanceError,
    InsufficientSupplyError,
    InsufficientTokensError,
    ListingForbiddenError,
    ListingNotActiveError,
    OrderSizeViolationError,
    SelfTradeError,
)
from src.pt_common.usdt import usdt_mul
from src.pt_listing.domain.models import Listing
from src.pt_settlement.domain.models import ListingTerms
from src.pt_wallet.domain.models import Wallet


def check_positive(name: str, value: Decimal) -> None:
    if value <= 0:
        raise OrderSizeViolationError(f"{name} must be greater than 0, got {value}")


def check_tokens_available(requested: Decimal, available: Decimal) -> None:
    if requested > available:
        raise InsufficientTokensError(requested, available)


def check_listing_terms(terms: ListingTerms, listing_value: Decimal) -> None:
    """The listing must be able to fill at least one minimum-size order."""
    if terms.min_order_usdt > terms.max_order_usdt:
        raise OrderSizeViolationError(
            f"min order {terms.min_order_usdt} exceeds max order {terms.max_order_usdt}"
        )
    if listing_value < terms.min_order_usdt:
        raise OrderSizeViolationError(
            f"listing value {listing_value} USDT is below min order {terms.min_order_usdt} USDT"
        )


def check_listing_active(listing: Listing) -> None:
    if not listing.is_active:
        raise ListingNotActiveError(listing.id, listing.status)


def check_not_self_trade(buyer_id: str, seller_id: str) -> None:
    # UUID comparison is case-insensitive
    if str(buyer_id).lower() == str(seller_id).lower():
        raise SelfTradeError()


def check_supply(listing: Listing, tokens: Decimal) -> None:
    if tokens > listing.remaining_tokens:
        raise InsufficientSupplyError(tokens, listing.remaining_tokens)


def check_order_size(listing: Listing, total_usdt: Decimal) -> None:
    """Both bounds inclusive."""
    if total_usdt < listing.min_order_usdt:
        raise OrderSizeViolationError(
            f"order total {total_usdt} USDT is below min {listing.min_order_usdt} USDT"
        )
    if total_usdt > listing.max_order_usdt:
        raise OrderSizeViolationError(
            f"order total {total_usdt} USDT exceeds max {listing.max_order_usdt} USDT"
        )


def check_balance(wallet: Wallet, total_usdt: Decimal) -> None:
    if wallet.balance_usdt < total_usdt:
        raise InsufficientBalanceError(total_usdt, wallet.balance_usdt)


def check_can_cancel(listing: Listing, user_id: str) -> None:
    if str(listing.seller_id).lower() != str(user_id).lower():
        raise ListingForbiddenError(listing.id)
    check_listing_active(listing)


def order_total(price_per_token: Decimal, tokens: Decimal) -> Decimal:
    """price × tokens, which must be representable at USDT scale.

    A fill whose cost would need more than six decimal places is rejected
    rather than truncated, so total_usdt == price_per_token × tokens_bought
    holds exactly on every trade.
    """
    total = usdt_mul(price_per_token, tokens)
    if total != price_per_token * tokens:
        raise OrderSizeViolationError(
            f"{tokens} tokens at {price_per_token} USDT costs {price_per_token * tokens}, "
            "which is not a whole number of 0.000001 USDT"
        )
    return total
