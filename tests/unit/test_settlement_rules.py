"""Unit tests for settlement validation rules."""

from decimal import Decimal

import pytest

from src.pt_common.errors import (
    InsufficientBalanceError,
    InsufficientSupplyError,
    InsufficientTokensError,
    ListingForbiddenError,
    ListingNotActiveError,
    OrderSizeViolationError,
    SelfTradeError,
)
from src.pt_listing.domain.models import Listing
from src.pt_settlement.domain import rules
from src.pt_settlement.domain.models import ListingTerms
from src.pt_wallet.domain.models import Wallet

SELLER = "aaaaaaaa-0000-4000-8000-000000000001"
BUYER = "bbbbbbbb-0000-4000-8000-000000000002"


def _listing(status: str = "active", remaining: str = "1000") -> Listing:
    return Listing(
        id="lst-1",
        display_code="MKT-000001",
        seller_id=SELLER,
        property_id="prop-1",
        price_per_token=Decimal("2.000000"),
        total_tokens=Decimal("1000"),
        remaining_tokens=Decimal(remaining),
        min_order_usdt=Decimal("10.000000"),
        max_order_usdt=Decimal("2000.000000"),
        status=status,
    )


def _terms(min_order: str = "10", max_order: str = "2000") -> ListingTerms:
    return ListingTerms(
        property_id="prop-1",
        price_per_token=Decimal("2"),
        total_tokens=Decimal("1000"),
        min_order_usdt=Decimal(min_order),
        max_order_usdt=Decimal(max_order),
    )


def _wallet(balance: str) -> Wallet:
    return Wallet(
        id="w1",
        user_id=BUYER,
        balance_usdt=Decimal(balance),
        total_deposited_usdt=Decimal(balance),
        version=0,
    )


class TestListingTerms:
    def test_valid_terms_pass(self) -> None:
        rules.check_listing_terms(_terms(), Decimal("2000"))

    def test_min_above_max(self) -> None:
        with pytest.raises(OrderSizeViolationError):
            rules.check_listing_terms(_terms(min_order="500", max_order="100"), Decimal("2000"))

    def test_listing_value_below_min(self) -> None:
        with pytest.raises(OrderSizeViolationError):
            rules.check_listing_terms(_terms(min_order="2500", max_order="3000"), Decimal("2000"))

    def test_non_positive_rejected(self) -> None:
        with pytest.raises(OrderSizeViolationError):
            rules.check_positive("tokens", Decimal("0"))

    def test_tokens_available(self) -> None:
        rules.check_tokens_available(Decimal("500"), Decimal("500"))
        with pytest.raises(InsufficientTokensError):
            rules.check_tokens_available(Decimal("600"), Decimal("500"))


class TestBuyChecks:
    @pytest.mark.parametrize("status", ["sold", "cancelled"])
    def test_inactive_listing(self, status: str) -> None:
        with pytest.raises(ListingNotActiveError):
            rules.check_listing_active(_listing(status=status))

    def test_self_trade_is_case_insensitive(self) -> None:
        with pytest.raises(SelfTradeError):
            rules.check_not_self_trade(SELLER.upper(), SELLER)
        rules.check_not_self_trade(BUYER, SELLER)

    def test_supply(self) -> None:
        rules.check_supply(_listing(remaining="900"), Decimal("900"))
        with pytest.raises(InsufficientSupplyError):
            rules.check_supply(_listing(remaining="900"), Decimal("950"))

    @pytest.mark.parametrize("total", ["10.000000", "2000.000000"])
    def test_order_size_bounds_inclusive(self, total: str) -> None:
        rules.check_order_size(_listing(), Decimal(total))

    @pytest.mark.parametrize("total", ["9.999999", "2000.000001"])
    def test_order_size_one_unit_outside(self, total: str) -> None:
        with pytest.raises(OrderSizeViolationError):
            rules.check_order_size(_listing(), Decimal(total))

    @pytest.mark.parametrize(
        ("price", "tokens", "total"),
        [
            ("2.000000", "100", "200.000000"),
            ("1.500000", "0.000002", "0.000003"),
            ("0.333333", "3", "0.999999"),
        ],
    )
    def test_order_total_exact(self, price: str, tokens: str, total: str) -> None:
        assert rules.order_total(Decimal(price), Decimal(tokens)) == Decimal(total)

    @pytest.mark.parametrize(("price", "tokens"), [("1.5", "0.000001"), ("0.333333", "0.5")])
    def test_order_total_below_usdt_scale_rejected(self, price: str, tokens: str) -> None:
        with pytest.raises(OrderSizeViolationError):
            rules.order_total(Decimal(price), Decimal(tokens))

    def test_balance(self) -> None:
        rules.check_balance(_wallet("200"), Decimal("200"))
        with pytest.raises(InsufficientBalanceError):
            rules.check_balance(_wallet("199.999999"), Decimal("200"))


class TestCancelChecks:
    def test_non_seller_forbidden_even_if_inactive(self) -> None:
        with pytest.raises(ListingForbiddenError):
            rules.check_can_cancel(_listing(status="sold", remaining="0"), BUYER)

    def test_seller_cannot_cancel_inactive(self) -> None:
        with pytest.raises(ListingNotActiveError):
            rules.check_can_cancel(_listing(status="cancelled"), SELLER)

    def test_seller_can_cancel_active(self) -> None:
        rules.check_can_cancel(_listing(), SELLER)
