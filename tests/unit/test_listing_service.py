"""Unit tests for ListingApplicationService, listing schemas and repositories."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from pydantic import ValidationError

from src.pt_common.enums import ListingSort, ListingStatus
from src.pt_common.errors import InternalError, ListingNotFoundError
from src.pt_listing.application.schemas import BuyRequest, CreateListingRequest
from src.pt_listing.application.service import ListingApplicationService
from src.pt_listing.domain.models import Listing, ListingView, TokenLock
from src.pt_listing.infrastructure.lock_repository import TokenLockRepository
from src.pt_listing.infrastructure.persistence import ListingRepository
from src.pt_property.domain.models import Property
from src.pt_settlement.domain.models import ListingCancellation, ListingPlacement

SELLER = "aaaaaaaa-0000-4000-8000-000000000001"
VIEWER = "bbbbbbbb-0000-4000-8000-000000000002"
PROPERTY = "cccccccc-0000-4000-8000-000000000003"
_T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _view(idx: int = 0, **kwargs: Any) -> ListingView:
    listing = Listing(
        id=f"lst-{idx}",
        display_code=f"MKT-{idx:06d}",
        seller_id=kwargs.get("seller_id", SELLER),
        property_id=PROPERTY,
        price_per_token=Decimal("2.000000"),
        total_tokens=Decimal("1000"),
        remaining_tokens=kwargs.get("remaining", Decimal("900")),
        min_order_usdt=Decimal("10"),
        max_order_usdt=Decimal("2000"),
        status=kwargs.get("status", "active"),
        created_at=_T0 - timedelta(minutes=idx),
    )
    return ListingView(
        listing=listing,
        property_title="Marina Heights",
        expected_roi=Decimal("8.5"),
        seller_display_code="USR-000123",
    )


def _service(repo: AsyncMock, engine: Any = None) -> ListingApplicationService:
    return ListingApplicationService(repo=repo, engine=engine or AsyncMock())


class TestListListings:
    async def test_excludes_viewer_and_masks_seller(self) -> None:
        repo = AsyncMock()
        repo.list_active.return_value = ([_view()], 1)

        result = await _service(repo).list_listings(
            MagicMock(), VIEWER, None, ListingSort.PRICE_ASC, None, 0
        )

        args = repo.list_active.call_args.args
        assert args[2] == VIEWER
        assert args[3] == "price_asc"
        assert result.total == 1
        item = result.items[0]
        assert item.seller == "USR***23"
        assert item.is_own is False
        assert item.sold_tokens == Decimal("100")

    async def test_default_and_max_limit(self) -> None:
        repo = AsyncMock()
        repo.list_active.return_value = ([], 0)
        svc = _service(repo)

        default_page = await svc.list_listings(
            MagicMock(), None, None, ListingSort.CREATED_AT_DESC, None, 0
        )
        capped_page = await svc.list_listings(
            MagicMock(), None, None, ListingSort.CREATED_AT_DESC, 500, 40
        )

        assert default_page.limit == 20
        assert capped_page.limit == 100
        assert capped_page.offset == 40

    async def test_anonymous_viewer_excludes_nobody(self) -> None:
        repo = AsyncMock()
        repo.list_active.return_value = ([], 0)

        await _service(repo).list_listings(
            MagicMock(), None, PROPERTY, ListingSort.ROI_DESC, 10, 0
        )

        args = repo.list_active.call_args.args
        assert args[1] == PROPERTY
        assert args[2] is None


class TestGetListing:
    async def test_seller_sees_full_code(self) -> None:
        repo = AsyncMock()
        repo.get_view.return_value = _view()

        result = await _service(repo).get_listing(MagicMock(), SELLER, "lst-0")

        assert result.seller == "USR-000123"
        assert result.is_own is True

    async def test_not_found(self) -> None:
        repo = AsyncMock()
        repo.get_view.return_value = None
        with pytest.raises(ListingNotFoundError):
            await _service(repo).get_listing(MagicMock(), None, "nope")


class TestMyListings:
    async def test_cursor_pagination(self) -> None:
        repo = AsyncMock()
        repo.list_by_seller.return_value = [_view(i) for i in range(3)]

        result = await _service(repo).list_my_listings(
            MagicMock(), SELLER, ListingStatus.ACTIVE, None, 2
        )

        args = repo.list_by_seller.call_args.args
        assert args[2] == "active"
        assert args[5] == 3
        assert result.has_more is True
        assert len(result.items) == 2
        assert result.next_cursor is not None

    async def test_single_page(self) -> None:
        repo = AsyncMock()
        repo.list_by_seller.return_value = [_view(0, status="sold", remaining=Decimal("0"))]

        result = await _service(repo).list_my_listings(MagicMock(), SELLER, None, None, 20)

        assert result.has_more is False
        assert result.next_cursor is None
        assert result.items[0].status == "sold"


class TestSettlementDelegation:
    async def test_create_listing_maps_terms_and_rereads_view(self) -> None:
        repo = AsyncMock()
        repo.get_view.return_value = _view(remaining=Decimal("1000"))
        engine = AsyncMock()
        engine.create_listing.return_value = ListingPlacement(
            listing=_view().listing,
            locks=[TokenLock(id="lk-1", holding_id="h1", listing_id="lst-0",
                             locked_tokens=Decimal("1000"))],
            property=Property(id=PROPERTY, title="Marina Heights",
                              expected_roi=Decimal("8.5"), status="active"),
        )
        req = CreateListingRequest(
            property_id=UUID(PROPERTY),
            price_per_token=Decimal("2"),
            total_tokens=Decimal("1000"),
            min_order_usdt=Decimal("10"),
            max_order_usdt=Decimal("2000"),
        )

        result = await _service(repo, engine).create_listing(MagicMock(), SELLER, req)

        terms = engine.create_listing.call_args.args[2]
        assert terms.property_id == PROPERTY
        assert terms.total_tokens == Decimal("1000")
        assert result.listing.is_own is True
        assert result.locks[0].holding_id == "h1"

    async def test_cancel(self) -> None:
        engine = AsyncMock()
        engine.cancel_listing.return_value = ListingCancellation(
            listing=_view(status="cancelled").listing, released_locks=1
        )

        result = await _service(AsyncMock(), engine).cancel(MagicMock(), SELLER, "lst-0")

        assert result.status == "cancelled"
        assert result.remaining_tokens == Decimal("900")
        assert result.released_locks == 1


class TestRequestSchemas:
    def test_min_above_max_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CreateListingRequest(
                property_id=UUID(PROPERTY),
                price_per_token=Decimal("2"),
                total_tokens=Decimal("10"),
                min_order_usdt=Decimal("50"),
                max_order_usdt=Decimal("5"),
            )

    @pytest.mark.parametrize("tokens", ["0", "-1", "1.0000001"])
    def test_buy_tokens_must_be_positive_six_places(self, tokens: str) -> None:
        with pytest.raises(ValidationError):
            BuyRequest(tokens=Decimal(tokens))

    def test_buy_accepts_fraction(self) -> None:
        assert BuyRequest(tokens=Decimal("0.5")).tokens == Decimal("0.5")


class TestRepositories:
    async def test_list_active_uses_sort_statement_and_count(self) -> None:
        db = AsyncMock()
        page = MagicMock()
        page.fetchall.return_value = []
        count = MagicMock()
        count.scalar_one.return_value = 7
        db.execute.side_effect = [page, count]

        views, total = await ListingRepository().list_active(
            db, None, VIEWER, "price_desc", 20, 0
        )

        assert views == []
        assert total == 7
        sql = str(db.execute.call_args_list[0].args[0])
        assert "ORDER BY m.price_per_token DESC" in sql

    async def test_apply_fill_guard_failure_is_internal(self) -> None:
        db = AsyncMock()
        result_mock = MagicMock()
        result_mock.fetchone.return_value = None
        db.execute.return_value = result_mock

        with pytest.raises(InternalError):
            await ListingRepository().apply_fill(db, "lst-0", Decimal("5"))

    async def test_shrink_lock_guard(self) -> None:
        db = AsyncMock()
        result_mock = MagicMock()
        result_mock.fetchone.return_value = None
        db.execute.return_value = result_mock

        with pytest.raises(InternalError):
            await TokenLockRepository().shrink_lock(db, "lk-1", Decimal("5"))

    async def test_delete_for_listing_counts_rows(self) -> None:
        db = AsyncMock()
        result_mock = MagicMock()
        result_mock.rowcount = 3
        db.execute.return_value = result_mock

        assert await TokenLockRepository().delete_for_listing(db, "lst-0") == 3
