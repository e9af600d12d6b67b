"""ListingApplicationService — marketplace reads plus the settlement entry points.

Reads go straight to the listing repository. Mutations are delegated to the
SettlementEngine, which owns the transaction.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pt_common.cursor import cursor_decode, cursor_encode
from src.pt_common.enums import ListingSort, ListingStatus
from src.pt_common.errors import ListingNotFoundError
from src.pt_listing.application.schemas import (
    BuyResponse,
    CancelListingResponse,
    CreateListingRequest,
    CreateListingResponse,
    ListingListResponse,
    ListingResponse,
    LockItem,
    MyListingsResponse,
)
from src.pt_listing.domain.repository import ListingRepositoryProtocol
from src.pt_listing.infrastructure.persistence import ListingRepository
from src.pt_settlement.application.service import get_settlement_engine
from src.pt_settlement.domain.models import ListingTerms
from src.pt_settlement.engine.engine import SettlementEngine


class ListingApplicationService:
    def __init__(
        self,
        repo: ListingRepositoryProtocol | None = None,
        engine: SettlementEngine | None = None,
    ) -> None:
        self._repo: ListingRepositoryProtocol = repo or ListingRepository()
        self._engine = engine

    @property
    def engine(self) -> SettlementEngine:
        return self._engine or get_settlement_engine()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_listings(
        self,
        db: AsyncSession,
        viewer_id: str | None,
        property_id: str | None,
        sort: ListingSort,
        limit: int | None,
        offset: int,
    ) -> ListingListResponse:
        """Active listings; the viewer's own listings are left out."""
        limit = min(limit or settings.LISTINGS_DEFAULT_LIMIT, settings.LISTINGS_MAX_LIMIT)
        views, total = await self._repo.list_active(
            db, property_id, viewer_id, sort.value, limit, offset
        )
        return ListingListResponse(
            items=[ListingResponse.from_view(v, viewer_id) for v in views],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def get_listing(
        self, db: AsyncSession, viewer_id: str | None, listing_id: str
    ) -> ListingResponse:
        view = await self._repo.get_view(db, listing_id)
        if view is None:
            raise ListingNotFoundError(listing_id)
        return ListingResponse.from_view(view, viewer_id)

    async def list_my_listings(
        self,
        db: AsyncSession,
        seller_id: str,
        status: ListingStatus | None,
        cursor: str | None,
        limit: int,
    ) -> MyListingsResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        views = await self._repo.list_by_seller(
            db,
            seller_id,
            status.value if status else None,
            cursor_ts,
            cursor_id,
            limit + 1,
        )
        has_more = len(views) > limit
        page = views[:limit]

        next_cursor = None
        if has_more and page and page[-1].listing.created_at is not None:
            next_cursor = cursor_encode(page[-1].listing.created_at, page[-1].listing.id)
        return MyListingsResponse(
            items=[ListingResponse.from_view(v, seller_id) for v in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    async def create_listing(
        self, db: AsyncSession, seller_id: str, req: CreateListingRequest
    ) -> CreateListingResponse:
        placement = await self.engine.create_listing(
            db,
            seller_id,
            ListingTerms(
                property_id=str(req.property_id),
                price_per_token=req.price_per_token,
                total_tokens=req.total_tokens,
                min_order_usdt=req.min_order_usdt,
                max_order_usdt=req.max_order_usdt,
            ),
        )
        view = await self._repo.get_view(db, placement.listing.id)
        if view is None:
            raise ListingNotFoundError(placement.listing.id)
        return CreateListingResponse(
            listing=ListingResponse.from_view(view, seller_id),
            locks=[LockItem.from_domain(lock) for lock in placement.locks],
        )

    async def buy(
        self, db: AsyncSession, buyer_id: str, listing_id: str, tokens: Decimal
    ) -> BuyResponse:
        execution = await self.engine.buy(db, buyer_id, listing_id, tokens)
        return BuyResponse.from_execution(execution)

    async def cancel(
        self, db: AsyncSession, user_id: str, listing_id: str
    ) -> CancelListingResponse:
        result = await self.engine.cancel_listing(db, user_id, listing_id)
        return CancelListingResponse.from_cancellation(result)
