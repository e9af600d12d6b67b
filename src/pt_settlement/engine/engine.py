"""SettlementEngine — listing creation, atomic buy execution and cancellation.

Each mutating operation is one database transaction on the request session.
There is no in-process mutex: correctness comes from PostgreSQL row locks
taken in a fixed global order and held until commit:

  buy:     listing -> buyer wallet -> seller wallet -> listing locks -> holdings
  create:  seller open holdings (oldest first) -> new listing / locks
  cancel:  listing -> listing locks

Lock waits are bounded by SET LOCAL lock_timeout. A timeout, a detected
deadlock (two users buying from each other at once take the wallets in
opposite order) or a serialization failure surfaces as ListingBusyError (409)
and the client resubmits.

Events are published only after commit. A failing subscriber never undoes or
fails a committed settlement. Publishing is awaited before the response, so
a stalled Redis adds at most REDIS_SOCKET_TIMEOUT_S per Redis call made by
the subscribers.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pt_common.database import is_lock_conflict, set_lock_timeout, sqlstate_of
from src.pt_common.enums import TransactionType
from src.pt_common.errors import (
    ListingBusyError,
    ListingNotFoundError,
    PropertyNotFoundError,
    TokenLockShortfallError,
    WalletNotFoundError,
)
from src.pt_common.usdt import ZERO, usdt_mul
from src.pt_holding.domain.models import Holding, HoldingPosition
from src.pt_holding.domain.repository import HoldingRepositoryProtocol
from src.pt_holding.infrastructure.persistence import HoldingRepository
from src.pt_listing.domain.allocation import plan_lock_allocation, plan_lock_consumption
from src.pt_listing.domain.models import Listing
from src.pt_listing.domain.repository import (
    ListingRepositoryProtocol,
    TokenLockRepositoryProtocol,
)
from src.pt_listing.infrastructure.lock_repository import TokenLockRepository
from src.pt_listing.infrastructure.persistence import ListingRepository
from src.pt_property.domain.models import Property
from src.pt_property.domain.repository import PropertyRepositoryProtocol
from src.pt_property.infrastructure.persistence import PropertyRepository
from src.pt_settlement.domain import rules
from src.pt_settlement.domain.events import (
    DomainEvent,
    EventPublisher,
    ListingPublished,
    TradeCompleted,
)
from src.pt_settlement.domain.models import (
    ListingCancellation,
    ListingPlacement,
    ListingTerms,
    TradeExecution,
)
from src.pt_settlement.domain.repository import TradeRepositoryProtocol
from src.pt_settlement.infrastructure.trades_repository import TradeRepository
from src.pt_wallet.domain.repository import WalletRepositoryProtocol
from src.pt_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)


class SettlementEngine:
    def __init__(
        self,
        listings: ListingRepositoryProtocol | None = None,
        locks: TokenLockRepositoryProtocol | None = None,
        holdings: HoldingRepositoryProtocol | None = None,
        wallets: WalletRepositoryProtocol | None = None,
        properties: PropertyRepositoryProtocol | None = None,
        trades: TradeRepositoryProtocol | None = None,
        events: EventPublisher | None = None,
        lock_timeout_ms: int | None = None,
    ) -> None:
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()
        self._locks: TokenLockRepositoryProtocol = locks or TokenLockRepository()
        self._holdings: HoldingRepositoryProtocol = holdings or HoldingRepository()
        self._wallets: WalletRepositoryProtocol = wallets or WalletRepository()
        self._properties: PropertyRepositoryProtocol = properties or PropertyRepository()
        self._trades: TradeRepositoryProtocol = trades or TradeRepository()
        self._events = events
        self._lock_timeout_ms = (
            lock_timeout_ms if lock_timeout_ms is not None else settings.LOCK_TIMEOUT_MS
        )

    # ------------------------------------------------------------------
    # Transaction scope
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self, db: AsyncSession, resource_id: str) -> AsyncIterator[None]:
        """Commit on success, roll back and re-raise on any failure.

        The session may already be in an autobegun transaction (the auth
        dependency reads the user row), so commit/rollback are used rather
        than db.begin().
        """
        try:
            await set_lock_timeout(db, self._lock_timeout_ms)
            yield
            await db.commit()
        except DBAPIError as exc:
            await db.rollback()
            if is_lock_conflict(exc):
                logger.warning(
                    "Lock conflict on %s (sqlstate %s, lock_timeout %sms), rejecting",
                    resource_id,
                    sqlstate_of(exc),
                    self._lock_timeout_ms,
                )
                raise ListingBusyError(resource_id) from exc
            raise
        except Exception:
            await db.rollback()
            raise

    # ------------------------------------------------------------------
    # Listing creation
    # ------------------------------------------------------------------

    async def create_listing(
        self, db: AsyncSession, seller_id: str, terms: ListingTerms
    ) -> ListingPlacement:
        """Create an active listing and reserve its tokens, oldest holding first."""
        rules.check_positive("price_per_token", terms.price_per_token)
        rules.check_positive("total_tokens", terms.total_tokens)
        rules.check_positive("min_order_usdt", terms.min_order_usdt)

        async with self._transaction(db, terms.property_id):
            prop = await self._get_property(db, terms.property_id)

            open_holdings = await self._holdings.lock_open_holdings(
                db, seller_id, terms.property_id
            )
            available = await self._holdings.available_tokens(db, seller_id, terms.property_id)
            rules.check_tokens_available(terms.total_tokens, available)
            rules.check_listing_terms(terms, usdt_mul(terms.total_tokens, terms.price_per_token))

            locked = await self._holdings.locked_by_holding(db, seller_id, terms.property_id)
            positions = [HoldingPosition(h, locked.get(h.id, ZERO)) for h in open_holdings]
            allocations, shortfall = plan_lock_allocation(positions, terms.total_tokens)
            if shortfall > 0:
                raise TokenLockShortfallError(terms.total_tokens, terms.total_tokens - shortfall)

            listing = await self._listings.insert(
                db,
                seller_id,
                terms.property_id,
                terms.price_per_token,
                terms.total_tokens,
                terms.min_order_usdt,
                terms.max_order_usdt,
            )
            token_locks = [
                await self._locks.insert_lock(db, a.holding_id, listing.id, a.tokens)
                for a in allocations
            ]

        logger.info(
            "Listing %s created: seller=%s property=%s tokens=%s price=%s locks=%d",
            listing.display_code,
            seller_id,
            prop.id,
            listing.total_tokens,
            listing.price_per_token,
            len(token_locks),
        )
        await self._publish(
            ListingPublished(
                listing_id=listing.id,
                listing_display_code=listing.display_code,
                seller_id=seller_id,
                property_id=prop.id,
                property_title=prop.title,
                total_tokens=listing.total_tokens,
                price_per_token=listing.price_per_token,
            )
        )
        return ListingPlacement(listing=listing, locks=token_locks, property=prop)

    # ------------------------------------------------------------------
    # Buy execution
    # ------------------------------------------------------------------

    async def buy(
        self, db: AsyncSession, buyer_id: str, listing_id: str, tokens: Decimal
    ) -> TradeExecution:
        """Execute a (possibly partial) fill of one listing.

        Either every mutation below commits together or none does.
        """
        rules.check_positive("tokens", tokens)

        async with self._transaction(db, listing_id):
            listing = await self._listings.get_for_update(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            prop = await self._get_property(db, listing.property_id)

            rules.check_listing_active(listing)
            rules.check_not_self_trade(buyer_id, listing.seller_id)
            rules.check_supply(listing, tokens)
            total = rules.order_total(listing.price_per_token, tokens)
            rules.check_order_size(listing, total)

            buyer_wallet = await self._wallets.lock_for_update(db, buyer_id)
            if buyer_wallet is None:
                raise WalletNotFoundError(buyer_id)
            rules.check_balance(buyer_wallet, total)
            if await self._wallets.lock_for_update(db, listing.seller_id) is None:
                raise WalletNotFoundError(listing.seller_id)

            buyer_wallet = await self._wallets.debit(db, buyer_id, total)
            seller_wallet = await self._wallets.credit_sale(db, listing.seller_id, total)

            listing = await self._listings.apply_fill(db, listing.id, tokens)
            seller_holdings = await self._consume_locks(db, listing, tokens)
            buyer_holding = await self._credit_buyer_holding(db, buyer_id, prop, tokens, total)

            txn_metadata = {
                "listing_id": listing.id,
                "tokens": tokens,
                "price_per_token": listing.price_per_token,
            }
            buyer_txn = await self._wallets.insert_transaction(
                db,
                buyer_wallet,
                TransactionType.MARKETPLACE_BUY.value,
                -total,
                prop.id,
                f"Bought {tokens} tokens of {prop.title}",
                listing.display_code,
                txn_metadata,
            )
            seller_txn = await self._wallets.insert_transaction(
                db,
                seller_wallet,
                TransactionType.MARKETPLACE_SELL.value,
                total,
                prop.id,
                f"Sold {tokens} tokens of {prop.title}",
                listing.display_code,
                txn_metadata,
            )

            seller_holding_id = _primary_holding_id(seller_holdings)
            trade = await self._trades.insert_trade(
                db,
                listing_id=listing.id,
                buyer_id=buyer_id,
                seller_id=listing.seller_id,
                property_id=prop.id,
                tokens_bought=tokens,
                total_usdt=total,
                price_per_token=listing.price_per_token,
                buyer_transaction_id=buyer_txn.id,
                seller_transaction_id=seller_txn.id,
                metadata={
                    "listing_display_code": listing.display_code,
                    "buyer_holding_id": buyer_holding.id,
                    "seller_holding_id": seller_holding_id,
                    "seller_holding_ids": [h.id for h in seller_holdings],
                },
            )

        logger.info(
            "Trade %s completed: listing=%s buyer=%s seller=%s tokens=%s total=%s remaining=%s",
            trade.display_code,
            listing.display_code,
            buyer_id,
            listing.seller_id,
            tokens,
            total,
            listing.remaining_tokens,
        )
        await self._publish(
            TradeCompleted(
                trade_id=trade.id,
                trade_display_code=trade.display_code,
                listing_id=listing.id,
                buyer_id=buyer_id,
                seller_id=listing.seller_id,
                property_id=prop.id,
                property_title=prop.title,
                tokens_bought=tokens,
                total_usdt=total,
                buyer_holding_id=buyer_holding.id,
                seller_holding_id=seller_holding_id,
            )
        )
        return TradeExecution(
            trade=trade,
            listing=listing,
            property=prop,
            buyer_wallet=buyer_wallet,
            buyer_holding=buyer_holding,
            seller_holding_id=seller_holding_id,
        )

    async def _consume_locks(
        self, db: AsyncSession, listing: Listing, tokens: Decimal
    ) -> list[Holding]:
        """Draw the sold tokens out of the listing's locks and seller holdings."""
        token_locks = await self._locks.list_for_listing_for_update(db, listing.id)
        deductions, uncovered = plan_lock_consumption(token_locks, tokens)
        if uncovered > 0:
            raise TokenLockShortfallError(tokens, tokens - uncovered)

        touched: list[Holding] = []
        for deduction in deductions:
            if deduction.empties_lock:
                await self._locks.delete_lock(db, deduction.lock_id)
            else:
                await self._locks.shrink_lock(db, deduction.lock_id, deduction.tokens)
            touched.append(
                await self._holdings.release_tokens(db, deduction.holding_id, deduction.tokens)
            )
        return touched

    async def _credit_buyer_holding(
        self, db: AsyncSession, buyer_id: str, prop: Property, tokens: Decimal, total: Decimal
    ) -> Holding:
        existing = await self._holdings.find_open_holding_for_update(db, buyer_id, prop.id)
        if existing is not None:
            return await self._holdings.add_tokens(db, existing.id, tokens, total)
        return await self._holdings.create_holding(
            db, buyer_id, prop.id, tokens, total, prop.expected_roi
        )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    async def cancel_listing(
        self, db: AsyncSession, user_id: str, listing_id: str
    ) -> ListingCancellation:
        async with self._transaction(db, listing_id):
            listing = await self._listings.get_for_update(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            rules.check_can_cancel(listing, user_id)

            released = await self._locks.delete_for_listing(db, listing.id)
            listing = await self._listings.mark_cancelled(db, listing.id)

        logger.info(
            "Listing %s cancelled by %s: %d locks released, %s tokens unsold",
            listing.display_code,
            user_id,
            released,
            listing.remaining_tokens,
        )
        return ListingCancellation(listing=listing, released_locks=released)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_property(self, db: AsyncSession, property_id: str) -> Property:
        prop = await self._properties.get_by_id(db, property_id)
        if prop is None:
            raise PropertyNotFoundError(property_id)
        return prop

    async def _publish(self, event: DomainEvent) -> None:
        if self._events is None:
            return
        try:
            await self._events.publish(event)
        except Exception:
            logger.exception("Post-commit publish of %s failed", event.event_type)


def _primary_holding_id(holdings: list[Holding]) -> str | None:
    """The first seller holding that still has tokens, else the first touched."""
    for holding in holdings:
        if holding.tokens_purchased > 0:
            return holding.id
    return holdings[0].id if holdings else None
