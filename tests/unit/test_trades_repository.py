# tests/unit/test_trades_repository.py
"""Unit tests for TradeRepository and trade history schemas."""
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pt_common.enums import TradeSide
from src.pt_common.errors import TradeNotFoundError
from src.pt_settlement.application.trades_schemas import TradeResponse
from src.pt_settlement.infrastructure.trades_repository import TradeRepository


def _make_trade_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "t1")
    row.display_code = kwargs.get("display_code", "TRD-000001")
    row.listing_id = kwargs.get("listing_id", "lst-1")
    row.buyer_id = kwargs.get("buyer_id", "user-b")
    row.seller_id = kwargs.get("seller_id", "user-s")
    row.property_id = kwargs.get("property_id", "prop-1")
    row.tokens_bought = kwargs.get("tokens_bought", Decimal("100"))
    row.total_usdt = kwargs.get("total_usdt", Decimal("200.000000"))
    row.price_per_token = kwargs.get("price_per_token", Decimal("2.000000"))
    row.buyer_transaction_id = kwargs.get("buyer_transaction_id", "txn-b")
    row.seller_transaction_id = kwargs.get("seller_transaction_id", "txn-s")
    row.metadata = kwargs.get("metadata", '{"listing_display_code": "MKT-000001"}')
    row.certificate_path = kwargs.get("certificate_path")
    row.created_at = kwargs.get("created_at", datetime(2026, 3, 1, tzinfo=UTC))
    row.property_title = kwargs.get("property_title", "Marina Heights")
    return row


def _db_returning(*, one: Any = None, many: list[Any] | None = None) -> AsyncMock:
    db = AsyncMock()
    result_mock = MagicMock()
    result_mock.fetchone.return_value = one
    result_mock.fetchall.return_value = many or []
    db.execute.return_value = result_mock
    return db


@pytest.mark.asyncio
async def test_list_by_user_returns_empty() -> None:
    db = _db_returning()
    views = await TradeRepository().list_by_user(db, "user-1", None, None, None, 21)
    assert views == []
    params = db.execute.call_args.args[1]
    assert params["limit"] == 21
    assert params["property_id"] is None


@pytest.mark.asyncio
async def test_list_by_user_maps_rows_with_title() -> None:
    db = _db_returning(many=[_make_trade_row(), _make_trade_row(id="t2", listing_id=None)])
    views = await TradeRepository().list_by_user(db, "user-b", "prop-1", None, None, 20)
    assert [v.trade.id for v in views] == ["t1", "t2"]
    assert views[0].property_title == "Marina Heights"
    assert views[0].trade.metadata == {"listing_display_code": "MKT-000001"}
    # Listing FK is SET NULL on delete; the trade survives
    assert views[1].trade.listing_id is None


@pytest.mark.asyncio
async def test_list_by_user_sql_matches_either_side() -> None:
    db = _db_returning()
    await TradeRepository().list_by_user(db, "user-1", None, None, None, 20)
    sql = str(db.execute.call_args.args[0])
    assert "t.buyer_id = :user_id OR t.seller_id = :user_id" in sql
    assert "ORDER BY t.created_at DESC, t.id DESC" in sql


@pytest.mark.asyncio
async def test_insert_trade_serialises_metadata_and_code() -> None:
    seq_result = MagicMock()
    seq_result.scalar_one.return_value = 5
    insert_result = MagicMock()
    insert_result.fetchone.return_value = _make_trade_row(display_code="TRD-000005")
    db = AsyncMock()
    db.execute.side_effect = [seq_result, insert_result]

    trade = await TradeRepository().insert_trade(
        db,
        listing_id="lst-1",
        buyer_id="user-b",
        seller_id="user-s",
        property_id="prop-1",
        tokens_bought=Decimal("100"),
        total_usdt=Decimal("200.000000"),
        price_per_token=Decimal("2.000000"),
        buyer_transaction_id="txn-b",
        seller_transaction_id="txn-s",
        metadata={"buyer_holding_id": "h-1"},
    )

    params = db.execute.call_args_list[1].args[1]
    assert params["display_code"] == "TRD-000005"
    assert params["metadata"] == '{"buyer_holding_id": "h-1"}'
    assert trade.display_code == "TRD-000005"


@pytest.mark.asyncio
async def test_get_by_id_missing_returns_none() -> None:
    assert await TradeRepository().get_by_id(_db_returning(), "nope") is None


@pytest.mark.asyncio
async def test_set_certificate_path_missing_trade() -> None:
    with pytest.raises(TradeNotFoundError):
        await TradeRepository().set_certificate_path(_db_returning(), "nope", "/certs/x.pdf")


@pytest.mark.asyncio
async def test_set_certificate_path_returns_updated_trade() -> None:
    db = _db_returning(one=_make_trade_row(certificate_path="/certs/TRD-000001.pdf"))
    trade = await TradeRepository().set_certificate_path(db, "t1", "/certs/TRD-000001.pdf")
    assert trade.certificate_path == "/certs/TRD-000001.pdf"


@pytest.mark.asyncio
async def test_trade_response_side_from_viewer() -> None:
    db = _db_returning(many=[_make_trade_row()])
    (view,) = await TradeRepository().list_by_user(db, "user-b", None, None, None, 20)

    as_buyer = TradeResponse.from_view(view, "user-b")
    as_seller = TradeResponse.from_view(view, "user-s")

    assert as_buyer.side == TradeSide.BUY
    assert as_seller.side == TradeSide.SELL
    assert as_buyer.created_at is not None
    assert as_buyer.created_at.startswith("2026-03-01")
