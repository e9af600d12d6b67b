"""Marketplace listing REST API.

Browsing is public (a token, if sent, hides the caller's own listings and
unmasks them as seller). Creating, buying and cancelling require a JWT.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.database import get_db_session
from src.pt_common.enums import ListingSort, ListingStatus
from src.pt_common.response import ApiResponse, request_success
from src.pt_gateway.auth.dependencies import get_current_user, get_optional_user
from src.pt_gateway.user.db_models import UserModel
from src.pt_listing.application.schemas import BuyRequest, CreateListingRequest
from src.pt_listing.application.service import ListingApplicationService

router = APIRouter(prefix="/marketplace", tags=["marketplace"])

_service = ListingApplicationService()


def _viewer_id(user: UserModel | None) -> str | None:
    return str(user.id) if user is not None else None


@router.get("/listings")
async def list_listings(
    current_user: Annotated[UserModel | None, Depends(get_optional_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    property_id: UUID | None = Query(None),
    sort: ListingSort = Query(ListingSort.CREATED_AT_DESC),
    limit: int | None = Query(None, ge=1, le=100, description="Items per page"),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    data = await _service.list_listings(
        db,
        _viewer_id(current_user),
        str(property_id) if property_id else None,
        sort,
        limit,
        offset,
    )
    return request_success(request, data)


@router.get("/listings/{listing_id}")
async def get_listing(
    listing_id: UUID,
    current_user: Annotated[UserModel | None, Depends(get_optional_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_listing(db, _viewer_id(current_user), str(listing_id))
    return request_success(request, data)


@router.get("/my-listings")
async def list_my_listings(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: ListingStatus | None = Query(None),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_my_listings(db, str(current_user.id), status, cursor, limit)
    return request_success(request, data)


@router.post("/listings", status_code=201)
async def create_listing(
    body: CreateListingRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_listing(db, str(current_user.id), body)
    return request_success(request, data, message="Listing created")


@router.post("/listings/{listing_id}/buy")
async def buy_listing(
    listing_id: UUID,
    body: BuyRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.buy(db, str(current_user.id), str(listing_id), body.tokens)
    return request_success(request, data, message="Purchase completed")


@router.post("/listings/{listing_id}/cancel")
async def cancel_listing(
    listing_id: UUID,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel(db, str(current_user.id), str(listing_id))
    return request_success(request, data, message="Listing cancelled")
