"""HoldingApplicationService — the read-only available-tokens query."""

from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.errors import PropertyNotFoundError
from src.pt_holding.domain.repository import HoldingRepositoryProtocol
from src.pt_holding.infrastructure.persistence import HoldingRepository
from src.pt_property.domain.repository import PropertyRepositoryProtocol
from src.pt_property.infrastructure.persistence import PropertyRepository


class AvailableTokensResponse(BaseModel):
    property_id: str
    available_tokens: Decimal


class HoldingApplicationService:
    def __init__(
        self,
        repo: HoldingRepositoryProtocol | None = None,
        properties: PropertyRepositoryProtocol | None = None,
    ) -> None:
        self._repo: HoldingRepositoryProtocol = repo or HoldingRepository()
        self._properties: PropertyRepositoryProtocol = properties or PropertyRepository()

    async def get_available_tokens(
        self, db: AsyncSession, user_id: str, property_id: str
    ) -> AvailableTokensResponse:
        """Open holdings minus what the user's active listings already lock."""
        if await self._properties.get_by_id(db, property_id) is None:
            raise PropertyNotFoundError(property_id)
        available = await self._repo.available_tokens(db, user_id, property_id)
        return AvailableTokensResponse(property_id=property_id, available_tokens=available)
