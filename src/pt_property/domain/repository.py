"""Repository Protocol for property lookups."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_property.domain.models import Property


class PropertyRepositoryProtocol(Protocol):
    async def get_by_id(self, db: AsyncSession, property_id: str) -> Property | None: ...
