"""PropertyRepository — read-only; properties are managed outside the marketplace."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_property.domain.models import Property

_GET_PROPERTY_SQL = text("""
    SELECT id, title, expected_roi, status
    FROM properties
    WHERE id = :property_id
""")


def _row_to_property(row: Any) -> Property:
    return Property(
        id=str(row.id),
        title=row.title,
        expected_roi=row.expected_roi,
        status=row.status,
    )


class PropertyRepository:
    async def get_by_id(self, db: AsyncSession, property_id: str) -> Property | None:
        result = await db.execute(_GET_PROPERTY_SQL, {"property_id": property_id})
        row = result.fetchone()
        return _row_to_property(row) if row else None
