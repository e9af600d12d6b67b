"""010: seed a demo property

Revision ID: 010
Revises: 009
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op

revision: str = "010"
down_revision: Union[str, None] = "009"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEMO_PROPERTY_ID = "00000000-0000-4000-8000-000000000001"


def upgrade() -> None:
    op.execute(f"""
        INSERT INTO properties (id, title, expected_roi, status)
        VALUES ('{DEMO_PROPERTY_ID}', 'Marina Heights Residence, Unit 1204', 8.5000, 'active');
    """)


def downgrade() -> None:
    op.execute(f"DELETE FROM properties WHERE id = '{DEMO_PROPERTY_ID}';")
