"""004: create properties table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Only the columns the marketplace reads; property admin lives elsewhere
    op.execute("""
        CREATE TABLE properties (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            title           VARCHAR(255)    NOT NULL,
            expected_roi    NUMERIC(7, 4)   NOT NULL DEFAULT 0,
            status          VARCHAR(32)     NOT NULL DEFAULT 'active',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_properties_updated_at
            BEFORE UPDATE ON properties
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS properties CASCADE;")
