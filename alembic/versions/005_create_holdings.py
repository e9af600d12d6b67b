"""005: create holdings table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE SEQUENCE IF NOT EXISTS holding_display_seq START 1;")
    op.execute("""
        CREATE TABLE holdings (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            display_code        VARCHAR(32)     NOT NULL,
            user_id             UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            property_id         UUID            NOT NULL REFERENCES properties(id) ON DELETE CASCADE,
            tokens_purchased    NUMERIC(18, 6)  NOT NULL DEFAULT 0,
            amount_usdt         NUMERIC(18, 6)  NOT NULL DEFAULT 0,
            expected_roi        NUMERIC(7, 4),
            status              VARCHAR(32)     NOT NULL DEFAULT 'confirmed',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_holdings_display_code     UNIQUE (display_code),
            CONSTRAINT ck_holdings_tokens_gte_0     CHECK (tokens_purchased >= 0),
            CONSTRAINT ck_holdings_amount_gte_0     CHECK (amount_usdt >= 0),
            CONSTRAINT ck_holdings_status           CHECK (status IN ('confirmed', 'active', 'sold'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_holdings_user_property
            ON holdings (user_id, property_id, created_at, id);
    """)
    op.execute("""
        CREATE TRIGGER trg_holdings_updated_at
            BEFORE UPDATE ON holdings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE holdings IS 'Per-user property token positions (average cost basis)';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS holdings CASCADE;")
    op.execute("DROP SEQUENCE IF EXISTS holding_display_seq;")
