"""009: create marketplace_trades table

Revision ID: 009
Revises: 008
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "009"
down_revision: Union[str, None] = "008"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE SEQUENCE IF NOT EXISTS marketplace_trade_display_seq START 1;")
    op.execute("""
        CREATE TABLE marketplace_trades (
            id                      UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            display_code            VARCHAR(32)     NOT NULL,
            listing_id              UUID
                REFERENCES marketplace_listings(id) ON DELETE SET NULL,
            buyer_id                UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            seller_id               UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            property_id             UUID            NOT NULL
                REFERENCES properties(id) ON DELETE CASCADE,
            tokens_bought           NUMERIC(18, 6)  NOT NULL,
            total_usdt              NUMERIC(18, 6)  NOT NULL,
            price_per_token         NUMERIC(18, 6)  NOT NULL,
            buyer_transaction_id    UUID,
            seller_transaction_id   UUID,
            metadata                JSONB,
            certificate_path        VARCHAR(512),
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_marketplace_trades_display_code UNIQUE (display_code),
            CONSTRAINT ck_trades_tokens_gt_0    CHECK (tokens_bought > 0),
            CONSTRAINT ck_trades_total_gt_0     CHECK (total_usdt > 0),
            CONSTRAINT ck_trades_price_gt_0     CHECK (price_per_token > 0),
            CONSTRAINT ck_trades_no_self_trade  CHECK (buyer_id <> seller_id)
        );
    """)
    op.execute("""
        CREATE INDEX idx_trades_buyer_created
            ON marketplace_trades (buyer_id, created_at DESC, id DESC);
    """)
    op.execute("""
        CREATE INDEX idx_trades_seller_created
            ON marketplace_trades (seller_id, created_at DESC, id DESC);
    """)
    op.execute("CREATE INDEX idx_trades_listing ON marketplace_trades (listing_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS marketplace_trades CASCADE;")
    op.execute("DROP SEQUENCE IF EXISTS marketplace_trade_display_seq;")
