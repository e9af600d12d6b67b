"""007: create marketplace_listings table

Revision ID: 007
Revises: 006
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE SEQUENCE IF NOT EXISTS marketplace_listing_display_seq START 1;")
    op.execute("""
        CREATE TABLE marketplace_listings (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            display_code        VARCHAR(32)     NOT NULL,
            seller_id           UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            property_id         UUID            NOT NULL REFERENCES properties(id) ON DELETE CASCADE,
            price_per_token     NUMERIC(18, 6)  NOT NULL,
            total_tokens        NUMERIC(18, 6)  NOT NULL,
            remaining_tokens    NUMERIC(18, 6)  NOT NULL,
            min_order_usdt      NUMERIC(18, 6)  NOT NULL,
            max_order_usdt      NUMERIC(18, 6)  NOT NULL,
            status              VARCHAR(32)     NOT NULL DEFAULT 'active',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_marketplace_listings_display_code UNIQUE (display_code),
            CONSTRAINT ck_listings_price_gt_0       CHECK (price_per_token > 0),
            CONSTRAINT ck_listings_total_gt_0       CHECK (total_tokens > 0),
            CONSTRAINT ck_listings_remaining_range
                CHECK (remaining_tokens >= 0 AND remaining_tokens <= total_tokens),
            CONSTRAINT ck_listings_min_gt_0         CHECK (min_order_usdt > 0),
            CONSTRAINT ck_listings_max_gte_min      CHECK (max_order_usdt >= min_order_usdt),
            CONSTRAINT ck_listings_status
                CHECK (status IN ('active', 'sold', 'cancelled')),
            CONSTRAINT ck_listings_sold_iff_empty
                CHECK ((status = 'sold') = (remaining_tokens = 0) OR status = 'cancelled')
        );
    """)
    op.execute("""
        CREATE INDEX idx_listings_active_property
            ON marketplace_listings (property_id, created_at DESC)
            WHERE status = 'active';
    """)
    op.execute("""
        CREATE INDEX idx_listings_seller_created
            ON marketplace_listings (seller_id, created_at DESC, id DESC);
    """)
    op.execute("""
        CREATE TRIGGER trg_marketplace_listings_updated_at
            BEFORE UPDATE ON marketplace_listings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS marketplace_listings CASCADE;")
    op.execute("DROP SEQUENCE IF EXISTS marketplace_listing_display_seq;")
