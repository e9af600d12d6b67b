"""006: create wallet_transactions table (append-only audit)

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE SEQUENCE IF NOT EXISTS transaction_display_seq START 1;")
    op.execute("""
        CREATE TABLE wallet_transactions (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            display_code        VARCHAR(32)     NOT NULL,
            user_id             UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            wallet_id           UUID            NOT NULL REFERENCES wallets(id) ON DELETE CASCADE,
            transaction_type    VARCHAR(32)     NOT NULL,
            amount_usdt         NUMERIC(18, 6)  NOT NULL,
            balance_after       NUMERIC(18, 6)  NOT NULL,
            status              VARCHAR(32)     NOT NULL DEFAULT 'completed',
            property_id         UUID            REFERENCES properties(id) ON DELETE SET NULL,
            description         TEXT,
            reference_id        VARCHAR(64),
            metadata            JSONB,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wallet_transactions_display_code UNIQUE (display_code),
            CONSTRAINT ck_wallet_transactions_type
                CHECK (transaction_type IN ('marketplace_buy', 'marketplace_sell')),
            CONSTRAINT ck_wallet_transactions_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_wallet_transactions_user_created
            ON wallet_transactions (user_id, created_at DESC, id DESC);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_transactions CASCADE;")
    op.execute("DROP SEQUENCE IF EXISTS transaction_display_seq;")
