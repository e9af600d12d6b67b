"""003: create wallets table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallets (
            id                      UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id                 UUID            NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            balance_usdt            NUMERIC(18, 6)  NOT NULL DEFAULT 0,
            total_deposited_usdt    NUMERIC(18, 6)  NOT NULL DEFAULT 0,
            version                 BIGINT          NOT NULL DEFAULT 0,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wallets_user_id           UNIQUE (user_id),
            CONSTRAINT ck_wallets_balance_gte_0     CHECK (balance_usdt >= 0),
            CONSTRAINT ck_wallets_deposited_gte_0   CHECK (total_deposited_usdt >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_wallets_updated_at
            BEFORE UPDATE ON wallets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE wallets IS 'USDT wallets: all amounts NUMERIC(18, 6)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallets CASCADE;")
