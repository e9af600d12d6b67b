"""008: create token_locks table

Revision ID: 008
Revises: 007
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE token_locks (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            holding_id      UUID            NOT NULL REFERENCES holdings(id) ON DELETE CASCADE,
            listing_id      UUID            NOT NULL
                REFERENCES marketplace_listings(id) ON DELETE CASCADE,
            locked_tokens   NUMERIC(18, 6)  NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_token_locks_holding_listing UNIQUE (holding_id, listing_id),
            CONSTRAINT ck_token_locks_tokens_gt_0   CHECK (locked_tokens > 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_token_locks_listing ON token_locks (listing_id, created_at, id);"
    )
    op.execute("CREATE INDEX idx_token_locks_holding ON token_locks (holding_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS token_locks CASCADE;")
