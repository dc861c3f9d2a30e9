"""001: create ticket_tiers and the updated_at trigger function

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_touch_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TABLE ticket_tiers (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT replace(gen_random_uuid()::text, '-', ''),
            slug            VARCHAR(64)     NOT NULL,
            name            VARCHAR(128)    NOT NULL,
            description     TEXT,
            price           NUMERIC(12, 2)  NOT NULL,
            currency        VARCHAR(3)      NOT NULL DEFAULT 'USD',
            status          VARCHAR(20)     NOT NULL DEFAULT 'COMING_SOON',
            total_quantity  INT             NOT NULL,
            sold_quantity   INT             NOT NULL DEFAULT 0,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            sale_starts_at  TIMESTAMPTZ,
            sale_ends_at    TIMESTAMPTZ,
            sort_order      INT             NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_ticket_tiers_slug      UNIQUE (slug),
            CONSTRAINT ck_ticket_tiers_price     CHECK (price >= 0),
            CONSTRAINT ck_ticket_tiers_total     CHECK (total_quantity >= 0),
            CONSTRAINT ck_ticket_tiers_sold      CHECK (sold_quantity >= 0 AND sold_quantity <= total_quantity),
            CONSTRAINT ck_ticket_tiers_window    CHECK (
                sale_starts_at IS NULL OR sale_ends_at IS NULL OR sale_starts_at < sale_ends_at
            ),
            CONSTRAINT ck_ticket_tiers_status    CHECK (status IN ('AVAILABLE', 'SOLD_OUT', 'COMING_SOON'))
        );
    """)
    op.execute("CREATE INDEX idx_ticket_tiers_sort ON ticket_tiers (sort_order, id);")
    op.execute("""
        CREATE TRIGGER trg_ticket_tiers_updated_at
            BEFORE UPDATE ON ticket_tiers
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ticket_tiers CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_touch_updated_at();")
