"""002: create discount_codes

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE discount_codes (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT replace(gen_random_uuid()::text, '-', ''),
            code            VARCHAR(64)     NOT NULL,
            description     TEXT,
            discount_type   VARCHAR(20)     NOT NULL,
            discount_value  NUMERIC(12, 2)  NOT NULL,
            valid_from      TIMESTAMPTZ,
            valid_until     TIMESTAMPTZ,
            max_uses        INT,
            current_uses    INT             NOT NULL DEFAULT 0,
            ticket_tier_id  VARCHAR(64)     REFERENCES ticket_tiers (id) ON DELETE SET NULL,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_discount_codes_code     UNIQUE (code),
            CONSTRAINT ck_discount_codes_upper    CHECK (code = upper(btrim(code))),
            CONSTRAINT ck_discount_codes_type     CHECK (discount_type IN ('PERCENTAGE', 'FIXED')),
            CONSTRAINT ck_discount_codes_value    CHECK (
                discount_value >= 0
                AND (discount_type <> 'PERCENTAGE' OR discount_value <= 100)
            ),
            CONSTRAINT ck_discount_codes_uses     CHECK (
                current_uses >= 0 AND (max_uses IS NULL OR current_uses <= max_uses)
            ),
            CONSTRAINT ck_discount_codes_max_uses CHECK (max_uses IS NULL OR max_uses >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_discount_codes_updated_at
            BEFORE UPDATE ON discount_codes
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS discount_codes CASCADE;")
