"""003: create orders, order_items and attendees

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
        CREATE TABLE orders (
            id                  VARCHAR(64)     PRIMARY KEY,
            status              VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            subtotal_amount     NUMERIC(12, 2)  NOT NULL,
            discount_amount     NUMERIC(12, 2)  NOT NULL DEFAULT 0,
            total_amount        NUMERIC(12, 2)  NOT NULL,
            currency            VARCHAR(3)      NOT NULL DEFAULT 'USD',
            discount_code_id    VARCHAR(64)     REFERENCES discount_codes (id) ON DELETE SET NULL,
            payment_id          VARCHAR(128),
            payment_method      VARCHAR(32),
            payment_result      JSONB,
            expires_at          TIMESTAMPTZ     NOT NULL,
            paid_at             TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_status     CHECK (
                status IN ('PENDING', 'AWAITING_PAYMENT', 'PAID', 'CANCELLED', 'EXPIRED')
            ),
            CONSTRAINT ck_orders_amounts    CHECK (
                subtotal_amount >= 0
                AND discount_amount >= 0
                AND discount_amount <= subtotal_amount
                AND total_amount = subtotal_amount - discount_amount
            ),
            CONSTRAINT ck_orders_paid_at    CHECK (status <> 'PAID' OR paid_at IS NOT NULL)
        );
    """)
    op.execute("""
        CREATE INDEX idx_orders_live_expiry
        ON orders (expires_at)
        WHERE status IN ('PENDING', 'AWAITING_PAYMENT');
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)

    op.execute("""
        CREATE TABLE order_items (
            id              VARCHAR(64)     PRIMARY KEY,
            order_id        VARCHAR(64)     NOT NULL REFERENCES orders (id) ON DELETE CASCADE,
            ticket_tier_id  VARCHAR(64)     NOT NULL REFERENCES ticket_tiers (id),
            quantity        INT             NOT NULL,
            unit_price      NUMERIC(12, 2)  NOT NULL,
            total_price     NUMERIC(12, 2)  NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_order_items_quantity CHECK (quantity > 0),
            CONSTRAINT ck_order_items_total    CHECK (total_price = unit_price * quantity)
        );
    """)
    op.execute("CREATE INDEX idx_order_items_order ON order_items (order_id);")

    op.execute("""
        CREATE TABLE attendees (
            id                  BIGSERIAL       PRIMARY KEY,
            order_id            VARCHAR(64)     NOT NULL REFERENCES orders (id) ON DELETE CASCADE,
            name                VARCHAR(200)    NOT NULL,
            email               VARCHAR(320)    NOT NULL,
            country             VARCHAR(100)    NOT NULL DEFAULT '',
            job_title           VARCHAR(200)    NOT NULL DEFAULT '',
            company             VARCHAR(200)    NOT NULL DEFAULT '',
            industry            VARCHAR(100)    NOT NULL DEFAULT '',
            org_type            VARCHAR(100)    NOT NULL DEFAULT '',
            cncf_consent        BOOLEAN         NOT NULL DEFAULT FALSE,
            whatsapp_updates    BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_attendees_order UNIQUE (order_id)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS attendees CASCADE;")
    op.execute("DROP TABLE IF EXISTS order_items CASCADE;")
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
