"""004: seed ticket tiers and launch discount code

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
    op.execute("""
        INSERT INTO ticket_tiers (
            id, slug, name, description, price, currency, status,
            total_quantity, sold_quantity, is_active, sort_order
        ) VALUES
            ('tier-alpha', 'alpha', 'Alpha',
             'Alpha release: limited, cheapest, first to land.',
             2000.00, 'USD', 'SOLD_OUT', 100, 100, TRUE, 0),
            ('tier-beta', 'beta', 'Beta',
             'Beta release: not first, not last, no regrets.',
             2500.00, 'USD', 'AVAILABLE', 200, 0, TRUE, 1),
            ('tier-ga', 'ga', 'GA',
             'General admission at the final price.',
             3000.00, 'USD', 'COMING_SOON', 300, 0, TRUE, 2);
    """)

    # Restricted to the Alpha tier
    op.execute("""
        INSERT INTO discount_codes (
            id, code, description, discount_type, discount_value,
            max_uses, current_uses, ticket_tier_id, is_active
        ) VALUES
            ('code-republic26', 'REPUBLIC26', 'Republic Day Special - 26% off Alpha tier',
             'PERCENTAGE', 26, 100, 0, 'tier-alpha', TRUE);
    """)


def downgrade() -> None:
    op.execute("DELETE FROM discount_codes WHERE id = 'code-republic26';")
    op.execute("DELETE FROM ticket_tiers WHERE id IN ('tier-alpha', 'tier-beta', 'tier-ga');")
