"""TierRepository - concrete implementation of TierRepositoryProtocol.

Counter mutations use atomic PostgreSQL UPDATE ... RETURNING with the
capacity condition in the WHERE clause. A result of 0 rows means the
constraint would have been violated (or the tier does not exist).

Transaction ownership: the CALLER (application service) starts and
commits the transaction. Row locks taken here live until that commit.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_inventory.domain.models import TicketTier

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_TIER_COLUMNS = """
    id, slug, name, description, price, currency, status,
    total_quantity, sold_quantity, is_active,
    sale_starts_at, sale_ends_at, sort_order
"""

_LIST_TIERS_SQL = text(f"""
    SELECT {_TIER_COLUMNS}
    FROM ticket_tiers
    ORDER BY sort_order ASC, id ASC
""")

_GET_BY_SLUG_SQL = text(f"""
    SELECT {_TIER_COLUMNS}
    FROM ticket_tiers
    WHERE slug = :slug
""")

_LOCK_BY_ID_SQL = text(f"""
    SELECT {_TIER_COLUMNS}
    FROM ticket_tiers
    WHERE id = :id
    FOR UPDATE
""")

# Fixed lock order (by id) so two multi-tier orders never deadlock.
_LOCK_BY_SLUGS_SQL = text(f"""
    SELECT {_TIER_COLUMNS}
    FROM ticket_tiers
    WHERE slug = ANY(CAST(:slugs AS TEXT[]))
    ORDER BY id ASC
    FOR UPDATE
""")

_INCREMENT_SOLD_SQL = text(f"""
    UPDATE ticket_tiers
    SET sold_quantity = sold_quantity + :quantity,
        updated_at = NOW()
    WHERE id = :id
      AND sold_quantity + :quantity <= total_quantity
    RETURNING {_TIER_COLUMNS}
""")

_DECREMENT_SOLD_SQL = text(f"""
    UPDATE ticket_tiers
    SET sold_quantity = GREATEST(sold_quantity - :quantity, 0),
        updated_at = NOW()
    WHERE id = :id
    RETURNING {_TIER_COLUMNS}
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_tier(row: Any) -> TicketTier:
    return TicketTier(
        id=str(row.id),
        slug=row.slug,
        name=row.name,
        description=row.description,
        price=row.price,
        currency=row.currency,
        status=row.status,
        total_quantity=row.total_quantity,
        sold_quantity=row.sold_quantity,
        is_active=row.is_active,
        sale_starts_at=row.sale_starts_at,
        sale_ends_at=row.sale_ends_at,
        sort_order=row.sort_order,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TierRepository:
    """Concrete repository - counter updates are atomic at the SQL level."""

    async def list_tiers(self, db: AsyncSession) -> list[TicketTier]:
        result = await db.execute(_LIST_TIERS_SQL)
        return [_row_to_tier(row) for row in result.fetchall()]

    async def get_by_slug(self, db: AsyncSession, slug: str) -> TicketTier | None:
        result = await db.execute(_GET_BY_SLUG_SQL, {"slug": slug})
        row = result.fetchone()
        return _row_to_tier(row) if row else None

    async def lock_by_id(self, db: AsyncSession, tier_id: str) -> TicketTier | None:
        result = await db.execute(_LOCK_BY_ID_SQL, {"id": tier_id})
        row = result.fetchone()
        return _row_to_tier(row) if row else None

    async def lock_by_slugs(
        self, db: AsyncSession, slugs: list[str]
    ) -> list[TicketTier]:
        if not slugs:
            return []
        result = await db.execute(_LOCK_BY_SLUGS_SQL, {"slugs": list(slugs)})
        return [_row_to_tier(row) for row in result.fetchall()]

    async def increment_sold(
        self, db: AsyncSession, tier_id: str, quantity: int
    ) -> TicketTier | None:
        result = await db.execute(
            _INCREMENT_SOLD_SQL, {"id": tier_id, "quantity": quantity}
        )
        row = result.fetchone()
        return _row_to_tier(row) if row else None

    async def decrement_sold(
        self, db: AsyncSession, tier_id: str, quantity: int
    ) -> TicketTier | None:
        result = await db.execute(
            _DECREMENT_SOLD_SQL, {"id": tier_id, "quantity": quantity}
        )
        row = result.fetchone()
        return _row_to_tier(row) if row else None
