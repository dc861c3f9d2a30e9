"""DiscountCodeRepository - raw SQL persistence implementation.

Codes are stored canonical (upper-cased, trimmed); callers normalize before
lookup. The restricted tier's slug is joined in so eligibility can be
checked against the slugs a buyer selected.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.tk_discount.domain.models import DiscountCode

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    d.id, d.code, d.description, d.discount_type, d.discount_value,
    d.is_active, d.current_uses, d.max_uses, d.valid_from, d.valid_until,
    d.ticket_tier_id, t.slug AS ticket_tier_slug
"""

_GET_BY_CODE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM discount_codes d
    LEFT JOIN ticket_tiers t ON t.id = d.ticket_tier_id
    WHERE d.code = :code
""")

_LOCK_BY_CODE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM discount_codes d
    LEFT JOIN ticket_tiers t ON t.id = d.ticket_tier_id
    WHERE d.code = :code
    FOR UPDATE OF d
""")

# Re-checks the limit at increment time; never trusts the earlier validate read.
_INCREMENT_USES_SQL = text("""
    UPDATE discount_codes
    SET current_uses = current_uses + 1,
        updated_at = NOW()
    WHERE id = :id
      AND (max_uses IS NULL OR current_uses < max_uses)
    RETURNING id, code, description, discount_type, discount_value,
              is_active, current_uses, max_uses, valid_from, valid_until,
              ticket_tier_id, NULL AS ticket_tier_slug
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_code(row: Any) -> DiscountCode:
    return DiscountCode(
        id=str(row.id),
        code=row.code,
        description=row.description,
        discount_type=row.discount_type,
        discount_value=row.discount_value,
        is_active=row.is_active,
        current_uses=row.current_uses,
        max_uses=row.max_uses,
        valid_from=row.valid_from,
        valid_until=row.valid_until,
        ticket_tier_id=str(row.ticket_tier_id) if row.ticket_tier_id else None,
        ticket_tier_slug=row.ticket_tier_slug,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class DiscountCodeRepository:
    """Concrete implementation of DiscountCodeRepositoryProtocol using raw SQL."""

    async def get_by_code(
        self, db: AsyncSession, code: str, for_update: bool = False
    ) -> DiscountCode | None:
        sql = _LOCK_BY_CODE_SQL if for_update else _GET_BY_CODE_SQL
        result = await db.execute(sql, {"code": code})
        row = result.fetchone()
        return _row_to_code(row) if row else None

    async def increment_uses(
        self, db: AsyncSession, code_id: str
    ) -> DiscountCode | None:
        result = await db.execute(_INCREMENT_USES_SQL, {"id": code_id})
        row = result.fetchone()
        return _row_to_code(row) if row else None
