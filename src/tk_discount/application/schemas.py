"""Pydantic schemas for tk_discount API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.tk_discount.domain.models import DiscountCalculation, ValidatedDiscount


class DiscountPreviewRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    tier_slugs: list[str] = Field(default_factory=list)
    subtotal: Decimal | None = Field(None, ge=0, decimal_places=2)


class DiscountPreviewResponse(BaseModel):
    code: str
    discount_type: str
    discount_value: Decimal
    description: str | None
    restricted_tier_slug: str | None
    subtotal: Decimal | None = None
    discount_amount: Decimal | None = None
    total: Decimal | None = None

    @classmethod
    def from_result(
        cls, discount: ValidatedDiscount, calc: DiscountCalculation | None
    ) -> "DiscountPreviewResponse":
        return cls(
            code=discount.code,
            discount_type=discount.discount_type,
            discount_value=discount.discount_value,
            description=discount.description,
            restricted_tier_slug=discount.restricted_tier_slug,
            subtotal=calc.subtotal if calc else None,
            discount_amount=calc.discount_amount if calc else None,
            total=calc.total if calc else None,
        )
