# src/tk_order/application/schemas.py
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.tk_order.domain.models import Attendee, Order


class AttendeeIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    country: str = Field("", max_length=100)
    job_title: str = Field("", max_length=200)
    company: str = Field("", max_length=200)
    industry: str = Field("", max_length=100)
    org_type: str = Field("", max_length=100)
    cncf_consent: bool = False
    whatsapp_updates: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    def to_domain(self) -> Attendee:
        return Attendee(**self.model_dump())


class CreateOrderRequest(BaseModel):
    # tier slug -> quantity; zero quantities are ignored
    selections: dict[str, int]
    attendee: AttendeeIn
    discount_code: str | None = Field(None, max_length=64)

    @field_validator("selections")
    @classmethod
    def non_negative(cls, v: dict[str, int]) -> dict[str, int]:
        for slug, qty in v.items():
            if qty < 0:
                raise ValueError(f"quantity for {slug} must be >= 0")
        return v


class AttendeeOut(BaseModel):
    name: str
    email: str
    country: str
    job_title: str
    company: str
    industry: str
    org_type: str


class OrderItemOut(BaseModel):
    id: str
    ticket_tier_id: str
    tier_slug: str | None
    tier_name: str | None
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderDetail(BaseModel):
    id: str
    status: str
    subtotal_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    discount_code: str | None = None
    payment_id: str | None = None
    payment_method: str | None = None
    expires_at: datetime
    paid_at: datetime | None = None
    created_at: datetime | None = None
    items: list[OrderItemOut]
    attendee: AttendeeOut | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderDetail":
        attendee = None
        if order.attendee is not None:
            a = order.attendee
            attendee = AttendeeOut(
                name=a.name,
                email=a.email,
                country=a.country,
                job_title=a.job_title,
                company=a.company,
                industry=a.industry,
                org_type=a.org_type,
            )
        return cls(
            id=order.id,
            status=order.status,
            subtotal_amount=order.subtotal_amount,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            currency=order.currency,
            discount_code=order.discount_code,
            payment_id=order.payment_id,
            payment_method=order.payment_method,
            expires_at=order.expires_at,
            paid_at=order.paid_at,
            created_at=order.created_at,
            items=[
                OrderItemOut(
                    id=i.id,
                    ticket_tier_id=i.ticket_tier_id,
                    tier_slug=i.tier_slug,
                    tier_name=i.tier_name,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    total_price=i.total_price,
                )
                for i in order.items
            ],
            attendee=attendee,
        )

