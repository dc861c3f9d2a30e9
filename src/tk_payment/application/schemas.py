"""Pydantic schemas for tk_payment API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.tk_payment.domain.models import PaymentConfirmation, PaymentLink, ReconcileOutcome


class WebhookPayload(BaseModel):
    """Provider webhook body; unknown fields are kept and stored with the payment."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    order_id: str | None = Field(None, alias="orderId")
    transaction_id: str | None = Field(None, alias="transactionId")
    status: str | None = None
    amount: Any = None

    @field_validator("order_id", "transaction_id", "status", mode="before")
    @classmethod
    def number_as_text(cls, v: Any) -> Any:
        # the provider may send these as JSON numbers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def to_confirmation(self) -> PaymentConfirmation:
        return PaymentConfirmation(
            order_id=self.order_id or "",
            provider_transaction_id=self.transaction_id or "",
            status=self.status,
            amount=self.amount,
            raw=self.model_dump(by_alias=True, mode="json"),
        )


class ReconcileResponse(BaseModel):
    order_id: str
    status: str | None
    already_paid: bool

    @classmethod
    def from_outcome(cls, outcome: ReconcileOutcome) -> "ReconcileResponse":
        return cls(
            order_id=outcome.order_id,
            status=outcome.status,
            already_paid=outcome.already_paid,
        )


class PaymentLinkResponse(BaseModel):
    order_id: str
    url: str

    @classmethod
    def from_domain(cls, link: PaymentLink) -> "PaymentLinkResponse":
        return cls(order_id=link.order_id, url=link.url)
