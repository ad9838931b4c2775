"""Normalized payment-processor checkout payloads consumed by order fulfillment."""

from pydantic import BaseModel, Field


class CheckoutLineItem(BaseModel):
    description: str
    quantity: int = Field(default=1, ge=1)
    unit_amount: int = Field(default=0, ge=0)
    product_id: str | None = None
    is_digital: bool = False


class CheckoutCompleted(BaseModel):
    """A paid checkout session as reported by the payment processor."""

    session_id: str
    payment_intent_id: str | None = None
    payment_status: str = "unpaid"
    customer_email: str = ""
    customer_name: str | None = None
    currency: str = "USD"
    amount_subtotal: int = 0
    amount_total: int = 0
    amount_tax: int = 0
    amount_shipping: int = 0
    amount_discount: int = 0
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @property
    def is_gift_card_purchase(self) -> bool:
        return self.metadata.get("type") == "gift_card"
