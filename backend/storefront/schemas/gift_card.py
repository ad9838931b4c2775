"""Gift card schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.models.gift_card import GiftCardStatus


class GiftCardIssueRequest(BaseModel):
    amount: int = Field(gt=0)
    recipient_email: EmailStr
    recipient_name: str | None = Field(default=None, max_length=255)
    note: str | None = None
    send_email: bool = True


class GiftCardStatusUpdate(BaseModel):
    status: GiftCardStatus


class GiftCardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    original_amount: int
    current_balance: int
    status: str
    purchased_by_email: str | None = None
    purchased_by_name: str | None = None
    recipient_email: str
    recipient_name: str | None = None
    gift_message: str | None = None
    order_id: UUID | None = None
    send_email: bool = True
    email_sent_at: datetime | None = None
    last_used_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class GiftCardTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gift_card_id: UUID
    order_id: UUID | None = None
    amount: int
    balance_before: int
    balance_after: int
    created_at: datetime


class GiftCardDetailResponse(BaseModel):
    gift_card: GiftCardResponse
    transactions: list[GiftCardTransactionResponse]


class GiftCardValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    cart_total_cents: int = Field(ge=0)


class GiftCardBalance(BaseModel):
    code: str
    balance: int
    balance_formatted: str
    applicable_amount: int
    applicable_amount_formatted: str


class GiftCardValidateResponse(BaseModel):
    valid: bool
    error: str | None = None
    gift_card: GiftCardBalance | None = None
