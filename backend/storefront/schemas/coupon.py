"""Coupon schemas."""

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.models.coupon import DiscountType


class CouponCreate(BaseModel):
    code: str = Field(max_length=64)
    description: str | None = None
    discount_type: DiscountType
    discount_value: int
    minimum_order_amount: int = Field(default=0, ge=0)
    max_uses: int | None = Field(default=None, gt=0)
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool = True


class CouponUpdate(BaseModel):
    code: str | None = Field(default=None, max_length=64)
    description: str | None = None
    discount_type: DiscountType | None = None
    discount_value: int | None = None
    minimum_order_amount: int | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, gt=0)
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def validate_required_fields_not_null(self) -> Self:
        """Fields that always hold a value may be omitted but not set to null."""
        for field in ("code", "discount_type", "discount_value", "minimum_order_amount", "is_active"):
            if field in self.model_fields_set and getattr(self, field) is None:
                msg = f"{field} cannot be null"
                raise ValueError(msg)
        return self


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: str | None = None
    discount_type: str
    discount_value: int
    minimum_order_amount: int
    max_uses: int | None = None
    current_uses: int
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CouponValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    cart_total_cents: int = Field(ge=0)


class AppliedCoupon(BaseModel):
    code: str
    description: str | None = None
    discount_type: str
    discount_value: int
    discount_amount_cents: int


class CouponValidateResponse(BaseModel):
    valid: bool
    error: str | None = None
    coupon: AppliedCoupon | None = None
