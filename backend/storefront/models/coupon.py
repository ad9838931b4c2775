"""Coupon model for order discounts."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from storefront.core.database import Base
from storefront.models.shared import UUIDType, generate_uuid


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(Base):
    """Discount code redeemable against a cart.

    ``discount_value`` is a percentage (1-100) for percentage coupons and an
    amount in cents for fixed coupons.
    """

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("discount_value > 0", name="ck_coupons_discount_value_positive"),
        CheckConstraint("current_uses >= 0", name="ck_coupons_current_uses_non_negative"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    store_id = Column(
        UUIDType,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code = Column(String(64), nullable=False)
    description = Column(Text, nullable=True)

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Integer, nullable=False)
    minimum_order_amount = Column(Integer, nullable=False, default=0)

    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)

    starts_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


Index(
    "uq_coupons_store_id_lower_code",
    Coupon.store_id,
    func.lower(Coupon.code),
    unique=True,
)
