"""Order and order item models."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import relationship

from storefront.core.database import Base
from storefront.models.shared import UUIDType, generate_uuid


class OrderStatus(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    store_id = Column(
        UUIDType,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    payment_session_id = Column(String(255), nullable=False, unique=True, index=True)
    payment_intent_id = Column(String(255), nullable=True)

    customer_email = Column(String(255), nullable=False, default="")
    customer_name = Column(String(255), nullable=True)

    subtotal = Column(Integer, nullable=False, default=0)
    discount_amount = Column(Integer, nullable=False, default=0)
    tax = Column(Integer, nullable=False, default=0)
    shipping_cost = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")

    coupon_code = Column(String(64), nullable=True)
    coupon_usage_recorded = Column(Boolean, nullable=False, default=False)
    gift_card_id = Column(UUIDType, nullable=True)
    gift_card_amount = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", lazy="selectin")


class OrderItem(Base):
    """A purchased line. Digital lines carry a download capability token."""

    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("download_count >= 0", name="ck_order_items_download_count_non_negative"),
    )
    __scope_parent__ = (Order, "order_id")

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    order_id = Column(
        UUIDType,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(UUIDType, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Integer, nullable=False, default=0)

    download_token = Column(String(64), nullable=True, unique=True, index=True)
    download_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")
