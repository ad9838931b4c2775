"""Gift card and ledger transaction models."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)

from storefront.core.database import Base
from storefront.models.shared import UUIDType, generate_uuid


class GiftCardStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


class GiftCard(Base):
    """Stored-value card. Balances are in cents."""

    __tablename__ = "gift_cards"
    __table_args__ = (
        CheckConstraint("current_balance >= 0", name="ck_gift_cards_balance_non_negative"),
        CheckConstraint(
            "current_balance <= original_amount", name="ck_gift_cards_balance_within_original"
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    store_id = Column(
        UUIDType,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code = Column(String(32), nullable=False, unique=True, index=True)
    original_amount = Column(Integer, nullable=False)
    current_balance = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=GiftCardStatus.ACTIVE.value)

    purchased_by_email = Column(String(255), nullable=True)
    purchased_by_name = Column(String(255), nullable=True)
    recipient_email = Column(String(255), nullable=False)
    recipient_name = Column(String(255), nullable=True)
    gift_message = Column(Text, nullable=True)
    order_id = Column(UUIDType, nullable=True)
    payment_session_id = Column(String(255), nullable=True, unique=True)

    send_email = Column(Boolean, nullable=False, default=True)
    email_sent_at = Column(DateTime(timezone=True), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class GiftCardTransaction(Base):
    """One balance movement on a gift card."""

    __tablename__ = "gift_card_transactions"
    __scope_parent__ = (GiftCard, "gift_card_id")

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    gift_card_id = Column(
        UUIDType,
        ForeignKey("gift_cards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order_id = Column(UUIDType, nullable=True)
    amount = Column(Integer, nullable=False)
    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
