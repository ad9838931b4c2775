from sqlalchemy import Column, DateTime, String, func

from storefront.core.database import Base
from storefront.models.shared import UUIDType, generate_uuid


class Store(Base):
    """A tenant: one independent storefront."""

    __tablename__ = "stores"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    support_email = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
