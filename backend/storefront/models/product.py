from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from storefront.core.database import Base
from storefront.models.shared import UUIDType, generate_uuid


class Product(Base):
    """Catalog product. Only the fields the order engine reads are modelled."""

    __tablename__ = "products"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    store_id = Column(
        UUIDType,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price_cents = Column(Integer, nullable=False, default=0)

    is_digital = Column(Boolean, nullable=False, default=False)
    # Storage key of the downloadable asset, not a public URL
    digital_file_url = Column(String(1024), nullable=True)
    download_limit = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
