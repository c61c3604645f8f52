# app/models/products.py
import uuid
from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vendor_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(Numeric(12, 2), nullable=False)
    inventory_count = Column(Integer, nullable=False, default=0)
    expiration_date = Column(Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    vendor = relationship("Vendor", back_populates="products")

    __table_args__ = (
        CheckConstraint("inventory_count >= 0",
                        name="ck_products_inventory_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )
