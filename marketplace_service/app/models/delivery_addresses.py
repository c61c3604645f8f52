# app/models/delivery_addresses.py
import uuid
from sqlalchemy import Boolean, Column, DateTime, Float, String, Text, Uuid, func
from shared.core.database import Base


class DeliveryAddress(Base):
    __tablename__ = "delivery_addresses"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(String(64), nullable=False, index=True)
    label = Column(String(100), nullable=False)
    address = Column(Text, nullable=False)
    latitude = Column(Float)
    longitude = Column(Float)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
