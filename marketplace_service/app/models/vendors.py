# app/models/vendors.py
import uuid
from sqlalchemy import Column, DateTime, String, Text, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # user id issued by the auth collaborator
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    business_name = Column(String(200), nullable=False)
    contact = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    products = relationship("Product", back_populates="vendor",
                            cascade="all, delete-orphan")
    location_status = relationship("VendorLocation", back_populates="vendor",
                                   uselist=False, cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="vendor")
    reviews = relationship("Review", back_populates="vendor")
