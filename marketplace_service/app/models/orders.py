# app/models/orders.py
import uuid
from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Numeric, String, UniqueConstraint, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from shared.core.database import Base
from ..enum.marketplace_enum import OrderStatus


class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(String(64), nullable=False, index=True)
    vendor_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status = Column(
        Enum(OrderStatus, name="order_status", native_enum=False,
             values_callable=lambda e: [s.value for s in e]),
        nullable=False,
        default=OrderStatus.PLACED
    )
    total_amount = Column(Numeric(12, 2), nullable=False)
    order_date = Column(DateTime(timezone=True), server_default=func.now())
    delivery_time = Column(DateTime(timezone=True))
    # snapshot {label, address, latitude, longitude} taken at checkout
    delivery_address = Column(JSON().with_variant(JSONB(), "postgresql"))
    idempotency_key = Column(String(100))

    vendor = relationship("Vendor", back_populates="orders")
    items = relationship("OrderItem", back_populates="order",
                         cascade="all, delete-orphan")
    payment = relationship("Payment", back_populates="order",
                           uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("customer_id", "idempotency_key",
                         name="uq_orders_customer_idempotency_key"),
    )
