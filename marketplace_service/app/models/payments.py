# app/models/payments.py
import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Uuid, func
from sqlalchemy.orm import relationship
from shared.core.database import Base
from ..enum.marketplace_enum import PaymentMethod, PaymentStatus


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    payment_method = Column(String(32), nullable=False,
                            default=PaymentMethod.CASH_ON_DELIVERY.value)
    status = Column(String(16), nullable=False,
                    default=PaymentStatus.PENDING.value)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="payment")
