from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from shared.core.schemas import CommonQueryParams
from ..enum.marketplace_enum import OrderStatus


class OrderItemRequest(BaseModel):
    product_id: UUID
    quantity: int


class DeliveryAddressSnapshot(BaseModel):
    label: str
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class OrderCreate(BaseModel):
    vendor_id: UUID
    items: List[OrderItemRequest]
    delivery_address: Optional[DeliveryAddressSnapshot] = None
    # snapshot one of the customer's saved addresses instead
    delivery_address_id: Optional[UUID] = None
    idempotency_key: Optional[str] = Field(None, max_length=100)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderRequest(CommonQueryParams):
    status: Optional[OrderStatus] = None


class OrderItemOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    quantity: int
    price: float


class OrderOut(BaseModel):
    id: UUID
    customer_id: str
    vendor_id: UUID
    vendor_name: Optional[str] = None
    status: OrderStatus
    total_amount: float
    order_date: Optional[datetime] = None
    delivery_time: Optional[datetime] = None
    delivery_address: Optional[DeliveryAddressSnapshot] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    items: List[OrderItemOut] = []


class OrderListResponse(BaseModel):
    orders: List[OrderOut]
    total: int
