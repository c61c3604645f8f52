from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class DeliveryAddressBase(BaseModel):
    label: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class DeliveryAddressCreate(DeliveryAddressBase):
    is_default: bool = False


class DeliveryAddressUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, min_length=1)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class DeliveryAddressOut(DeliveryAddressBase):
    id: UUID
    customer_id: str
    is_default: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
