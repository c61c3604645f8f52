from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime


class ReviewCreate(BaseModel):
    order_id: UUID
    rating: int
    comment: Optional[str] = None


class ReviewOut(BaseModel):
    id: UUID
    order_id: UUID
    vendor_id: UUID
    customer_id: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
