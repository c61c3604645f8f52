from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from uuid import UUID
from datetime import date, datetime
from decimal import Decimal


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    inventory_count: int = Field(0, ge=0)
    expiration_date: Optional[date] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    inventory_count: Optional[int] = Field(None, ge=0)
    expiration_date: Optional[date] = None


class ProductOut(BaseModel):
    id: UUID
    vendor_id: UUID
    name: str
    description: Optional[str] = None
    price: float
    inventory_count: int
    expiration_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductRequest(BaseModel):
    in_stock_only: bool = False


# ---------------- Inventory ledger ----------------
class InventoryCountsRequest(BaseModel):
    product_ids: List[UUID]


class InventoryCountsResponse(BaseModel):
    # ids absent from the map are unknown or deleted products
    counts: Dict[UUID, int]


class InventoryCountUpdate(BaseModel):
    inventory_count: int


class InventoryCountOut(BaseModel):
    product_id: UUID
    inventory_count: int
