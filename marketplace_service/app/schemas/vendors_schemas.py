from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

# ---------------- Base Vendor ----------------


class VendorBase(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=200)
    contact: Optional[str] = None


# ---------------- Vendor Create/Update ----------------
class VendorCreate(VendorBase):
    pass


class VendorUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact: Optional[str] = None


# ---------------- Vendor Output ----------------
class VendorOut(VendorBase):
    id: UUID
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


# ---------------- Discovery ----------------
class RecentProduct(BaseModel):
    name: str
    price: float


class VendorDistance(BaseModel):
    id: UUID
    business_name: str
    contact: Optional[str] = None
    distance_meters: int = 0

    model_config = {"from_attributes": True}


class VendorSummary(VendorDistance):
    is_active: bool = False
    # 0 also means "no reviews yet"
    avg_rating: float = 0
    review_count: int = 0
    recent_products: List[RecentProduct] = []


class NearbyVendorRequest(BaseModel):
    lat: float
    lng: float
    max_meters: Optional[int] = None


class VendorListRequest(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


# ---------------- Location session ----------------
class VendorLocationUpdate(BaseModel):
    latitude: float
    longitude: float
    is_active: bool = True
    updated_at: Optional[datetime] = None


class VendorOfflineRequest(BaseModel):
    updated_at: Optional[datetime] = None


class VendorStatusOut(BaseModel):
    vendor_id: UUID
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location: Optional[str] = None
    is_active: bool
    updated_at: datetime

    model_config = {"from_attributes": True}
