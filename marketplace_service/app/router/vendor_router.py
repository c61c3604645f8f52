# app/router/vendor_router.py
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shared.core.database import get_marketplace_db as get_db
from shared.core.schemas import UserToken
from shared.core.auth import allow_vendor, validate_current_token
from shared.core.exceptions import NotFound
from ..schemas.products_schemas import ProductOut, ProductRequest
from ..schemas.vendors_schemas import (
    NearbyVendorRequest,
    VendorCreate,
    VendorListRequest,
    VendorLocationUpdate,
    VendorOfflineRequest,
    VendorOut,
    VendorStatusOut,
    VendorSummary,
    VendorUpdate,
)
from ..crud import vendors_crud as crud
from ..crud import vendor_locations_crud, products_crud

router = APIRouter(prefix="/api/vendors",
                   tags=["vendors"], dependencies=[Depends(validate_current_token)])

# ---------------- Discovery ----------------


@router.get("/nearby", response_model=List[VendorSummary])
def nearby_vendors(
    params: NearbyVendorRequest = Depends(),
    db: Session = Depends(get_db)
):
    return crud.find_nearby_vendor_summaries(db, params.lat, params.lng, params.max_meters)


@router.get("/all", response_model=List[VendorSummary])
def all_vendors(
    params: VendorListRequest = Depends(),
    db: Session = Depends(get_db)
):
    return crud.get_vendor_summaries(db, params.lat, params.lng)

# ---------------- Own profile ----------------


@router.post("/", response_model=VendorOut)
def create_vendor(
    vendor: VendorCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    return crud.create_vendor(db, current_user, vendor)


@router.get("/me", response_model=VendorOut)
def my_vendor(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    return crud.require_vendor_for_user(db, current_user)


@router.put("/me", response_model=VendorOut)
def update_my_vendor(
    vendor: VendorUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    db_vendor = crud.require_vendor_for_user(db, current_user)
    return crud.update_vendor(db, db_vendor, vendor)

# ---------------- Location session ----------------


@router.put("/me/location", response_model=VendorStatusOut)
def update_my_location(
    payload: VendorLocationUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    vendor = crud.require_vendor_for_user(db, current_user)
    return vendor_locations_crud.update_vendor_location(
        db, vendor, payload.latitude, payload.longitude,
        is_active=payload.is_active, updated_at=payload.updated_at)


@router.post("/me/offline", response_model=VendorStatusOut)
def go_offline(
    payload: Optional[VendorOfflineRequest] = None,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    vendor = crud.require_vendor_for_user(db, current_user)
    return vendor_locations_crud.set_vendor_offline(
        db, vendor, payload.updated_at if payload else None)

# ---------------- Single vendor ----------------


@router.get("/{vendor_id}", response_model=VendorSummary)
def vendor_detail(
    vendor_id: UUID,
    params: VendorListRequest = Depends(),
    db: Session = Depends(get_db)
):
    return crud.get_vendor_summary(db, vendor_id, params.lat, params.lng)


@router.get("/{vendor_id}/products", response_model=List[ProductOut])
def vendor_products(
    vendor_id: UUID,
    params: ProductRequest = Depends(),
    db: Session = Depends(get_db)
):
    if not crud.get_vendor_by_id(db, vendor_id):
        raise NotFound("Vendor not found")
    return products_crud.get_vendor_products(db, vendor_id, params.in_stock_only)
