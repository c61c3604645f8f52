# app/router/inventory_router.py
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shared.core.database import get_marketplace_db as get_db
from shared.core.schemas import UserToken
from shared.core.auth import allow_vendor, validate_current_token
from ..schemas.products_schemas import InventoryCountOut, InventoryCountsRequest, InventoryCountsResponse, InventoryCountUpdate
from ..crud import inventory_crud as crud
from ..crud.vendors_crud import require_vendor_for_user

router = APIRouter(prefix="/api/inventory",
                   tags=["inventory"], dependencies=[Depends(validate_current_token)])


# POST so large id sets fit in the body
@router.post("/counts", response_model=InventoryCountsResponse)
def read_counts(
    payload: InventoryCountsRequest,
    db: Session = Depends(get_db)
):
    return InventoryCountsResponse(counts=crud.get_counts(db, payload.product_ids))


@router.put("/{product_id}", response_model=InventoryCountOut)
def set_count(
    product_id: UUID,
    payload: InventoryCountUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    vendor = require_vendor_for_user(db, current_user)
    count = crud.set_count(db, product_id, payload.inventory_count, vendor)
    return InventoryCountOut(product_id=product_id, inventory_count=count)
