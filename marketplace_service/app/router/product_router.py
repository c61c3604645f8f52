# app/router/product_router.py
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shared.core.database import get_marketplace_db as get_db
from shared.core.schemas import JsonOutResult, UserToken
from shared.core.auth import allow_vendor, validate_current_token
from shared.core.exceptions import NotFound
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ..schemas.products_schemas import ProductCreate, ProductOut, ProductUpdate
from ..crud import products_crud as crud
from ..crud.vendors_crud import require_vendor_for_user

router = APIRouter(prefix="/api/products",
                   tags=["products"], dependencies=[Depends(validate_current_token)])


@router.post("/", response_model=ProductOut)
def create_product(
    product: ProductCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    vendor = require_vendor_for_user(db, current_user)
    return crud.create_product(db, vendor, product)


@router.get("/{product_id}", response_model=ProductOut)
def read_product(
    product_id: UUID,
    db: Session = Depends(get_db)
):
    db_product = crud.get_product_by_id(db, product_id)
    if not db_product:
        raise NotFound("Product not found")
    return db_product


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: UUID,
    product: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    vendor = require_vendor_for_user(db, current_user)
    return crud.update_product(db, vendor, product_id, product)


@router.delete("/{product_id}", response_model=JsonOutResult[ProductOut])
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    vendor = require_vendor_for_user(db, current_user)
    deleted = crud.delete_product(db, vendor, product_id)
    return success_response(
        data=deleted,
        message="Product deleted successfully",
        status_code=AppStatusCode.DELETED_SUCCESSFULLY
    )
