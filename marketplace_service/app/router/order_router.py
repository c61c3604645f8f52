# app/router/order_router.py
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shared.core.database import get_marketplace_db as get_db
from shared.core.schemas import JsonOutResult, Lookup, UserToken
from shared.core.auth import allow_customer, allow_vendor, validate_current_token
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ..schemas.orders_schemas import OrderCreate, OrderListResponse, OrderOut, OrderRequest, OrderStatusUpdate
from ..crud import orders_crud as crud
from ..crud.delivery_addresses_crud import get_address

router = APIRouter(prefix="/api/orders",
                   tags=["orders"], dependencies=[Depends(validate_current_token)])


@router.post("/", response_model=OrderOut)
def place_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_customer)
):
    delivery_address = payload.delivery_address
    if payload.delivery_address_id:
        delivery_address = get_address(
            db, current_user.user_id, payload.delivery_address_id)

    order = crud.place_order(
        db,
        customer_id=current_user.user_id,
        vendor_id=payload.vendor_id,
        items=payload.items,
        delivery_address=delivery_address,
        idempotency_key=payload.idempotency_key,
    )
    return crud.order_to_out(order)


@router.get("/", response_model=OrderListResponse)
def list_orders(
    params: OrderRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_orders(db, current_user, params)


@router.get("/{order_id}", response_model=OrderOut)
def read_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.order_to_out(crud.get_order_by_id(db, order_id, current_user))


@router.put("/{order_id}/status", response_model=JsonOutResult[OrderOut])
def update_order_status(
    order_id: UUID,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    order = crud.update_order_status(db, order_id, payload.status, current_user)
    return success_response(
        data=crud.order_to_out(order),
        message=f"Order marked as {payload.status.value}",
        status_code=AppStatusCode.UPDATED_SUCCESSFULLY
    )


@router.get("/{order_id}/next-statuses", response_model=List[Lookup])
def next_statuses(
    order_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_vendor)
):
    return crud.get_possible_next_statuses(db, order_id, current_user)
