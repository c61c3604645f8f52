# app/router/delivery_address_router.py
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from shared.core.database import get_marketplace_db as get_db
from shared.core.schemas import UserToken
from shared.core.auth import allow_customer
from ..schemas.delivery_addresses_schemas import DeliveryAddressCreate, DeliveryAddressOut, DeliveryAddressUpdate
from ..crud import delivery_addresses_crud as crud

router = APIRouter(prefix="/api/delivery-addresses",
                   tags=["delivery_addresses"], dependencies=[Depends(allow_customer)])


@router.get("/", response_model=List[DeliveryAddressOut])
def read_addresses(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_customer)
):
    return crud.get_addresses(db, current_user.user_id)


@router.post("/", response_model=DeliveryAddressOut)
def add_address(
    address: DeliveryAddressCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_customer)
):
    return crud.add_address(db, current_user.user_id, address)


@router.put("/{address_id}", response_model=DeliveryAddressOut)
def update_address(
    address_id: UUID,
    address: DeliveryAddressUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_customer)
):
    return crud.update_address(db, current_user.user_id, address_id, address)


@router.put("/{address_id}/default", response_model=DeliveryAddressOut)
def set_default_address(
    address_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_customer)
):
    return crud.set_default_address(db, current_user.user_id, address_id)


@router.delete("/{address_id}")
def delete_address(
    address_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_customer)
):
    return crud.delete_address(db, current_user.user_id, address_id)
