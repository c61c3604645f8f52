# app/crud/delivery_addresses_crud.py
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from shared.core.exceptions import InvalidArgument, NotFound
from ...util.geo import validate_coordinates
from ..models.delivery_addresses import DeliveryAddress
from ..schemas.delivery_addresses_schemas import DeliveryAddressCreate, DeliveryAddressUpdate


def _validate_point(latitude, longitude):
    if latitude is None and longitude is None:
        return
    if latitude is None or longitude is None or not validate_coordinates(latitude, longitude):
        raise InvalidArgument("Address coordinates must be a valid latitude/longitude pair")


def get_addresses(db: Session, customer_id: str) -> List[DeliveryAddress]:
    return (
        db.query(DeliveryAddress)
        .filter(DeliveryAddress.customer_id == customer_id)
        .order_by(DeliveryAddress.is_default.desc(), DeliveryAddress.created_at.asc(), DeliveryAddress.id.asc())
        .all()
    )


def get_address(db: Session, customer_id: str, address_id) -> DeliveryAddress:
    address = (
        db.query(DeliveryAddress)
        .filter(DeliveryAddress.id == address_id, DeliveryAddress.customer_id == customer_id)
        .first()
    )
    if not address:
        raise NotFound("Delivery address not found")
    return address


def get_default_address(db: Session, customer_id: str):
    return (
        db.query(DeliveryAddress)
        .filter(DeliveryAddress.customer_id == customer_id, DeliveryAddress.is_default == True)
        .first()
    )


def _clear_default(db: Session, customer_id: str):
    db.query(DeliveryAddress).filter(
        DeliveryAddress.customer_id == customer_id,
        DeliveryAddress.is_default == True
    ).update({DeliveryAddress.is_default: False}, synchronize_session="fetch")


def add_address(db: Session, customer_id: str, address: DeliveryAddressCreate) -> DeliveryAddress:
    _validate_point(address.latitude, address.longitude)

    # the first address always becomes the default
    has_addresses = (
        db.query(DeliveryAddress.id)
        .filter(DeliveryAddress.customer_id == customer_id)
        .first()
    )
    is_default = address.is_default or not has_addresses
    if is_default:
        _clear_default(db, customer_id)

    db_address = DeliveryAddress(
        customer_id=customer_id,
        created_at=datetime.now(timezone.utc),
        **address.model_dump(exclude={"is_default"}),
        is_default=is_default,
    )
    db.add(db_address)
    db.commit()
    db.refresh(db_address)
    return db_address


def update_address(db: Session, customer_id: str, address_id, address: DeliveryAddressUpdate) -> DeliveryAddress:
    db_address = get_address(db, customer_id, address_id)

    update_data = address.model_dump(exclude_unset=True)
    for key in ("label", "address"):
        if key in update_data and not update_data[key]:
            raise InvalidArgument(f"{key} cannot be empty")
    _validate_point(
        update_data.get("latitude", db_address.latitude),
        update_data.get("longitude", db_address.longitude),
    )

    for key, value in update_data.items():
        setattr(db_address, key, value)

    db.commit()
    db.refresh(db_address)
    return db_address


def set_default_address(db: Session, customer_id: str, address_id) -> DeliveryAddress:
    db_address = get_address(db, customer_id, address_id)
    _clear_default(db, customer_id)
    db_address.is_default = True
    db.commit()
    db.refresh(db_address)
    return db_address


def delete_address(db: Session, customer_id: str, address_id) -> bool:
    db_address = get_address(db, customer_id, address_id)
    was_default = db_address.is_default

    db.delete(db_address)
    db.flush()

    if was_default:
        # promote the oldest remaining address
        replacement = (
            db.query(DeliveryAddress)
            .filter(DeliveryAddress.customer_id == customer_id)
            .order_by(DeliveryAddress.created_at.asc(), DeliveryAddress.id.asc())
            .first()
        )
        if replacement:
            replacement.is_default = True

    db.commit()
    return True
