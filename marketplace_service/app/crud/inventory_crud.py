# app/crud/inventory_crud.py
import logging
from typing import Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from shared.core.exceptions import InsufficientStock, InvalidArgument, NotFound, Unauthorized
from shared.helpers.change_notifier import change_notifier
from ..enum.marketplace_enum import ChangeTable
from ..models.products import Product
from ..models.vendors import Vendor

logger = logging.getLogger(__name__)


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def get_counts(db: Session, product_ids: Iterable) -> Dict[UUID, int]:
    """Current stock per product; unknown or deleted ids are left out."""
    ids = list(set(product_ids))
    if not ids:
        return {}

    rows = (
        db.query(Product.id, Product.inventory_count)
        .filter(Product.id.in_(ids))
        .all()
    )
    return {row.id: row.inventory_count for row in rows}


def _apply_decrement(db: Session, product_id, amount: int) -> int:
    # check and write in one statement; no read-modify-write in Python
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.inventory_count >= amount)
        .values(inventory_count=Product.inventory_count - amount)
        .execution_options(synchronize_session=False)
    )

    current = (
        db.query(Product.inventory_count)
        .filter(Product.id == product_id)
        .scalar()
    )
    if result.rowcount == 0:
        if current is None:
            raise NotFound(f"Product {product_id} not found")
        raise InsufficientStock(
            f"Insufficient stock for product {product_id}: "
            f"{current} available, {amount} requested",
            product_id=product_id,
            available=current,
        )
    return current


def decrement(db: Session, product_id, by_amount: int, commit: bool = True) -> int:
    if not _is_count(by_amount) or by_amount <= 0:
        raise InvalidArgument("Decrement amount must be a positive integer")

    try:
        new_count = _apply_decrement(db, product_id, by_amount)
        if commit:
            db.commit()
    except Exception:
        if commit:
            db.rollback()
        raise

    if commit:
        change_notifier.publish(ChangeTable.PRODUCTS.value, {
            "product_id": str(product_id), "inventory_count": new_count})
    return new_count


def decrement_batch(db: Session, quantities: Dict) -> Dict[UUID, int]:
    """Decrement several products as one unit inside the caller's transaction.

    Either every line is applied or the session is rolled back and the
    failure re-raised. The caller commits.
    """
    if not quantities:
        raise InvalidArgument("Nothing to decrement")
    for amount in quantities.values():
        if not _is_count(amount) or amount <= 0:
            raise InvalidArgument(
                "Decrement amount must be a positive integer")

    new_counts = {}
    try:
        # fixed lock order so concurrent batches cannot deadlock
        for product_id in sorted(quantities, key=str):
            new_counts[product_id] = _apply_decrement(
                db, product_id, quantities[product_id])
    except Exception:
        db.rollback()
        raise
    return new_counts


def set_count(db: Session, product_id, value: int, vendor: Optional[Vendor] = None) -> int:
    if not _is_count(value) or value < 0:
        raise InvalidArgument("Inventory count must be a non-negative integer")

    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound(f"Product {product_id} not found")
    if vendor is not None and product.vendor_id != vendor.id:
        raise Unauthorized("Only the owning vendor can change this product")

    product.inventory_count = value
    db.commit()
    logger.info("Inventory for product %s set to %s", product_id, value)
    change_notifier.publish(ChangeTable.PRODUCTS.value, {
        "product_id": str(product_id),
        "vendor_id": str(product.vendor_id),
        "inventory_count": value,
    })
    return value
