# app/crud/products_crud.py
from typing import List, Optional

from sqlalchemy.orm import Session

from shared.core.exceptions import InvalidArgument, NotFound, Unauthorized
from shared.helpers.change_notifier import change_notifier
from ..enum.marketplace_enum import ChangeTable
from ..models.order_items import OrderItem
from ..models.products import Product
from ..models.vendors import Vendor
from ..schemas.products_schemas import ProductCreate, ProductOut, ProductUpdate


def get_product_by_id(db: Session, product_id) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


def get_vendor_products(db: Session, vendor_id, in_stock_only: bool = False) -> List[Product]:
    query = db.query(Product).filter(Product.vendor_id == vendor_id)
    if in_stock_only:
        query = query.filter(Product.inventory_count > 0)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def _get_owned_product(db: Session, vendor: Vendor, product_id) -> Product:
    db_product = get_product_by_id(db, product_id)
    if not db_product:
        raise NotFound("Product not found")
    if db_product.vendor_id != vendor.id:
        raise Unauthorized("Only the owning vendor can manage this product")
    return db_product


def _publish(db_product: Product):
    change_notifier.publish(ChangeTable.PRODUCTS.value, {
        "product_id": str(db_product.id),
        "vendor_id": str(db_product.vendor_id),
    })


def create_product(db: Session, vendor: Vendor, product: ProductCreate) -> Product:
    db_product = Product(vendor_id=vendor.id, **product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    _publish(db_product)
    return db_product


def update_product(db: Session, vendor: Vendor, product_id, product: ProductUpdate) -> Product:
    db_product = _get_owned_product(db, vendor, product_id)

    update_data = product.model_dump(exclude_unset=True)
    for key in ("name", "price", "inventory_count"):
        if key in update_data and update_data[key] is None:
            raise InvalidArgument(f"{key} cannot be empty")

    for key, value in update_data.items():
        setattr(db_product, key, value)

    db.commit()
    db.refresh(db_product)
    _publish(db_product)
    return db_product


def delete_product(db: Session, vendor: Vendor, product_id) -> ProductOut:
    db_product = _get_owned_product(db, vendor, product_id)

    # Business rule: products with order history keep their rows
    has_orders = (
        db.query(OrderItem.id)
        .filter(OrderItem.product_id == db_product.id)
        .first()
    )
    if has_orders:
        raise InvalidArgument(
            "Cannot delete a product that appears in orders. Set its inventory to zero instead.")

    deleted = ProductOut.model_validate(db_product)
    db.delete(db_product)
    db.commit()
    change_notifier.publish(ChangeTable.PRODUCTS.value, {
        "product_id": str(deleted.id),
        "vendor_id": str(deleted.vendor_id),
    })
    return deleted
