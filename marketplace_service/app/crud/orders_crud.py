# app/crud/orders_crud.py
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from shared.core.exceptions import (
    CrossVendorViolation,
    InsufficientStock,
    InvalidArgument,
    InvalidTransition,
    NotFound,
    Unauthorized,
)
from shared.core.schemas import Lookup, UserToken
from shared.helpers.change_notifier import change_notifier
from shared.utils.enums import UserRole
from ...util.geo import validate_coordinates
from ..enum.marketplace_enum import (
    ORDER_STATUS_TRANSITIONS,
    ChangeTable,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from ..models.delivery_addresses import DeliveryAddress
from ..models.order_items import OrderItem
from ..models.orders import Order
from ..models.payments import Payment
from ..models.products import Product
from ..models.vendor_locations import VendorLocation
from ..models.vendors import Vendor
from ..schemas.orders_schemas import OrderItemOut, OrderListResponse, OrderOut, OrderRequest
from . import inventory_crud
from .vendors_crud import get_vendor_for_user

logger = logging.getLogger(__name__)

# payment bookkeeping per terminal status (cash on delivery only)
_PAYMENT_STATUS_ON = {
    OrderStatus.DELIVERED: PaymentStatus.COLLECTED,
    OrderStatus.REJECTED: PaymentStatus.CANCELLED,
}

# ----------------- Helpers -----------------


def _coerce_uuid(value, what: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidArgument(f"Invalid {what} id: {value}")


def _coerce_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise InvalidArgument(f"Unknown order status: {value}")


def _merge_line_items(items: Iterable) -> Dict[UUID, int]:
    """Validate cart lines and merge repeated products into one quantity."""
    quantities: Dict[UUID, int] = {}
    for item in items or []:
        if isinstance(item, dict):
            product_id, quantity = item.get("product_id"), item.get("quantity")
        else:
            product_id, quantity = item.product_id, item.quantity

        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidArgument("Every item quantity must be a positive integer")

        product_id = _coerce_uuid(product_id, "product")
        quantities[product_id] = quantities.get(product_id, 0) + quantity

    if not quantities:
        raise InvalidArgument("An order needs at least one item")
    return quantities


def snapshot_address(address) -> Optional[dict]:
    """Freeze a delivery address into the order; later edits never leak in."""
    if address is None:
        return None

    if isinstance(address, dict):
        data = dict(address)
    elif isinstance(address, DeliveryAddress):
        data = {
            "label": address.label,
            "address": address.address,
            "latitude": address.latitude,
            "longitude": address.longitude,
        }
    else:
        data = address.model_dump()

    if not data.get("label") or not data.get("address"):
        raise InvalidArgument("Delivery address needs a label and an address")

    latitude, longitude = data.get("latitude"), data.get("longitude")
    if latitude is not None or longitude is not None:
        if latitude is None or longitude is None or not validate_coordinates(latitude, longitude):
            raise InvalidArgument("Delivery address coordinates are invalid")

    return {
        "label": data["label"],
        "address": data["address"],
        "latitude": latitude,
        "longitude": longitude,
    }


def order_to_out(order: Order) -> OrderOut:
    return OrderOut(
        id=order.id,
        customer_id=order.customer_id,
        vendor_id=order.vendor_id,
        vendor_name=order.vendor.business_name if order.vendor else None,
        status=order.status,
        total_amount=float(order.total_amount),
        order_date=order.order_date,
        delivery_time=order.delivery_time,
        delivery_address=order.delivery_address,
        payment_method=order.payment.payment_method if order.payment else None,
        payment_status=order.payment.status if order.payment else None,
        items=[
            OrderItemOut(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product.name if item.product else None,
                quantity=item.quantity,
                price=float(item.price),
            )
            for item in order.items
        ],
    )


def _order_query(db: Session):
    return db.query(Order).options(
        joinedload(Order.vendor),
        joinedload(Order.payment),
        selectinload(Order.items).selectinload(OrderItem.product),
    )


def _find_by_idempotency_key(db: Session, customer_id: str, idempotency_key: str) -> Optional[Order]:
    return (
        _order_query(db)
        .filter(Order.customer_id == customer_id, Order.idempotency_key == idempotency_key)
        .first()
    )

# ----------------- Placement -----------------


def place_order(
    db: Session,
    customer_id: str,
    vendor_id,
    items: Iterable,
    delivery_address=None,
    idempotency_key: Optional[str] = None
) -> Order:
    """Create a PLACED order with prices frozen at their current value.

    Inventory is not touched here; stock is only taken when the vendor
    accepts, so several placed orders may over-commit a product.
    """
    customer_id = str(customer_id)

    if idempotency_key:
        existing = _find_by_idempotency_key(db, customer_id, idempotency_key)
        if existing:
            logger.info("Returning existing order %s for idempotency key %s",
                        existing.id, idempotency_key)
            return existing

    quantities = _merge_line_items(items)
    vendor_id = _coerce_uuid(vendor_id, "vendor")
    address = snapshot_address(delivery_address)

    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if not vendor:
        raise NotFound("Vendor not found")

    products = db.query(Product).filter(
        Product.id.in_(list(quantities))).all()
    by_id = {product.id: product for product in products}

    missing = [str(pid) for pid in quantities if pid not in by_id]
    if missing:
        raise NotFound(f"Products not found: {', '.join(missing)}")

    foreign = [str(p.id) for p in products if p.vendor_id != vendor.id]
    if foreign:
        raise CrossVendorViolation(
            "All items in an order must come from the same vendor")

    # re-validate what the client cart assumed
    status = db.query(VendorLocation).filter(
        VendorLocation.vendor_id == vendor.id).first()
    if not status or not status.is_active:
        raise InvalidArgument("Vendor is currently closed")

    for product_id, quantity in quantities.items():
        product = by_id[product_id]
        if quantity > product.inventory_count:
            raise InsufficientStock(
                f"Only {product.inventory_count} of {product.name} available",
                product_id=product_id,
                available=product.inventory_count,
            )

    total_amount = sum(
        (Decimal(by_id[pid].price) * quantity for pid, quantity in quantities.items()),
        Decimal("0"),
    )

    db_order = Order(
        customer_id=customer_id,
        vendor_id=vendor.id,
        status=OrderStatus.PLACED,
        total_amount=total_amount,
        order_date=datetime.now(timezone.utc),
        delivery_address=address,
        idempotency_key=idempotency_key,
    )
    db_order.items = [
        OrderItem(product_id=pid, quantity=quantity, price=by_id[pid].price)
        for pid, quantity in quantities.items()
    ]
    db_order.payment = Payment(
        payment_method=PaymentMethod.CASH_ON_DELIVERY.value,
        status=PaymentStatus.PENDING.value,
        amount=total_amount,
    )

    db.add(db_order)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if idempotency_key:
            # lost a race against a retry of the same checkout
            existing = _find_by_idempotency_key(
                db, customer_id, idempotency_key)
            if existing:
                return existing
        raise

    db.refresh(db_order)
    logger.info("Order %s placed by %s with vendor %s for %s",
                db_order.id, customer_id, vendor.id, total_amount)
    change_notifier.publish(ChangeTable.ORDERS.value, {
        "order_id": str(db_order.id),
        "vendor_id": str(vendor.id),
        "customer_id": customer_id,
        "status": OrderStatus.PLACED.value,
    })
    return db_order

# ----------------- Status transitions -----------------


def get_order(db: Session, order_id) -> Order:
    order = _order_query(db).filter(
        Order.id == _coerce_uuid(order_id, "order")).first()
    if not order:
        raise NotFound("Order not found")
    return order


def _require_owning_vendor(db: Session, order: Order, current_user: UserToken) -> Vendor:
    if current_user.role != UserRole.VENDOR:
        raise Unauthorized("Only the vendor can change an order status")
    vendor = get_vendor_for_user(db, current_user.user_id)
    if not vendor or vendor.id != order.vendor_id:
        raise Unauthorized("Only the owning vendor can change this order")
    return vendor


def update_order_status(db: Session, order_id, new_status, current_user: UserToken) -> Order:
    new_status = _coerce_status(new_status)
    order = get_order(db, order_id)
    _require_owning_vendor(db, order, current_user)

    old_status = order.status
    if new_status not in ORDER_STATUS_TRANSITIONS[old_status]:
        raise InvalidTransition(
            f"Cannot change order status from {old_status.value} to {new_status.value}")

    line_quantities: Dict[UUID, int] = {}
    for item in order.items:
        line_quantities[item.product_id] = line_quantities.get(
            item.product_id, 0) + item.quantity

    values = {"status": new_status}
    if new_status == OrderStatus.DELIVERED:
        values["delivery_time"] = datetime.now(timezone.utc)

    try:
        # claim the row; a concurrent change leaves nothing to update
        result = db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status == old_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InvalidTransition(
                f"Order {order.id} is no longer {old_status.value}")

        if new_status == OrderStatus.ACCEPTED:
            inventory_crud.decrement_batch(db, line_quantities)

        payment_status = _PAYMENT_STATUS_ON.get(new_status)
        if payment_status:
            db.query(Payment).filter(Payment.order_id == order.id).update(
                {Payment.status: payment_status.value}, synchronize_session=False)

        db.commit()
    except InsufficientStock as e:
        db.rollback()
        logger.warning("Order %s could not be accepted: %s", order.id, e.message)
        raise
    except Exception:
        db.rollback()
        raise

    logger.info("Order %s moved from %s to %s", order.id,
                old_status.value, new_status.value)

    db.expire_all()
    order = get_order(db, order.id)

    change_notifier.publish(ChangeTable.ORDERS.value, {
        "order_id": str(order.id),
        "vendor_id": str(order.vendor_id),
        "customer_id": order.customer_id,
        "status": new_status.value,
    })
    if new_status == OrderStatus.ACCEPTED:
        for product_id in line_quantities:
            change_notifier.publish(ChangeTable.PRODUCTS.value, {
                "product_id": str(product_id),
                "vendor_id": str(order.vendor_id),
            })
    return order


def get_possible_next_statuses(db: Session, order_id, current_user: UserToken) -> List[Lookup]:
    order = get_order(db, order_id)
    _require_owning_vendor(db, order, current_user)
    return [
        Lookup(id=status.value, name=status.value.replace("_", " ").title())
        for status in ORDER_STATUS_TRANSITIONS[order.status]
    ]

# ----------------- Reads -----------------


def _can_read(db: Session, order: Order, current_user: UserToken) -> bool:
    if current_user.role == UserRole.CUSTOMER:
        return order.customer_id == str(current_user.user_id)
    vendor = get_vendor_for_user(db, current_user.user_id)
    return bool(vendor and vendor.id == order.vendor_id)


def get_order_by_id(db: Session, order_id, current_user: UserToken) -> Order:
    order = get_order(db, order_id)
    if not _can_read(db, order, current_user):
        raise Unauthorized("Not authorized to view this order")
    return order


def get_orders(db: Session, current_user: UserToken, params: OrderRequest) -> OrderListResponse:
    if current_user.role == UserRole.VENDOR:
        vendor = get_vendor_for_user(db, current_user.user_id)
        if not vendor:
            return OrderListResponse(orders=[], total=0)
        filters = [Order.vendor_id == vendor.id]
    else:
        filters = [Order.customer_id == str(current_user.user_id)]

    if params.status:
        filters.append(Order.status == params.status)

    total = db.query(func.count(Order.id)).filter(*filters).scalar()

    orders = (
        _order_query(db)
        .filter(*filters)
        .order_by(Order.order_date.desc(), Order.id.asc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )
    return OrderListResponse(orders=[order_to_out(o) for o in orders], total=total)
