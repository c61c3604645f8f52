import threading
import uuid

import pytest

from shared.core.database import MarketplaceSessionLocal
from shared.core.exceptions import (
    CrossVendorViolation,
    InsufficientStock,
    InvalidArgument,
    InvalidTransition,
    NotFound,
    Unauthorized,
)
from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from marketplace_service.app.crud import inventory_crud, orders_crud
from marketplace_service.app.enum.marketplace_enum import OrderStatus, PaymentStatus
from marketplace_service.app.models.order_items import OrderItem
from marketplace_service.app.models.orders import Order
from marketplace_service.app.schemas.orders_schemas import OrderRequest

LAGOS = (6.5244, 3.3792)
ADDRESS = {"label": "Home", "address": "12 Allen Avenue, Ikeja",
           "latitude": 6.6018, "longitude": 3.3515}


@pytest.fixture
def shop(make_vendor, make_product):
    vendor = make_vendor(user_id="vendor-1", business_name="Fresh Farm", lat=LAGOS[0], lng=LAGOS[1])
    rice = make_product(vendor, name="Rice", price="3.50", inventory_count=10)
    beans = make_product(vendor, name="Beans", price="1.25", inventory_count=4)
    return vendor, rice, beans


def _place(db, vendor, lines, customer_id="customer-1", **kwargs):
    return orders_crud.place_order(
        db, customer_id, vendor.id,
        [{"product_id": p.id, "quantity": q} for p, q in lines],
        **kwargs)


def _count(db, product_id):
    db.expire_all()
    return inventory_crud.get_counts(db, [product_id])[product_id]


def _advance(db, order_id, vendor_user, *statuses):
    order = None
    for status in statuses:
        order = orders_crud.update_order_status(db, order_id, status, vendor_user)
    return order


# ---------------- Placement ----------------


def test_place_order_freezes_prices_and_total(db, shop):
    vendor, rice, beans = shop

    order = _place(db, vendor, [(rice, 2), (beans, 3)], delivery_address=ADDRESS)

    assert order.status == OrderStatus.PLACED
    assert float(order.total_amount) == pytest.approx(10.75)
    assert {(i.product_id, i.quantity, float(i.price)) for i in order.items} == {
        (rice.id, 2, 3.5), (beans.id, 3, 1.25)}
    assert order.delivery_address["label"] == "Home"
    assert order.payment.status == PaymentStatus.PENDING.value


def test_placing_does_not_reserve_inventory(db, shop):
    vendor, rice, _ = shop

    _place(db, vendor, [(rice, 4)])

    assert _count(db, rice.id) == 10


def test_later_price_change_does_not_touch_placed_order(db, shop):
    vendor, rice, _ = shop
    order = _place(db, vendor, [(rice, 1)])

    rice.price = 9
    db.commit()

    out = orders_crud.order_to_out(orders_crud.get_order(db, order.id))
    assert out.total_amount == 3.5
    assert out.items[0].price == 3.5


def test_repeated_product_lines_are_merged(db, shop):
    vendor, rice, _ = shop

    order = _place(db, vendor, [(rice, 1), (rice, 2)])

    assert [(i.product_id, i.quantity) for i in order.items] == [(rice.id, 3)]


def test_cross_vendor_order_writes_nothing(db, shop, make_vendor, make_product):
    vendor, rice, _ = shop
    other = make_vendor(user_id="vendor-2", business_name="Other Farm", lat=LAGOS[0], lng=LAGOS[1])
    yam = make_product(other, name="Yam")

    with pytest.raises(CrossVendorViolation):
        _place(db, vendor, [(rice, 1), (yam, 1)])

    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0


@pytest.mark.parametrize("quantity", [0, -2])
def test_non_positive_quantity_is_rejected(db, shop, quantity):
    vendor, rice, _ = shop

    with pytest.raises(InvalidArgument):
        _place(db, vendor, [(rice, quantity)])


def test_empty_order_is_rejected(db, shop):
    vendor, _, _ = shop

    with pytest.raises(InvalidArgument):
        _place(db, vendor, [])


def test_unknown_product_or_vendor(db, shop, make_product):
    vendor, rice, _ = shop

    with pytest.raises(NotFound):
        orders_crud.place_order(db, "customer-1", vendor.id,
                                [{"product_id": uuid.uuid4(), "quantity": 1}])
    with pytest.raises(NotFound):
        orders_crud.place_order(db, "customer-1", uuid.uuid4(),
                                [{"product_id": rice.id, "quantity": 1}])


def test_closed_vendor_cannot_take_orders(db, make_vendor, make_product):
    vendor = make_vendor(lat=LAGOS[0], lng=LAGOS[1], is_active=False)
    rice = make_product(vendor)

    with pytest.raises(InvalidArgument):
        _place(db, vendor, [(rice, 1)])


def test_quantity_above_current_stock_is_rejected(db, shop):
    vendor, _, beans = shop

    with pytest.raises(InsufficientStock):
        _place(db, vendor, [(beans, 5)])


def test_idempotency_key_returns_the_first_order(db, shop):
    vendor, rice, _ = shop

    first = _place(db, vendor, [(rice, 1)], idempotency_key="checkout-1")
    second = _place(db, vendor, [(rice, 1)], idempotency_key="checkout-1")

    assert first.id == second.id
    assert db.query(Order).count() == 1


def test_address_coordinates_must_be_valid(db, shop):
    vendor, rice, _ = shop

    with pytest.raises(InvalidArgument):
        _place(db, vendor, [(rice, 1)],
               delivery_address={"label": "Home", "address": "x", "latitude": 95, "longitude": 0})


# ---------------- Transitions ----------------


def test_full_lifecycle_to_delivered(db, shop, vendor_user):
    vendor, rice, _ = shop
    order = _place(db, vendor, [(rice, 2)])

    order = _advance(db, order.id, vendor_user,
                     OrderStatus.ACCEPTED, OrderStatus.PREPARING,
                     OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED)

    assert order.status == OrderStatus.DELIVERED
    assert order.delivery_time is not None
    assert order.payment.status == PaymentStatus.COLLECTED.value
    assert _count(db, rice.id) == 8


def test_delivered_is_terminal(db, shop, vendor_user):
    vendor, rice, _ = shop
    order = _place(db, vendor, [(rice, 1)])
    _advance(db, order.id, vendor_user,
             "ACCEPTED", "PREPARING", "OUT_FOR_DELIVERY", "DELIVERED")

    with pytest.raises(InvalidTransition):
        orders_crud.update_order_status(db, order.id, "PREPARING", vendor_user)


def test_skipping_a_step_is_invalid(db, shop, vendor_user):
    vendor, rice, _ = shop
    order = _place(db, vendor, [(rice, 1)])
    _advance(db, order.id, vendor_user, "ACCEPTED", "PREPARING")

    with pytest.raises(InvalidTransition):
        orders_crud.update_order_status(db, order.id, "DELIVERED", vendor_user)

    assert orders_crud.get_order(db, order.id).status == OrderStatus.PREPARING


def test_reject_only_from_placed(db, shop, vendor_user):
    vendor, rice, _ = shop
    placed = _place(db, vendor, [(rice, 1)])
    accepted = _place(db, vendor, [(rice, 1)])
    _advance(db, accepted.id, vendor_user, "ACCEPTED")

    rejected = orders_crud.update_order_status(db, placed.id, "REJECTED", vendor_user)
    assert rejected.status == OrderStatus.REJECTED
    assert rejected.payment.status == PaymentStatus.CANCELLED.value

    with pytest.raises(InvalidTransition):
        orders_crud.update_order_status(db, accepted.id, "REJECTED", vendor_user)


def test_rejecting_leaves_inventory_alone(db, shop, vendor_user):
    vendor, rice, _ = shop
    order = _place(db, vendor, [(rice, 3)])

    orders_crud.update_order_status(db, order.id, "REJECTED", vendor_user)

    assert _count(db, rice.id) == 10


def test_unknown_status_is_invalid_argument(db, shop, vendor_user):
    vendor, rice, _ = shop
    order = _place(db, vendor, [(rice, 1)])

    with pytest.raises(InvalidArgument):
        orders_crud.update_order_status(db, order.id, "CANCELLED", vendor_user)


def test_only_owning_vendor_moves_status(db, shop, make_vendor, customer):
    vendor, rice, _ = shop
    make_vendor(user_id="vendor-2", business_name="Other Farm")
    order = _place(db, vendor, [(rice, 1)])

    with pytest.raises(Unauthorized):
        orders_crud.update_order_status(
            db, order.id, "ACCEPTED", UserToken(user_id="vendor-2", role=UserRole.VENDOR))
    with pytest.raises(Unauthorized):
        orders_crud.update_order_status(db, order.id, "ACCEPTED", customer)


def test_acceptance_over_committed_stock(db, make_vendor, make_product, vendor_user):
    vendor = make_vendor(lat=LAGOS[0], lng=LAGOS[1])
    beans = make_product(vendor, name="Beans", inventory_count=2)
    first = _place(db, vendor, [(beans, 2)], customer_id="customer-1")
    second = _place(db, vendor, [(beans, 2)], customer_id="customer-2")

    orders_crud.update_order_status(db, first.id, "ACCEPTED", vendor_user)
    with pytest.raises(InsufficientStock):
        orders_crud.update_order_status(db, second.id, "ACCEPTED", vendor_user)

    assert orders_crud.get_order(db, second.id).status == OrderStatus.PLACED
    assert _count(db, beans.id) == 0


def test_failed_acceptance_rolls_back_every_line(db, shop, vendor_user):
    vendor, rice, beans = shop
    order = _place(db, vendor, [(rice, 2), (beans, 4)])
    inventory_crud.set_count(db, beans.id, 1)

    with pytest.raises(InsufficientStock):
        orders_crud.update_order_status(db, order.id, "ACCEPTED", vendor_user)

    assert _count(db, rice.id) == 10
    assert _count(db, beans.id) == 1
    assert orders_crud.get_order(db, order.id).status == OrderStatus.PLACED


def test_concurrent_acceptance_of_last_unit(db, make_vendor, make_product, vendor_user):
    vendor = make_vendor(lat=LAGOS[0], lng=LAGOS[1])
    product = make_product(vendor, inventory_count=1)
    orders = [_place(db, vendor, [(product, 1)], customer_id=f"customer-{i}").id
              for i in range(2)]
    outcomes = []
    lock = threading.Lock()
    start = threading.Barrier(2)

    def accept(order_id):
        session = MarketplaceSessionLocal()
        try:
            start.wait()
            orders_crud.update_order_status(session, order_id, "ACCEPTED", vendor_user)
            result = "accepted"
        except InsufficientStock:
            result = "short"
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=accept, args=(oid,)) for oid in orders]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["accepted", "short"]
    assert _count(db, product.id) == 0
    statuses = sorted(orders_crud.get_order(db, oid).status.value for oid in orders)
    assert statuses == ["ACCEPTED", "PLACED"]


def test_next_statuses(db, shop, vendor_user):
    vendor, rice, _ = shop
    order = _place(db, vendor, [(rice, 1)])

    options = orders_crud.get_possible_next_statuses(db, order.id, vendor_user)

    assert {o.id for o in options} == {"ACCEPTED", "REJECTED"}


# ---------------- Reads ----------------


def test_customers_only_see_their_orders(db, shop, customer):
    vendor, rice, _ = shop
    mine = _place(db, vendor, [(rice, 1)], customer_id="customer-1")
    theirs = _place(db, vendor, [(rice, 1)], customer_id="customer-2")

    listing = orders_crud.get_orders(db, customer, OrderRequest())

    assert listing.total == 1
    assert [o.id for o in listing.orders] == [mine.id]
    with pytest.raises(Unauthorized):
        orders_crud.get_order_by_id(db, theirs.id, customer)


def test_vendor_sees_orders_filtered_by_status(db, shop, vendor_user):
    vendor, rice, _ = shop
    _place(db, vendor, [(rice, 1)], customer_id="customer-1")
    accepted = _place(db, vendor, [(rice, 1)], customer_id="customer-2")
    _advance(db, accepted.id, vendor_user, "ACCEPTED")

    listing = orders_crud.get_orders(
        db, vendor_user, OrderRequest(status=OrderStatus.ACCEPTED))

    assert listing.total == 1
    assert listing.orders[0].id == accepted.id
    assert listing.orders[0].vendor_name == "Fresh Farm"
