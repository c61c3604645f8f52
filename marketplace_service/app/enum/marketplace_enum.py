from enum import Enum


class OrderStatus(str, Enum):
    PLACED = "PLACED"
    ACCEPTED = "ACCEPTED"
    PREPARING = "PREPARING"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    REJECTED = "REJECTED"


# The only legal status changes; anything not listed is rejected
ORDER_STATUS_TRANSITIONS = {
    OrderStatus.PLACED: [OrderStatus.ACCEPTED, OrderStatus.REJECTED],
    OrderStatus.ACCEPTED: [OrderStatus.PREPARING],
    OrderStatus.PREPARING: [OrderStatus.OUT_FOR_DELIVERY],
    OrderStatus.OUT_FOR_DELIVERY: [OrderStatus.DELIVERED],
    OrderStatus.DELIVERED: [],
    OrderStatus.REJECTED: [],
}


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COLLECTED = "collected"
    CANCELLED = "cancelled"


class ChangeTable(str, Enum):
    VENDORS = "vendors"
    VENDOR_LOCATIONS = "vendor_locations"
    PRODUCTS = "products"
    ORDERS = "orders"
