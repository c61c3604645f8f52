# app/crud/reviews_crud.py
from typing import List

from sqlalchemy.orm import Session

from shared.core.exceptions import InvalidArgument, NotFound, Unauthorized
from shared.helpers.change_notifier import change_notifier
from ..enum.marketplace_enum import ChangeTable, OrderStatus
from ..models.orders import Order
from ..models.reviews import Review
from ..schemas.reviews_schemas import ReviewCreate


def add_review(db: Session, customer_id: str, review: ReviewCreate) -> Review:
    if isinstance(review.rating, bool) or not 1 <= review.rating <= 5:
        raise InvalidArgument("Rating must be between 1 and 5")

    order = db.query(Order).filter(Order.id == review.order_id).first()
    if not order:
        raise NotFound("Order not found")
    if order.customer_id != str(customer_id):
        raise Unauthorized("Only the customer who placed the order can review it")
    if order.status != OrderStatus.DELIVERED:
        raise InvalidArgument("Only delivered orders can be reviewed")

    already_reviewed = db.query(Review.id).filter(
        Review.order_id == order.id).first()
    if already_reviewed:
        raise InvalidArgument("This order has already been reviewed")

    db_review = Review(
        order_id=order.id,
        customer_id=str(customer_id),
        vendor_id=order.vendor_id,
        rating=review.rating,
        comment=review.comment,
    )
    db.add(db_review)
    db.commit()
    db.refresh(db_review)

    # ratings are derived on read; listeners just re-fetch vendor summaries
    change_notifier.publish(ChangeTable.VENDORS.value,
                            {"vendor_id": str(db_review.vendor_id)})
    return db_review


def get_vendor_reviews(db: Session, vendor_id, skip: int = 0, limit: int = 50) -> List[Review]:
    return (
        db.query(Review)
        .filter(Review.vendor_id == vendor_id)
        .order_by(Review.created_at.desc(), Review.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )
