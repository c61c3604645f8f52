# app/crud/vendors_crud.py
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.exceptions import InvalidArgument, NotFound
from shared.core.schemas import UserToken
from shared.helpers.change_notifier import change_notifier
from ...util.geo import haversine_meters, validate_coordinates
from ..enum.marketplace_enum import ChangeTable
from ..models.products import Product
from ..models.reviews import Review
from ..models.vendor_locations import VendorLocation
from ..models.vendors import Vendor
from ..schemas.vendors_schemas import RecentProduct, VendorCreate, VendorSummary, VendorUpdate
from .vendor_locations_crud import find_active_vendors_near

# ----------------- Vendor profile -----------------


def get_vendor_by_id(db: Session, vendor_id) -> Optional[Vendor]:
    return db.query(Vendor).filter(Vendor.id == vendor_id).first()


def get_vendor_for_user(db: Session, user_id: str) -> Optional[Vendor]:
    return db.query(Vendor).filter(Vendor.user_id == str(user_id)).first()


def require_vendor_for_user(db: Session, current_user: UserToken) -> Vendor:
    vendor = get_vendor_for_user(db, current_user.user_id)
    if not vendor:
        raise NotFound("Vendor profile not found for this user")
    return vendor


def create_vendor(db: Session, current_user: UserToken, vendor: VendorCreate) -> Vendor:
    if get_vendor_for_user(db, current_user.user_id):
        raise InvalidArgument("Vendor profile already exists for this user")

    db_vendor = Vendor(user_id=str(current_user.user_id), **vendor.model_dump())
    db.add(db_vendor)
    db.commit()
    db.refresh(db_vendor)
    change_notifier.publish(ChangeTable.VENDORS.value,
                            {"vendor_id": str(db_vendor.id)})
    return db_vendor


def update_vendor(db: Session, db_vendor: Vendor, vendor: VendorUpdate) -> Vendor:
    update_data = vendor.model_dump(exclude_unset=True)
    if "business_name" in update_data and not update_data["business_name"]:
        raise InvalidArgument("Business name is required")

    for key, value in update_data.items():
        setattr(db_vendor, key, value)

    db.commit()
    db.refresh(db_vendor)
    change_notifier.publish(ChangeTable.VENDORS.value,
                            {"vendor_id": str(db_vendor.id)})
    return db_vendor

# ----------------- Aggregation -----------------


def get_rating_stats(db: Session, vendor_ids: Optional[List[UUID]] = None) -> Dict[UUID, Tuple[float, int]]:
    if vendor_ids is not None and not vendor_ids:
        return {}

    query = db.query(
        Review.vendor_id,
        func.avg(Review.rating).label("avg_rating"),
        func.count(Review.id).label("review_count"),
    )
    if vendor_ids is not None:
        query = query.filter(Review.vendor_id.in_(vendor_ids))

    return {
        row.vendor_id: (float(row.avg_rating or 0), row.review_count)
        for row in query.group_by(Review.vendor_id).all()
    }


def get_recent_products(db: Session, vendor_ids: Optional[List[UUID]] = None) -> Dict[UUID, List[RecentProduct]]:
    """Up to RECENT_PRODUCTS_LIMIT in-stock products per vendor, newest first."""
    if vendor_ids is not None and not vendor_ids:
        return {}

    rn = func.row_number().over(
        partition_by=Product.vendor_id,
        order_by=(Product.created_at.desc(), Product.id.asc()),
    ).label("rn")

    ranked = db.query(
        Product.vendor_id,
        Product.name,
        Product.price,
        rn,
    ).filter(Product.inventory_count > 0)
    if vendor_ids is not None:
        ranked = ranked.filter(Product.vendor_id.in_(vendor_ids))
    ranked = ranked.subquery()

    rows = (
        db.query(ranked.c.vendor_id, ranked.c.name, ranked.c.price)
        .filter(ranked.c.rn <= settings.RECENT_PRODUCTS_LIMIT)
        .order_by(ranked.c.vendor_id, ranked.c.rn)
        .all()
    )

    products: Dict[UUID, List[RecentProduct]] = {}
    for row in rows:
        products.setdefault(row.vendor_id, []).append(
            RecentProduct(name=row.name, price=float(row.price)))
    return products


def get_vendor_statuses(db: Session, vendor_ids: Optional[List[UUID]] = None) -> Dict[UUID, VendorLocation]:
    if vendor_ids is not None and not vendor_ids:
        return {}

    query = db.query(VendorLocation)
    if vendor_ids is not None:
        query = query.filter(VendorLocation.vendor_id.in_(vendor_ids))
    return {status.vendor_id: status for status in query.all()}


def _validate_optional_point(lat, lng) -> bool:
    if lat is None and lng is None:
        return False
    if lat is None or lng is None:
        raise InvalidArgument("Both lat and lng are required for a location")
    if not validate_coordinates(lat, lng):
        raise InvalidArgument(
            "Latitude must be within [-90, 90] and longitude within [-180, 180]")
    return True


def _summaries(
    db: Session,
    vendors: List[Tuple],
    vendor_ids: Optional[List[UUID]],
    distances: Dict[UUID, int],
    statuses: Dict[UUID, VendorLocation],
) -> List[VendorSummary]:
    ratings = get_rating_stats(db, vendor_ids)
    recent = get_recent_products(db, vendor_ids)

    summaries = []
    for vendor_id, business_name, contact in vendors:
        avg_rating, review_count = ratings.get(vendor_id, (0, 0))
        status = statuses.get(vendor_id)
        summaries.append(VendorSummary(
            id=vendor_id,
            business_name=business_name,
            contact=contact,
            distance_meters=distances.get(vendor_id, 0),
            is_active=bool(status and status.is_active),
            avg_rating=avg_rating,
            review_count=review_count,
            recent_products=recent.get(vendor_id, []),
        ))
    return summaries


def get_vendor_summaries(db: Session, lat: Optional[float] = None, lng: Optional[float] = None) -> List[VendorSummary]:
    """Every vendor with derived stats, ordered by business name.

    With a location, ``distance_meters`` is measured to each vendor's last
    known point; it stays 0 (unknown) for vendors that never shared one.
    """
    has_point = _validate_optional_point(lat, lng)

    vendors = (
        db.query(Vendor.id, Vendor.business_name, Vendor.contact)
        .filter(Vendor.business_name.isnot(None))
        .order_by(Vendor.business_name.asc(), Vendor.id.asc())
        .all()
    )
    statuses = get_vendor_statuses(db)

    distances = {}
    if has_point:
        for vendor_id, status in statuses.items():
            if status.latitude is not None and status.longitude is not None:
                distances[vendor_id] = int(round(haversine_meters(
                    float(lat), float(lng), status.latitude, status.longitude)))

    return _summaries(db, [tuple(v) for v in vendors], None, distances, statuses)


def find_nearby_vendor_summaries(
    db: Session,
    lat: float,
    lng: float,
    max_meters: Optional[int] = None
) -> List[VendorSummary]:
    """Radius query enriched with ratings and products, nearest first."""
    nearby = find_active_vendors_near(db, lat, lng, max_meters)
    vendor_ids = [v.id for v in nearby]
    distances = {v.id: v.distance_meters for v in nearby}
    statuses = get_vendor_statuses(db, vendor_ids)

    return _summaries(
        db,
        [(v.id, v.business_name, v.contact) for v in nearby],
        vendor_ids,
        distances,
        statuses,
    )


def get_vendor_summary(db: Session, vendor_id, lat: Optional[float] = None, lng: Optional[float] = None) -> VendorSummary:
    has_point = _validate_optional_point(lat, lng)

    vendor = get_vendor_by_id(db, vendor_id)
    if not vendor:
        raise NotFound("Vendor not found")

    statuses = get_vendor_statuses(db, [vendor.id])
    distances = {}
    status = statuses.get(vendor.id)
    if has_point and status and status.latitude is not None and status.longitude is not None:
        distances[vendor.id] = int(round(haversine_meters(
            float(lat), float(lng), status.latitude, status.longitude)))

    return _summaries(
        db,
        [(vendor.id, vendor.business_name, vendor.contact)],
        [vendor.id],
        distances,
        statuses,
    )[0]
