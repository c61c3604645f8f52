# app/crud/vendor_locations_crud.py
import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.exceptions import InvalidArgument
from shared.helpers.change_notifier import change_notifier
from ...util.geo import bounding_box, haversine_meters, validate_coordinates
from ..enum.marketplace_enum import ChangeTable
from ..models.vendors import Vendor
from ..models.vendor_locations import VendorLocation
from ..schemas.vendors_schemas import VendorDistance

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _upsert_vendor_status(db: Session, values: dict) -> bool:
    """Write the vendor's latest status unless a newer one is already stored.

    Returns False when the incoming update was older than the stored row.
    """
    insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)

    if insert is None:
        current = (
            db.query(VendorLocation)
            .filter(VendorLocation.vendor_id == values["vendor_id"])
            .with_for_update()
            .first()
        )
        if current is None:
            db.add(VendorLocation(**values))
        elif _as_utc(current.updated_at) <= values["updated_at"]:
            for key, value in values.items():
                setattr(current, key, value)
        else:
            db.rollback()
            return False
        db.commit()
        return True

    stmt = insert(VendorLocation).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[VendorLocation.vendor_id],
        set_={key: stmt.excluded[key] for key in values if key != "vendor_id"},
        # last write wins by timestamp, not by arrival order
        where=VendorLocation.updated_at <= stmt.excluded.updated_at,
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount > 0


def get_vendor_status(db: Session, vendor_id) -> Optional[VendorLocation]:
    return db.query(VendorLocation).filter(VendorLocation.vendor_id == vendor_id).first()


def update_vendor_location(
    db: Session,
    vendor: Vendor,
    latitude: float,
    longitude: float,
    is_active: bool = True,
    updated_at: Optional[datetime] = None
) -> VendorLocation:
    if not validate_coordinates(latitude, longitude):
        raise InvalidArgument(
            "Latitude must be within [-90, 90] and longitude within [-180, 180]")

    values = {
        "vendor_id": vendor.id,
        "latitude": float(latitude),
        "longitude": float(longitude),
        "is_active": bool(is_active),
        "updated_at": _as_utc(updated_at),
    }
    applied = _upsert_vendor_status(db, values)
    if applied:
        change_notifier.publish(ChangeTable.VENDOR_LOCATIONS.value, {
            "vendor_id": str(vendor.id), "is_active": values["is_active"]})
    else:
        logger.info("Ignored stale location update for vendor %s at %s",
                    vendor.id, values["updated_at"].isoformat())

    return get_vendor_status(db, vendor.id)


def set_vendor_offline(db: Session, vendor: Vendor, updated_at: Optional[datetime] = None) -> VendorLocation:
    # keeps the last known point, only the flag changes
    values = {
        "vendor_id": vendor.id,
        "is_active": False,
        "updated_at": _as_utc(updated_at),
    }
    applied = _upsert_vendor_status(db, values)
    if applied:
        change_notifier.publish(ChangeTable.VENDOR_LOCATIONS.value, {
            "vendor_id": str(vendor.id), "is_active": False})
    else:
        logger.info("Ignored stale offline update for vendor %s", vendor.id)

    return get_vendor_status(db, vendor.id)


def _validate_radius(max_meters) -> int:
    if isinstance(max_meters, bool) or not isinstance(max_meters, (int, float)) \
            or not math.isfinite(max_meters) or max_meters <= 0:
        raise InvalidArgument("max_meters must be a positive number")
    return max_meters


def find_active_vendors_near(
    db: Session,
    lat: float,
    lng: float,
    max_meters: Optional[int] = None
) -> List[VendorDistance]:
    """Active vendors within ``max_meters`` of (lat, lng), nearest first."""
    if not validate_coordinates(lat, lng):
        raise InvalidArgument(
            "Latitude must be within [-90, 90] and longitude within [-180, 180]")
    if max_meters is None:
        max_meters = settings.VENDOR_SEARCH_RADIUS_METERS
    max_meters = _validate_radius(max_meters)
    lat, lng = float(lat), float(lng)

    # padded box; the exact cut is made on the computed distance below
    min_lat, max_lat, min_lng, max_lng = bounding_box(
        lat, lng, max_meters * 1.001 + 1)

    filters = [
        VendorLocation.is_active == True,
        VendorLocation.latitude.isnot(None),
        VendorLocation.longitude.isnot(None),
        Vendor.business_name.isnot(None),
        VendorLocation.latitude.between(min_lat, max_lat),
    ]
    if min_lng is not None:
        filters.append(VendorLocation.longitude.between(min_lng, max_lng))

    rows = (
        db.query(
            Vendor.id,
            Vendor.business_name,
            Vendor.contact,
            VendorLocation.latitude,
            VendorLocation.longitude,
        )
        .join(VendorLocation, VendorLocation.vendor_id == Vendor.id)
        .filter(*filters)
        .all()
    )

    in_range = []
    for row in rows:
        distance = haversine_meters(lat, lng, row.latitude, row.longitude)
        if distance <= max_meters:
            in_range.append((distance, row))

    in_range.sort(key=lambda item: (
        item[0], item[1].business_name, str(item[1].id)))

    return [
        VendorDistance(
            id=row.id,
            business_name=row.business_name,
            contact=row.contact,
            distance_meters=int(round(distance)),
        )
        for distance, row in in_range[:settings.VENDOR_SEARCH_LIMIT]
    ]
