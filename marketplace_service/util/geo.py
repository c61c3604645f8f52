import math
from typing import Optional, Tuple

# Mean Earth radius (IUGG), meters
EARTH_RADIUS_METERS = 6371008.8


def validate_coordinates(lat, lng) -> bool:
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two WGS84 points on a spherical Earth."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (math.sin(d_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    # clamp against float drift for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def bounding_box(lat: float, lng: float, radius_meters: float) -> Tuple[float, float, Optional[float], Optional[float]]:
    """Lat/lng box enclosing every point within ``radius_meters`` of (lat, lng).

    Returns ``(min_lat, max_lat, min_lng, max_lng)``. The longitude bounds are
    ``None`` when the circle reaches a pole or wraps the antimeridian, in
    which case callers must not filter on longitude.
    """
    angular = radius_meters / EARTH_RADIUS_METERS
    d_lat = math.degrees(angular)
    min_lat = lat - d_lat
    max_lat = lat + d_lat

    if min_lat <= -90.0 or max_lat >= 90.0 or angular >= math.pi / 2:
        return max(min_lat, -90.0), min(max_lat, 90.0), None, None

    # widest longitude span of the circle, not at the centre latitude
    d_lng = math.degrees(math.asin(min(1.0, math.sin(angular) / math.cos(math.radians(lat)))))
    min_lng = lng - d_lng
    max_lng = lng + d_lng
    if min_lng < -180.0 or max_lng > 180.0:
        return min_lat, max_lat, None, None

    return min_lat, max_lat, min_lng, max_lng


def to_wkt_point(lat: Optional[float], lng: Optional[float]) -> Optional[str]:
    if lat is None or lng is None:
        return None
    return f"POINT({lng} {lat})"
