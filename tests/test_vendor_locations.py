from datetime import datetime, timedelta, timezone

import pytest

from shared.core.exceptions import InvalidArgument
from marketplace_service.app.crud import vendor_locations_crud
from marketplace_service.app.crud.vendor_locations_crud import find_active_vendors_near
from marketplace_service.app.models.vendor_locations import VendorLocation

LAGOS = (6.5244, 3.3792)


def test_scenario_nearby_vendor_within_radius(db, make_vendor):
    vendor = make_vendor(business_name="Mama Put", lat=LAGOS[0], lng=LAGOS[1])

    results = find_active_vendors_near(db, 6.5254, 3.3792, 1000)

    assert len(results) == 1
    assert results[0].id == vendor.id
    assert results[0].business_name == "Mama Put"
    assert results[0].distance_meters == 111


def test_vendor_at_origin_found_from_one_thousandth_degree_east(db, make_vendor):
    vendor = make_vendor(lat=0.0, lng=0.0)

    results = find_active_vendors_near(db, 0.0, 0.001, 500)

    assert [(r.id, r.distance_meters) for r in results] == [(vendor.id, 111)]


def test_vendor_outside_radius_is_excluded(db, make_vendor):
    make_vendor(lat=LAGOS[0], lng=LAGOS[1])

    assert find_active_vendors_near(db, 6.5254, 3.3792, 100) == []


def test_inactive_vendor_is_excluded(db, make_vendor):
    make_vendor(lat=LAGOS[0], lng=LAGOS[1], is_active=False)

    assert find_active_vendors_near(db, *LAGOS, 1000) == []


def test_vendor_without_location_is_excluded(db, make_vendor):
    make_vendor()

    assert find_active_vendors_near(db, *LAGOS, 1000) == []


def test_results_are_nearest_first(db, make_vendor):
    far = make_vendor(user_id="v-far", business_name="Far", lat=6.5444, lng=3.3792)
    near = make_vendor(user_id="v-near", business_name="Near", lat=6.5254, lng=3.3792)
    mid = make_vendor(user_id="v-mid", business_name="Mid", lat=6.5344, lng=3.3792)

    results = find_active_vendors_near(db, *LAGOS, 30000)

    assert [r.id for r in results] == [near.id, mid.id, far.id]
    distances = [r.distance_meters for r in results]
    assert distances == sorted(distances)


def test_equal_distance_ties_break_on_business_name(db, make_vendor):
    make_vendor(user_id="v-b", business_name="Bravo", lat=6.5254, lng=3.3792)
    make_vendor(user_id="v-a", business_name="Alpha", lat=6.5254, lng=3.3792)

    results = find_active_vendors_near(db, *LAGOS, 1000)

    assert [r.business_name for r in results] == ["Alpha", "Bravo"]


def test_default_radius_is_thirty_kilometres(db, make_vendor):
    # ~27.8 km and ~33.4 km north
    make_vendor(user_id="v-in", business_name="Inside", lat=6.7744, lng=3.3792)
    make_vendor(user_id="v-out", business_name="Outside", lat=6.8244, lng=3.3792)

    results = find_active_vendors_near(db, *LAGOS)

    assert [r.business_name for r in results] == ["Inside"]


def test_results_are_capped_at_fifty(db, make_vendor):
    for i in range(55):
        make_vendor(user_id=f"v-{i}", business_name=f"Vendor {i:02d}",
                    lat=LAGOS[0] + i * 0.0001, lng=LAGOS[1])

    results = find_active_vendors_near(db, *LAGOS, 30000)

    assert len(results) == 50
    assert results[0].business_name == "Vendor 00"
    assert results[-1].business_name == "Vendor 49"


@pytest.mark.parametrize("lat,lng,max_meters", [
    (91, 0, 1000),
    (0, 181, 1000),
    (0, 0, 0),
    (0, 0, -5),
    (0, 0, float("nan")),
    (0, 0, float("inf")),
])
def test_invalid_query_arguments(db, lat, lng, max_meters):
    with pytest.raises(InvalidArgument):
        find_active_vendors_near(db, lat, lng, max_meters)


def test_location_update_rejects_bad_coordinates(db, make_vendor):
    vendor = make_vendor()

    with pytest.raises(InvalidArgument):
        vendor_locations_crud.update_vendor_location(db, vendor, 100, 0)


def test_latest_update_wins(db, make_vendor):
    vendor = make_vendor()
    now = datetime.now(timezone.utc)

    vendor_locations_crud.update_vendor_location(
        db, vendor, 6.5, 3.3, updated_at=now - timedelta(minutes=5))
    status = vendor_locations_crud.update_vendor_location(
        db, vendor, 6.6, 3.4, updated_at=now)

    assert (status.latitude, status.longitude) == (6.6, 3.4)


def test_stale_update_is_ignored(db, make_vendor):
    vendor = make_vendor()
    now = datetime.now(timezone.utc)

    vendor_locations_crud.update_vendor_location(
        db, vendor, 6.6, 3.4, updated_at=now)
    status = vendor_locations_crud.update_vendor_location(
        db, vendor, 6.5, 3.3, is_active=False, updated_at=now - timedelta(minutes=5))

    assert (status.latitude, status.longitude) == (6.6, 3.4)
    assert status.is_active is True


def test_going_offline_keeps_last_location(db, make_vendor):
    vendor = make_vendor(lat=LAGOS[0], lng=LAGOS[1])

    status = vendor_locations_crud.set_vendor_offline(db, vendor)

    assert status.is_active is False
    assert (status.latitude, status.longitude) == LAGOS
    assert find_active_vendors_near(db, *LAGOS, 1000) == []


def test_coming_back_online_is_found_again(db, make_vendor):
    vendor = make_vendor(lat=LAGOS[0], lng=LAGOS[1])
    vendor_locations_crud.set_vendor_offline(db, vendor)

    vendor_locations_crud.update_vendor_location(db, vendor, *LAGOS)

    assert [r.id for r in find_active_vendors_near(db, *LAGOS, 1000)] == [vendor.id]


def test_location_update_stores_one_row_per_vendor(db, make_vendor):
    vendor = make_vendor()
    for step in range(3):
        vendor_locations_crud.update_vendor_location(db, vendor, 6.5 + step / 100, 3.3)

    assert db.query(VendorLocation).filter(
        VendorLocation.vendor_id == vendor.id).count() == 1
