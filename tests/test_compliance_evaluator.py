from datetime import datetime, timezone

import pytest

from geoattend.schemas.geo import Coordinate, NetworkIdentity, PositionReading
from geoattend.schemas.network import AllowedNetwork
from geoattend.schemas.zone import AllowedZone
from geoattend.services.compliance_evaluator import (
    NO_AUTHORIZED_LOCATIONS,
    evaluate,
    match_network,
)

HEAD_OFFICE = AllowedZone(
    id="HQ",
    name="Head office",
    center=Coordinate(latitude=17.966667, longitude=102.600000),
    radius_m=500,
    is_default=True,
)
BRANCH = AllowedZone(
    id="BR1",
    name="Branch 1",
    center=Coordinate(latitude=18.0, longitude=102.65),
    radius_m=300,
)
OFFICE_WIFI = AllowedNetwork(id="office", name="Office", ssid="OFFICE_WIFI", bssid=None)
PINNED_WIFI = AllowedNetwork(id="pinned", name="Pinned AP", ssid="STAFF_WIFI", bssid="AA:BB:CC:DD:EE:FF")


def _reading(lat, lon, source="gps"):
    return PositionReading(
        coords=Coordinate(latitude=lat, longitude=lon),
        accuracy_m=10,
        source=source,
        captured_at=datetime(2025, 3, 3, 8, 0, tzinfo=timezone.utc),
    )


def test_reading_inside_zone_is_compliant():
    result = evaluate(_reading(17.966700, 102.600050), [HEAD_OFFICE])

    assert result.is_compliant
    assert result.method == "geofence"
    assert result.matched_zone == HEAD_OFFICE
    assert result.nearest_zone == HEAD_OFFICE
    assert result.distance_to_nearest_m == pytest.approx(6.3, abs=1.0)


def test_reading_two_km_away_is_not_compliant():
    # 0.018 degrees of latitude is roughly 2 km
    result = evaluate(_reading(17.966667 + 0.018, 102.6), [HEAD_OFFICE])

    assert not result.is_compliant
    assert result.matched_zone is None
    assert result.nearest_zone == HEAD_OFFICE
    assert result.distance_to_nearest_m == pytest.approx(2000, rel=0.01)
    assert "Head office" in result.reason


def test_inside_one_of_several_zones():
    result = evaluate(_reading(18.0005, 102.6501), [HEAD_OFFICE, BRANCH])

    assert result.is_compliant
    assert result.matched_zone == BRANCH


def test_closest_containing_zone_is_matched():
    wide = AllowedZone(id="WIDE", name="Campus", center=Coordinate(latitude=17.97, longitude=102.6), radius_m=5000)

    result = evaluate(_reading(17.966700, 102.600050), [wide, HEAD_OFFICE])

    assert result.matched_zone == HEAD_OFFICE


def test_network_match_overrides_distance():
    far_away = _reading(13.7563, 100.5018)
    network = NetworkIdentity(ssid="OFFICE_WIFI", bssid="11:22:33:44:55:66")

    result = evaluate(far_away, [HEAD_OFFICE], network, [OFFICE_WIFI])

    assert result.is_compliant
    assert result.method == "network"
    assert result.matched_network == OFFICE_WIFI
    assert result.nearest_zone == HEAD_OFFICE
    assert result.distance_to_nearest_m > 500000


def test_network_match_without_zones_or_reading():
    network = NetworkIdentity(ssid="OFFICE_WIFI")

    result = evaluate(None, [], network, [OFFICE_WIFI])

    assert result.is_compliant
    assert result.nearest_zone is None


def test_pinned_bssid_must_match():
    assert match_network(NetworkIdentity(ssid="STAFF_WIFI", bssid="AA:BB:CC:DD:EE:FF"), [PINNED_WIFI]) == PINNED_WIFI
    assert match_network(NetworkIdentity(ssid="STAFF_WIFI", bssid="aa:bb:cc:dd:ee:ff"), [PINNED_WIFI]) is None
    assert match_network(NetworkIdentity(ssid="STAFF_WIFI", bssid="00:00:00:00:00:01"), [PINNED_WIFI]) is None
    assert match_network(NetworkIdentity(ssid="STAFF_WIFI"), [PINNED_WIFI]) is None


def test_ssid_must_match_exactly():
    assert match_network(NetworkIdentity(ssid="office_wifi"), [OFFICE_WIFI]) is None
    assert match_network(None, [OFFICE_WIFI]) is None


def test_unmatched_network_falls_back_to_geofence():
    network = NetworkIdentity(ssid="GUEST_WIFI")

    result = evaluate(_reading(17.966700, 102.600050), [HEAD_OFFICE], network, [OFFICE_WIFI])

    assert result.is_compliant
    assert result.method == "geofence"


def test_nothing_configured_is_never_compliant():
    result = evaluate(_reading(17.966700, 102.600050), [], NetworkIdentity(ssid="OFFICE_WIFI"), [])

    assert not result.is_compliant
    assert result.reason == NO_AUTHORIZED_LOCATIONS


def test_no_reading_and_no_network_match():
    result = evaluate(None, [HEAD_OFFICE], None, [OFFICE_WIFI])

    assert not result.is_compliant
    assert result.reason


def test_only_networks_configured_and_no_match():
    result = evaluate(_reading(17.966700, 102.600050), [], NetworkIdentity(ssid="GUEST_WIFI"), [OFFICE_WIFI])

    assert not result.is_compliant
    assert result.nearest_zone is None
    assert result.reason == "Not connected to an authorized network"


def test_diagnostics_for_refusal():
    result = evaluate(_reading(17.966667 + 0.018, 102.6), [HEAD_OFFICE])

    diagnostics = result.diagnostics()

    assert diagnostics["nearest_zone"] == "Head office"
    assert diagnostics["distance_to_nearest_m"] == pytest.approx(2000, rel=0.01)


def test_blank_bssid_accepts_any_access_point():
    legacy = AllowedNetwork(id="legacy", name="Legacy", ssid="OFFICE_WIFI", bssid="")

    assert match_network(NetworkIdentity(ssid="OFFICE_WIFI", bssid="11:22:33:44:55:66"), [legacy]) == legacy
