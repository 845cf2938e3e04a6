import pytest
from sqlalchemy.exc import OperationalError

from geoattend.api.v1.endpoints.attendance import attendance_service

from tests.conftest import JPEG_BASE64

NEAR_HQ = {"latitude": 17.9667, "longitude": 102.60005, "accuracy_m": 8}
FAR_FROM_HQ = {"latitude": 17.984667, "longitude": 102.6, "accuracy_m": 8}
DEVICE = {
    "user_agent": "Mozilla/5.0 (Linux; Android 14)",
    "platform": "Linux armv8l",
    "screen_width": 412,
    "screen_height": 915,
    "color_depth": 24,
}


def _create_hq(client):
    response = client.post(
        "/api/v1/zones/",
        json={
            "az_id": "hq",
            "az_name": "Head office",
            "az_latitude": 17.966667,
            "az_longitude": 102.6,
            "az_radius_m": 500,
            "az_is_default": True,
        },
    )
    assert response.status_code == 201
    return response.json()["data"]


def _clock(client, action, position=NEAR_HQ, **extra):
    body = {"position": position, "photo_base64": JPEG_BASE64, "device": DEVICE}
    body.update(extra)
    return client.post(f"/api/v1/attendance/{action}", json=body)


def test_compliance_inside_zone(client, admin):
    _create_hq(client)

    response = client.post("/api/v1/attendance/compliance", json={"position": NEAR_HQ})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["reading"]["source"] == "gps"
    assert data["result"]["is_compliant"] is True
    assert data["result"]["method"] == "geofence"
    assert data["result"]["matched_zone"]["id"] == "hq"
    assert data["result"]["distance_to_nearest_m"] < 10


def test_compliance_outside_zone_reports_distance(client, admin):
    _create_hq(client)

    response = client.post("/api/v1/attendance/compliance", json={"position": FAR_FROM_HQ})

    result = response.json()["data"]["result"]
    assert result["is_compliant"] is False
    assert result["nearest_zone"]["name"] == "Head office"
    assert result["distance_to_nearest_m"] == pytest.approx(2000, rel=0.01)


def test_compliance_without_position(client):
    response = client.post("/api/v1/attendance/compliance", json={"position_error": "PERMISSION_DENIED"})

    assert response.status_code == 400
    assert response.json()["details"]["kind"] == "LocationPermissionDenied"


def test_full_day(client, admin):
    _create_hq(client)

    response = _clock(client, "clock-in")
    assert response.status_code == 200
    clocked_in = response.json()["data"]
    assert clocked_in["outcome"] == "success"
    assert clocked_in["message"].startswith("Clocked in at ")
    assert clocked_in["record"]["user_id"] == 101
    assert clocked_in["record"]["status"] in ("present", "late")
    assert clocked_in["record"]["clock_out"] is None
    assert clocked_in["record"]["clock_in"]["device_fingerprint"] == (
        "Mozilla/5.0 (Linux; Android 14)-Linux armv8l-412x915-24"
    )
    assert clocked_in["record"]["clock_in"]["token_value"]
    assert clocked_in["compliance"]["matched_zone"]["id"] == "hq"

    again = _clock(client, "clock-in").json()["data"]
    assert again["outcome"] == "informational"
    assert again["kind"] == "AlreadyClockedIn"

    today = client.get("/api/v1/attendance/today").json()["data"]
    assert today["next_action"] == "clock_out"

    response = _clock(client, "clock-out")
    assert response.status_code == 200
    clocked_out = response.json()["data"]
    assert clocked_out["outcome"] == "success"
    assert clocked_out["record"]["clock_in"] == clocked_in["record"]["clock_in"]
    assert clocked_out["record"]["clock_out"]["position"]["source"] == "gps"

    today = client.get("/api/v1/attendance/today").json()["data"]
    assert today["next_action"] is None

    again = _clock(client, "clock-out").json()["data"]
    assert again["outcome"] == "informational"
    assert again["kind"] == "AlreadyClockedOut"


def test_clock_out_before_clock_in(client, admin):
    _create_hq(client)

    data = _clock(client, "clock-out").json()["data"]

    assert data["outcome"] == "informational"
    assert data["kind"] == "NotYetClockedIn"
    assert client.get("/api/v1/attendance/today").json()["data"]["next_action"] == "clock_in"


def test_clock_in_outside_zone_is_forbidden(client, admin):
    _create_hq(client)

    response = _clock(client, "clock-in", position=FAR_FROM_HQ)

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["details"]["kind"] == "NotCompliant"
    assert body["details"]["nearest_zone"] == "Head office"
    assert body["details"]["distance_to_nearest_m"] == pytest.approx(2000, rel=0.01)
    assert body["details"]["remediation"]
    assert client.get("/api/v1/attendance/today").json()["data"]["record"] is None


def test_clock_in_without_authorized_places(client):
    response = _clock(client, "clock-in")

    assert response.status_code == 403
    assert response.json()["details"]["reason"] == "No authorized locations configured"


def test_clock_in_on_authorized_network(client, admin):
    response = client.post(
        "/api/v1/networks/",
        json={"an_id": "office", "an_name": "Office Wi-Fi", "an_ssid": "OFFICE_WIFI"},
    )
    assert response.status_code == 201

    response = _clock(client, "clock-in", position=FAR_FROM_HQ, network={"ssid": "OFFICE_WIFI"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["compliance"]["method"] == "network"
    assert data["compliance"]["matched_network"]["id"] == "office"


def test_clock_in_on_authorized_network_without_position(client, admin):
    _create_hq(client)
    client.post("/api/v1/networks/", json={"an_id": "office", "an_name": "Office Wi-Fi", "an_ssid": "OFFICE_WIFI"})

    response = client.post(
        "/api/v1/attendance/clock-in",
        json={
            "position_error": "PERMISSION_DENIED",
            "network": {"ssid": "OFFICE_WIFI"},
            "photo_base64": JPEG_BASE64,
            "device": DEVICE,
        },
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["compliance"]["method"] == "network"
    assert data["record"]["clock_in"]["position"] is None


def test_compliance_on_authorized_network_without_position(client, admin):
    client.post("/api/v1/networks/", json={"an_id": "office", "an_name": "Office Wi-Fi", "an_ssid": "OFFICE_WIFI"})

    response = client.post(
        "/api/v1/attendance/compliance",
        json={"position_error": "PERMISSION_DENIED", "network": {"ssid": "OFFICE_WIFI"}},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["reading"] is None
    assert data["result"]["is_compliant"] is True


def test_places_failure_is_unavailable(client, admin, monkeypatch):
    _create_hq(client)

    def broken(db):
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr(attendance_service.zone_service, "active_zones", broken)

    response = _clock(client, "clock-in")
    assert response.status_code == 503
    assert response.json()["details"]["kind"] == "PersistenceFailure"

    response = client.post("/api/v1/attendance/compliance", json={"position": NEAR_HQ})
    assert response.status_code == 503
    assert client.get("/api/v1/attendance/today").json()["data"]["record"] is None

def test_clock_in_location_denied(client, admin):
    _create_hq(client)

    response = client.post(
        "/api/v1/attendance/clock-in",
        json={"position_error": "PERMISSION_DENIED", "photo_base64": JPEG_BASE64},
    )

    assert response.status_code == 400
    assert response.json()["details"]["kind"] == "LocationPermissionDenied"


def test_clock_in_without_photo(client, admin):
    _create_hq(client)

    response = client.post("/api/v1/attendance/clock-in", json={"position": NEAR_HQ})

    assert response.status_code == 400
    assert response.json()["details"]["kind"] == "CameraUnavailable"


def test_rotating_token_is_stable_within_window(client):
    first = client.get("/api/v1/attendance/token").json()["data"]
    second = client.get("/api/v1/attendance/token").json()["data"]

    assert 1 <= first["expires_in"] <= 30
    if first["window_id"] == second["window_id"]:
        assert first["payload"] == second["payload"]


def test_echoed_token_is_stored(client, admin):
    _create_hq(client)
    token = client.get("/api/v1/attendance/token").json()["data"]["payload"]

    data = _clock(client, "clock-in", token=token).json()["data"]

    assert data["record"]["clock_in"]["token_value"] == token


def test_token_of_another_user_is_rejected(client, admin):
    _create_hq(client)
    foreign = attendance_service.get_rotating_token(999).payload

    response = _clock(client, "clock-in", token=foreign)

    assert response.status_code == 400
    assert response.json()["message"] == "Token was issued to another user"


def test_employee_cannot_manage_zones(client):
    response = client.post(
        "/api/v1/zones/",
        json={"az_id": "hq", "az_name": "HQ", "az_latitude": 1, "az_longitude": 1, "az_radius_m": 100},
    )

    assert response.status_code == 403


def test_history(client, admin):
    _create_hq(client)
    _clock(client, "clock-in")

    mine = client.get("/api/v1/attendance/me").json()
    assert mine["total"] == 1
    assert mine["data"][0]["user_id"] == 101

    records = client.get("/api/v1/attendance/records", params={"user_id": 101}).json()
    assert records["total"] == 1
    assert client.get("/api/v1/attendance/records", params={"user_id": 5}).json()["total"] == 0

    response = client.get("/api/v1/attendance/me", params={"date_from": "03-03-2025"})
    assert response.status_code == 400


def test_zone_crud(client, admin):
    created = _create_hq(client)
    assert created["az_is_default"] is True

    response = client.put("/api/v1/zones/hq", json={"az_radius_m": 250})
    assert response.json()["data"]["az_radius_m"] == 250

    assert client.get("/api/v1/zones/").json()["total"] == 1
    assert client.post("/api/v1/zones/", json={
        "az_id": "hq", "az_name": "Again", "az_latitude": 1, "az_longitude": 1, "az_radius_m": 10,
    }).status_code == 409

    assert client.delete("/api/v1/zones/hq").status_code == 204
    assert client.get("/api/v1/zones/hq").status_code == 404
