from geoattend.schemas.network import NetworkCreate
from geoattend.services.network_service import NetworkService


def test_bootstrap_seeds_empty_table(db_session):
    service = NetworkService()

    inserted = service.bootstrap_defaults(db_session, [
        {"ssid": "OFFICE_WIFI", "bssid": "AA:BB:CC:DD:EE:FF", "name": "Office"},
        {"ssid": "OFFICE_WIFI"},
        {"name": "no ssid"},
        {"id": "guest", "ssid": "GUEST"},
    ])

    assert inserted == 2
    networks = {n.id: n for n in service.active_networks(db_session)}
    assert networks["OFFICE_WIFI"].bssid == "AA:BB:CC:DD:EE:FF"
    assert networks["guest"].name == "GUEST"


def test_bootstrap_leaves_existing_networks_alone(db_session):
    service = NetworkService()
    service.create_network(db_session, NetworkCreate(an_id="hq", an_name="HQ", an_ssid="HQ_WIFI"))

    assert service.bootstrap_defaults(db_session, [{"ssid": "OFFICE_WIFI"}]) == 0
    assert [n.ssid for n in service.active_networks(db_session)] == ["HQ_WIFI"]


def test_blank_bssid_is_stored_as_none(db_session):
    service = NetworkService()

    created = service.create_network(
        db_session, NetworkCreate(an_id="hq", an_name="HQ", an_ssid="HQ_WIFI", an_bssid="  ")
    )

    assert created.an_bssid is None
    assert service.active_networks(db_session)[0].bssid is None


def test_bootstrap_blank_bssid_means_ssid_only(db_session):
    service = NetworkService()

    service.bootstrap_defaults(db_session, [{"ssid": "OFFICE_WIFI", "bssid": ""}])

    assert service.active_networks(db_session)[0].bssid is None
