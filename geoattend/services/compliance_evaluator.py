"""
Compliance Evaluator - decides whether a reading may back a clock event
"""
from typing import Optional, Sequence

from atams.logging import get_logger

from geoattend.schemas.compliance import ComplianceResult
from geoattend.schemas.geo import NetworkIdentity, PositionReading
from geoattend.schemas.network import AllowedNetwork
from geoattend.schemas.zone import AllowedZone
from geoattend.services.geo_math import distance_meters, nearest_zone

logger = get_logger(__name__)

NO_AUTHORIZED_LOCATIONS = "No authorized locations configured"
NO_POSITION = "Position unknown and not connected to an authorized network"


def match_network(
    network: Optional[NetworkIdentity],
    allowed_networks: Sequence[AllowedNetwork],
) -> Optional[AllowedNetwork]:
    """SSID must be equal; BSSID too unless the allowed entry leaves it empty"""
    if network is None:
        return None
    for allowed in allowed_networks:
        if allowed.ssid != network.ssid:
            continue
        if not allowed.bssid:
            return allowed
        if allowed.bssid == network.bssid:
            return allowed
    return None


def evaluate(
    reading: Optional[PositionReading],
    zones: Sequence[AllowedZone],
    network: Optional[NetworkIdentity] = None,
    allowed_networks: Optional[Sequence[AllowedNetwork]] = None,
) -> ComplianceResult:
    """
    Check a reading against the authorized zones and networks

    Rules:
    - Being on an authorized network is sufficient, whatever the distance
    - Otherwise the reading must fall inside at least one zone; the closest
      containing zone is reported as the match
    - nearest_zone is filled whenever a reading and a zone exist, so callers
      can show "N meters away"
    """
    allowed_networks = allowed_networks or []

    if not zones and not allowed_networks:
        logger.warning("Compliance refused: no zones or networks configured")
        return ComplianceResult(is_compliant=False, reason=NO_AUTHORIZED_LOCATIONS)

    closest, closest_distance = (None, None)
    if reading is not None:
        closest, closest_distance = nearest_zone(reading.coords, zones)

    matched_network = match_network(network, allowed_networks)
    if matched_network is not None:
        logger.info(
            "Compliant by network",
            extra={"extra_data": {"network_id": matched_network.id, "ssid": matched_network.ssid}}
        )
        return ComplianceResult(
            is_compliant=True,
            method="network",
            matched_network=matched_network,
            nearest_zone=closest,
            distance_to_nearest_m=closest_distance,
        )

    if reading is None:
        return ComplianceResult(is_compliant=False, reason=NO_POSITION)

    containing = [
        (distance_meters(reading.coords, zone.center), zone)
        for zone in zones
    ]
    containing = [(d, zone) for d, zone in containing if d <= zone.radius_m]
    if containing:
        distance, zone = min(containing, key=lambda item: item[0])
        logger.info(
            "Compliant by geofence",
            extra={"extra_data": {"zone_id": zone.id, "distance_m": round(distance, 1)}}
        )
        return ComplianceResult(
            is_compliant=True,
            method="geofence",
            matched_zone=zone,
            nearest_zone=closest,
            distance_to_nearest_m=closest_distance,
        )

    if closest is not None:
        reason = f"Outside authorized zones ({closest_distance:.0f}m from {closest.name})"
    else:
        reason = "Not connected to an authorized network"
    logger.info(
        "Not compliant",
        extra={"extra_data": {
            "nearest_zone": closest.id if closest else None,
            "distance_m": round(closest_distance, 1) if closest_distance is not None else None,
            "source": reading.source,
        }}
    )
    return ComplianceResult(
        is_compliant=False,
        nearest_zone=closest,
        distance_to_nearest_m=closest_distance,
        reason=reason,
    )


class ComplianceEvaluator:
    """Thin object wrapper so the capture flow can take an evaluator as a dependency"""

    def evaluate(
        self,
        reading: Optional[PositionReading],
        zones: Sequence[AllowedZone],
        network: Optional[NetworkIdentity] = None,
        allowed_networks: Optional[Sequence[AllowedNetwork]] = None,
    ) -> ComplianceResult:
        return evaluate(reading, zones, network, allowed_networks)
