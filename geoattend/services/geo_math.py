"""
Great-circle distance and zone containment
"""
import math
from typing import Iterable, Optional, Tuple

from geoattend.schemas.geo import Coordinate
from geoattend.schemas.zone import AllowedZone

EARTH_RADIUS_M = 6371000  # Earth's radius in meters


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """
    Calculate distance between two coordinates using Haversine formula

    Returns:
        float: Distance in meters
    """
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    delta_lat = math.radians(b.latitude - a.latitude)
    delta_lon = math.radians(b.longitude - a.longitude)

    h = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) *
         math.sin(delta_lon / 2) ** 2)
    # Rounding can push h a hair above 1 for antipodal points
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    return EARTH_RADIUS_M * c


def is_within_zone(point: Coordinate, zone: AllowedZone) -> bool:
    """Boundary counts as inside"""
    return distance_meters(point, zone.center) <= zone.radius_m


def nearest_zone(point: Coordinate, zones: Iterable[AllowedZone]) -> Tuple[Optional[AllowedZone], Optional[float]]:
    best: Optional[AllowedZone] = None
    best_distance: Optional[float] = None
    for zone in zones:
        distance = distance_meters(point, zone.center)
        if best_distance is None or distance < best_distance:
            best, best_distance = zone, distance
    return best, best_distance
