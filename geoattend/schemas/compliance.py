"""
Compliance Schemas - evaluator result and location reports sent by clients
"""
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from geoattend.schemas.geo import NetworkIdentity, PositionReading
from geoattend.schemas.network import AllowedNetwork
from geoattend.schemas.zone import AllowedZone

GeolocationErrorCode = Literal["PERMISSION_DENIED", "POSITION_UNAVAILABLE", "TIMEOUT"]


class ComplianceResult(BaseModel):
    """Outcome of checking one reading against the authorized places"""
    is_compliant: bool
    method: Optional[Literal["network", "geofence"]] = None
    matched_zone: Optional[AllowedZone] = None
    matched_network: Optional[AllowedNetwork] = None
    nearest_zone: Optional[AllowedZone] = None
    distance_to_nearest_m: Optional[float] = None
    reason: Optional[str] = None

    def diagnostics(self) -> Dict[str, Any]:
        """Fields shown to the user when clocking is refused"""
        return {
            "reason": self.reason,
            "nearest_zone": self.nearest_zone.name if self.nearest_zone else None,
            "distance_to_nearest_m": (
                round(self.distance_to_nearest_m) if self.distance_to_nearest_m is not None else None
            ),
        }


class ReportedPosition(BaseModel):
    """GPS fix obtained by the client device"""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy_m: Optional[float] = Field(default=None, ge=0)
    captured_at: Optional[datetime] = None


class LocationReport(BaseModel):
    """
    What the client could observe about its location

    position_error carries the browser geolocation error code when the
    device refused or failed to produce a fix.
    """
    position: Optional[ReportedPosition] = None
    position_error: Optional[GeolocationErrorCode] = None
    network: Optional[NetworkIdentity] = None


class ComplianceResponse(BaseModel):
    # None when no source produced a fix but the network is authorized
    reading: Optional[PositionReading] = None
    result: ComplianceResult
