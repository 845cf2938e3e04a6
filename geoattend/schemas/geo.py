"""
Geographic value types shared by the location, compliance and capture services
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from geoattend.schemas.common import ensure_utc

PositionSource = Literal["gps", "network", "ip"]


class Coordinate(BaseModel):
    """A point on Earth in decimal degrees"""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class PositionReading(BaseModel):
    """One position fix; a fresh reading backs every compliance decision"""
    model_config = ConfigDict(frozen=True)

    coords: Coordinate
    accuracy_m: Optional[float] = Field(default=None, ge=0)
    source: PositionSource
    captured_at: datetime

    @field_validator("captured_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def age_seconds(self, now: datetime) -> float:
        return (ensure_utc(now) - self.captured_at).total_seconds()


class NetworkIdentity(BaseModel):
    """
    Currently associated Wi-Fi network

    coords is only present when the platform can position itself from the
    access point (Wi-Fi positioning); the SSID/BSSID alone is still enough for
    network-based compliance.
    """
    model_config = ConfigDict(frozen=True)

    ssid: str = Field(min_length=1, max_length=64)
    bssid: Optional[str] = Field(default=None, max_length=17)
    coords: Optional[Coordinate] = None
    accuracy_m: Optional[float] = Field(default=None, ge=0)


class ResolveOptions(BaseModel):
    """Which sources the location resolver may try and how long each may take"""
    use_gps: bool = True
    use_network: bool = True
    use_ip: bool = True
    timeout_ms: int = Field(default=10000, gt=0)
