"""
Location Resolver - best-effort current position from GPS, Wi-Fi or IP

Sources are tried in priority order (GPS, network, IP) and each one is
bounded by options.timeout_ms on its own. The first source that yields a fix
wins; when none does, the most informative GPS failure is raised.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Tuple

import httpx
from atams.logging import get_logger

from geoattend.core.errors import (
    LocationError,
    LocationTimeout,
    LocationUnavailable,
    PermissionDenied,
)
from geoattend.schemas.compliance import ReportedPosition
from geoattend.schemas.geo import Coordinate, NetworkIdentity, PositionReading, ResolveOptions

logger = get_logger(__name__)


class GeolocationPositionError(Exception):
    """Failure reported by a geolocation capability"""
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class GeolocationCapability(Protocol):
    async def get_current_position(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Returns {"coords": {"latitude", "longitude"}, "accuracy", "timestamp"?}
        or raises GeolocationPositionError
        """
        ...


class NetworkIdentityCapability(Protocol):
    async def current_network(self) -> Optional[NetworkIdentity]:
        ...


class IpLocator(Protocol):
    async def locate(self) -> Optional[Tuple[Coordinate, Optional[float]]]:
        ...


class ReportedGeolocation:
    """Geolocation capability backed by what the client device reported"""

    def __init__(self, position: Optional[ReportedPosition] = None, error_code: Optional[str] = None):
        self.position = position
        self.error_code = error_code

    async def get_current_position(self, options: Dict[str, Any]) -> Dict[str, Any]:
        if self.error_code:
            raise GeolocationPositionError(self.error_code, "Reported by client")
        if self.position is None:
            raise GeolocationPositionError(
                GeolocationPositionError.POSITION_UNAVAILABLE, "No position reported"
            )
        return {
            "coords": {
                "latitude": self.position.latitude,
                "longitude": self.position.longitude,
            },
            "accuracy": self.position.accuracy_m,
            "timestamp": self.position.captured_at,
        }


class ReportedNetworkIdentity:
    """Network identity capability backed by what the client reported"""

    def __init__(self, network: Optional[NetworkIdentity] = None):
        self.network = network

    async def current_network(self) -> Optional[NetworkIdentity]:
        return self.network


class HttpIpLocator:
    """
    IP geolocation over HTTP

    url_template takes an {ip} placeholder; the response is expected to carry
    latitude/longitude (ipapi.co style) or lat/lon (ip-api.com style).
    """

    def __init__(
        self,
        url_template: str,
        ip: Optional[str] = None,
        accuracy_m: float = 5000.0,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url_template = url_template
        self.ip = ip
        self.accuracy_m = accuracy_m
        self.timeout = timeout
        self.transport = transport

    async def locate(self) -> Optional[Tuple[Coordinate, Optional[float]]]:
        url = self.url_template.format(ip=self.ip or "")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"IP geolocation failed: {e}")
            return None

        if not isinstance(data, dict):
            return None

        latitude = data.get("latitude", data.get("lat"))
        longitude = data.get("longitude", data.get("lon"))
        if latitude is None or longitude is None:
            logger.warning("IP geolocation response has no coordinates")
            return None

        try:
            coords = Coordinate(latitude=float(latitude), longitude=float(longitude))
        except ValueError as e:
            logger.warning(f"IP geolocation returned invalid coordinates: {e}")
            return None
        return coords, self.accuracy_m


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocationResolver:
    def __init__(
        self,
        geolocation: Optional[GeolocationCapability] = None,
        network: Optional[NetworkIdentityCapability] = None,
        ip_locator: Optional[IpLocator] = None,
        clock=_utcnow,
    ) -> None:
        self.geolocation = geolocation
        self.network = network
        self.ip_locator = ip_locator
        self.clock = clock

    async def resolve(self, options: Optional[ResolveOptions] = None) -> PositionReading:
        """
        Obtain the best available PositionReading

        Raises:
            PermissionDenied: GPS was refused and no other source produced a fix
            LocationTimeout: GPS timed out and no other source produced a fix
            LocationUnavailable: every enabled source failed or was skipped
        """
        options = options or ResolveOptions()
        timeout = options.timeout_ms / 1000
        gps_error: Optional[LocationError] = None

        if options.use_gps and self.geolocation is not None:
            try:
                return await asyncio.wait_for(self._from_gps(options), timeout)
            except asyncio.TimeoutError:
                gps_error = LocationTimeout(f"GPS did not respond within {options.timeout_ms}ms")
            except GeolocationPositionError as e:
                gps_error = self._translate(e)
            logger.info(
                "GPS unavailable, falling back",
                extra={"extra_data": {"reason": gps_error.kind.value}}
            )

        if options.use_network and self.network is not None:
            try:
                reading = await asyncio.wait_for(self._from_network(), timeout)
            except asyncio.TimeoutError:
                reading = None
                logger.info("Network identity lookup timed out")
            if reading is not None:
                return reading

        if options.use_ip and self.ip_locator is not None:
            try:
                reading = await asyncio.wait_for(self._from_ip(), timeout)
            except asyncio.TimeoutError:
                reading = None
                logger.info("IP geolocation timed out")
            if reading is not None:
                return reading

        if isinstance(gps_error, (PermissionDenied, LocationTimeout)):
            raise gps_error
        raise LocationUnavailable("No location source produced a position")

    async def read_network(self) -> Optional[NetworkIdentity]:
        """Current SSID/BSSID, None when no capability is available"""
        if self.network is None:
            return None
        return await self.network.current_network()

    async def _from_gps(self, options: ResolveOptions) -> PositionReading:
        result = await self.geolocation.get_current_position({
            "enableHighAccuracy": True,
            "timeout": options.timeout_ms,
            "maximumAge": 0,
        })
        coords = result.get("coords") or {}
        try:
            point = Coordinate(latitude=coords.get("latitude"), longitude=coords.get("longitude"))
        except ValueError as e:
            raise GeolocationPositionError(GeolocationPositionError.POSITION_UNAVAILABLE, str(e))
        return PositionReading(
            coords=point,
            accuracy_m=result.get("accuracy"),
            source="gps",
            captured_at=result.get("timestamp") or self.clock(),
        )

    async def _from_network(self) -> Optional[PositionReading]:
        identity = await self.network.current_network()
        if identity is None or identity.coords is None:
            return None
        return PositionReading(
            coords=identity.coords,
            accuracy_m=identity.accuracy_m,
            source="network",
            captured_at=self.clock(),
        )

    async def _from_ip(self) -> Optional[PositionReading]:
        located = await self.ip_locator.locate()
        if located is None:
            return None
        coords, accuracy = located
        return PositionReading(
            coords=coords,
            accuracy_m=accuracy,
            source="ip",
            captured_at=self.clock(),
        )

    @staticmethod
    def _translate(error: GeolocationPositionError) -> LocationError:
        if error.code == GeolocationPositionError.PERMISSION_DENIED:
            return PermissionDenied(error.message)
        if error.code == GeolocationPositionError.TIMEOUT:
            return LocationTimeout(error.message)
        return LocationUnavailable(error.message)
