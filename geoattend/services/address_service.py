"""
Reverse geocoding for the address stored with each clock event
"""
from typing import Optional

import httpx
from atams.logging import get_logger

from geoattend.core.config import settings
from geoattend.schemas.geo import Coordinate

logger = get_logger(__name__)

ADDRESS_FALLBACK = "Unable to determine address"


class AddressResolver:
    """Nominatim reverse lookup; never raises, failures yield a fixed text"""

    def __init__(
        self,
        url: str = None,
        enabled: bool = None,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport = None,
    ) -> None:
        self.url = url or settings.REVERSE_GEOCODING_URL
        self.enabled = settings.REVERSE_GEOCODING_ENABLED if enabled is None else enabled
        self.timeout = timeout
        self.transport = transport

    async def lookup(self, coords: Coordinate) -> Optional[str]:
        """Display address, None when reverse geocoding is switched off"""
        if not self.enabled:
            return None

        params = {
            "format": "json",
            "lat": coords.latitude,
            "lon": coords.longitude,
            "zoom": 18,
            "addressdetails": 1,
        }
        # Nominatim usage policy requires an identifying User-Agent
        headers = {"User-Agent": f"{settings.APP_NAME}/{settings.APP_VERSION}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.url, params=params, headers=headers)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Reverse geocoding failed: {e}")
            return ADDRESS_FALLBACK

        if not isinstance(data, dict):
            return ADDRESS_FALLBACK
        return data.get("display_name") or ADDRESS_FALLBACK
