import json
from typing import Any, Dict, List

from atams import AtamsBaseSettings


class Settings(AtamsBaseSettings):
    """
    Application Settings

    Inherits from AtamsBaseSettings which includes:
    - DATABASE_URL (required)
    - ATLAS_SSO_URL, ATLAS_APP_CODE, ATLAS_ENCRYPTION_KEY, ATLAS_ENCRYPTION_IV
    - ENCRYPTION_ENABLED, ENCRYPTION_KEY, ENCRYPTION_IV (response encryption)
    - LOGGING_ENABLED, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
    - CORS_ORIGINS, CORS_ALLOW_CREDENTIALS, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS
    - RATE_LIMIT_ENABLED, RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW
    - DEBUG

    All settings can be overridden via .env file or by redefining them here.
    """
    APP_NAME: str
    APP_VERSION: str
    DEBUG: bool

    # Rotating token (QR payload)
    TOKEN_JWT_SECRET: str
    TOKEN_JWT_ALG: str
    TOKEN_WINDOW_SECONDS: int
    TOKEN_GRACE_WINDOWS: int

    # Location sources
    LOCATION_USE_GPS: bool
    LOCATION_USE_NETWORK: bool
    LOCATION_USE_IP: bool
    LOCATION_TIMEOUT_MS: int
    POSITION_MAX_AGE_SECONDS: int
    IP_GEOLOCATION_URL: str
    IP_GEOLOCATION_ACCURACY_M: float

    # Reverse geocoding for the record address
    REVERSE_GEOCODING_ENABLED: bool
    REVERSE_GEOCODING_URL: str

    # Attendance day
    ATTENDANCE_TIMEZONE: str
    WORK_START_TIME: str
    LATE_GRACE_MINUTES: int

    # Verification photo
    MAX_PHOTO_BYTES: int

    # Default networks inserted when the networks table is empty
    BOOTSTRAP_NETWORKS: str = "[]"

    @property
    def bootstrap_networks_list(self) -> List[Dict[str, Any]]:
        """Parse BOOTSTRAP_NETWORKS, an empty list when malformed"""
        try:
            entries = json.loads(self.BOOTSTRAP_NETWORKS)
        except ValueError:
            return []
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, dict)]


settings = Settings()
