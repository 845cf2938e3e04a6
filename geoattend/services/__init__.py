from .zone_service import ZoneService
from .network_service import NetworkService
from .attendance_service import AttendanceService

__all__ = [
    "ZoneService",
    "NetworkService",
    "AttendanceService"
]
