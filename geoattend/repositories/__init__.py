from .zone_repository import AllowedZoneRepository
from .network_repository import AllowedNetworkRepository
from .attendance_record_repository import AttendanceRecordRepository
from .attendance_photo_repository import AttendancePhotoRepository

__all__ = [
    "AllowedZoneRepository",
    "AllowedNetworkRepository",
    "AttendanceRecordRepository",
    "AttendancePhotoRepository"
]
