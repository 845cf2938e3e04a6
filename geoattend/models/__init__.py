from .allowed_zone import AllowedZone
from .allowed_network import AllowedNetwork
from .attendance_record import AttendanceRecord
from .attendance_photo import AttendancePhoto

__all__ = [
    "AllowedZone",
    "AllowedNetwork",
    "AttendanceRecord",
    "AttendancePhoto"
]
