"""
Attendance error taxonomy

Raw failures from location sources, the camera and the record store are
plain exceptions. The capture state machine translates each of them into an
AttendanceErrorKind; the API layer turns kinds into ATAMS exceptions.
"""
from enum import Enum
from typing import Any, Dict, Optional

from atams.exceptions import (
    AppException,
    BadRequestException,
    ForbiddenException,
    ServiceUnavailableException,
)


class AttendanceErrorKind(str, Enum):
    LOCATION_PERMISSION_DENIED = "LocationPermissionDenied"
    LOCATION_UNAVAILABLE = "LocationUnavailable"
    LOCATION_TIMEOUT = "LocationTimeout"
    CAMERA_UNAVAILABLE = "CameraUnavailable"
    NOT_COMPLIANT = "NotCompliant"
    ALREADY_CLOCKED_IN = "AlreadyClockedIn"
    ALREADY_CLOCKED_OUT = "AlreadyClockedOut"
    NOT_YET_CLOCKED_IN = "NotYetClockedIn"
    PERSISTENCE_FAILURE = "PersistenceFailure"


# Precondition outcomes reflect normal usage, not malfunction
INFORMATIONAL_KINDS = frozenset({
    AttendanceErrorKind.ALREADY_CLOCKED_IN,
    AttendanceErrorKind.ALREADY_CLOCKED_OUT,
    AttendanceErrorKind.NOT_YET_CLOCKED_IN,
})

REMEDIATION_MESSAGES: Dict[AttendanceErrorKind, str] = {
    AttendanceErrorKind.LOCATION_PERMISSION_DENIED: (
        "Location access is blocked. Open the site settings from the address bar, "
        "allow location access and try again."
    ),
    AttendanceErrorKind.LOCATION_UNAVAILABLE: (
        "Your position could not be determined. Move closer to a window or "
        "connect to the office Wi-Fi and try again."
    ),
    AttendanceErrorKind.LOCATION_TIMEOUT: (
        "Getting a GPS fix took too long. Wait a moment outdoors or near a window and try again."
    ),
    AttendanceErrorKind.CAMERA_UNAVAILABLE: (
        "The camera could not be used. Allow camera access or use a device with a front camera."
    ),
    AttendanceErrorKind.NOT_COMPLIANT: (
        "You are outside every authorized location. Move inside an office zone "
        "or join an authorized network."
    ),
    AttendanceErrorKind.ALREADY_CLOCKED_IN: "You have already clocked in today.",
    AttendanceErrorKind.ALREADY_CLOCKED_OUT: "You have already clocked out today.",
    AttendanceErrorKind.NOT_YET_CLOCKED_IN: "Clock in first before clocking out.",
    AttendanceErrorKind.PERSISTENCE_FAILURE: (
        "Your attendance could not be saved. Your photo is kept, please retry."
    ),
}


def remediation_for(kind: AttendanceErrorKind) -> str:
    return REMEDIATION_MESSAGES[kind]


class LocationError(Exception):
    """Base class for location source failures"""
    kind = AttendanceErrorKind.LOCATION_UNAVAILABLE

    def __init__(self, message: str = "Location unavailable"):
        self.message = message
        super().__init__(message)


class PermissionDenied(LocationError):
    kind = AttendanceErrorKind.LOCATION_PERMISSION_DENIED


class LocationUnavailable(LocationError):
    kind = AttendanceErrorKind.LOCATION_UNAVAILABLE


class LocationTimeout(LocationError):
    kind = AttendanceErrorKind.LOCATION_TIMEOUT


class CameraUnavailable(Exception):
    """Camera could not be acquired or produced no usable frame"""

    def __init__(self, message: str = "Camera unavailable"):
        self.message = message
        super().__init__(message)


class AttendanceStoreError(Exception):
    """Attendance record could not be read or written"""


class DuplicateAttendanceError(AttendanceStoreError):
    """A record already exists for the user on that day"""


class ClockOutConflictError(AttendanceStoreError):
    """The record was already closed by an earlier clock-out"""


def to_app_exception(
    kind: AttendanceErrorKind,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> AppException:
    """Map a failed capture to the HTTP exception raised by the API layer"""
    payload = {"kind": kind.value, "remediation": remediation_for(kind)}
    payload.update(details or {})

    if kind == AttendanceErrorKind.NOT_COMPLIANT:
        return ForbiddenException(message, details=payload)
    if kind == AttendanceErrorKind.PERSISTENCE_FAILURE:
        return ServiceUnavailableException(message, details=payload)
    return BadRequestException(message, details=payload)
