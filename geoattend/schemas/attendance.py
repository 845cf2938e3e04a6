"""
Attendance Schemas for records, clock events and clock requests
"""
from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from geoattend.schemas.common import ensure_utc
from geoattend.schemas.compliance import ComplianceResult, LocationReport
from geoattend.schemas.geo import Coordinate, PositionReading


class ClockAction(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"


class DeviceProperties(BaseModel):
    """Stable environment properties reported by the browser"""
    user_agent: Optional[str] = None
    platform: Optional[str] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    color_depth: Optional[int] = None


class ClockEvent(BaseModel):
    time: datetime
    # None when an authorized network stood in for a position fix
    position: Optional[PositionReading] = None
    address: Optional[str] = None
    device_fingerprint: Optional[str] = None
    photo_ref: Optional[str] = None
    token_value: Optional[str] = None


class ClockCapture(BaseModel):
    """Everything the capture flow hands to the record store for one event"""
    model_config = ConfigDict(frozen=True)

    time: datetime
    reading: Optional[PositionReading] = None
    address: Optional[str] = None
    device_fingerprint: str
    photo: bytes
    token_value: str


def _clock_event(obj, prefix: str) -> Optional[ClockEvent]:
    occurred_at = getattr(obj, f"{prefix}_at")
    if occurred_at is None:
        return None
    occurred_at = ensure_utc(occurred_at)
    position = None
    if getattr(obj, f"{prefix}_lat") is not None:
        position = PositionReading(
            coords=Coordinate(
                latitude=getattr(obj, f"{prefix}_lat"),
                longitude=getattr(obj, f"{prefix}_lon"),
            ),
            accuracy_m=getattr(obj, f"{prefix}_accuracy_m"),
            source=getattr(obj, f"{prefix}_source"),
            captured_at=occurred_at,
        )
    return ClockEvent(
        time=occurred_at,
        position=position,
        address=getattr(obj, f"{prefix}_address"),
        device_fingerprint=getattr(obj, f"{prefix}_device"),
        photo_ref=getattr(obj, f"{prefix}_photo_ref"),
        token_value=getattr(obj, f"{prefix}_token"),
    )


class AttendanceRecord(BaseModel):
    """One user's attendance for one calendar day"""
    id: int
    user_id: int
    date: date
    status: str
    clock_in: ClockEvent
    clock_out: Optional[ClockEvent] = None

    @classmethod
    def from_model(cls, obj) -> "AttendanceRecord":
        return cls(
            id=obj.ar_id,
            user_id=obj.ar_user_id,
            date=obj.ar_date,
            status=obj.ar_status,
            clock_in=_clock_event(obj, "ar_clock_in"),
            clock_out=_clock_event(obj, "ar_clock_out"),
        )


# Request/Response schemas for API endpoints
class ClockRequest(LocationReport):
    """Request schema for clock-in and clock-out endpoints"""
    device: Optional[DeviceProperties] = None
    photo_base64: Optional[str] = Field(default=None, description="JPEG selfie, raw base64 or data URL")
    token: Optional[str] = Field(default=None, description="Rotating token shown on the clock page")


class ClockResponse(BaseModel):
    """Response schema for clock-in and clock-out endpoints"""
    outcome: Literal["success", "informational"]
    action: ClockAction
    kind: Optional[str] = None
    message: str
    record: Optional[AttendanceRecord] = None
    compliance: Optional[ComplianceResult] = None


class TodayResponse(BaseModel):
    """Response schema for today's record"""
    date: date
    record: Optional[AttendanceRecord] = None
    next_action: Optional[ClockAction] = None
