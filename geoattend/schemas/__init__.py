from atams.schemas import DataResponse, PaginationResponse

from .geo import Coordinate, PositionReading, NetworkIdentity, ResolveOptions
from .zone import AllowedZone, Zone, ZoneCreate, ZoneUpdate
from .network import AllowedNetwork, Network, NetworkCreate, NetworkUpdate
from .compliance import (
    ComplianceResult,
    ComplianceResponse,
    LocationReport,
    ReportedPosition
)
from .token import RotatingTokenValue
from .attendance import (
    AttendanceRecord,
    ClockAction,
    ClockCapture,
    ClockEvent,
    ClockRequest,
    ClockResponse,
    DeviceProperties,
    TodayResponse
)

__all__ = [
    # Geo value types
    "Coordinate",
    "PositionReading",
    "NetworkIdentity",
    "ResolveOptions",
    # Zone schemas
    "AllowedZone",
    "Zone",
    "ZoneCreate",
    "ZoneUpdate",
    # Network schemas
    "AllowedNetwork",
    "Network",
    "NetworkCreate",
    "NetworkUpdate",
    # Compliance schemas
    "ComplianceResult",
    "ComplianceResponse",
    "LocationReport",
    "ReportedPosition",
    # Token
    "RotatingTokenValue",
    # Attendance schemas
    "AttendanceRecord",
    "ClockAction",
    "ClockCapture",
    "ClockEvent",
    "ClockRequest",
    "ClockResponse",
    "DeviceProperties",
    "TodayResponse",
    # Common schemas
    "DataResponse",
    "PaginationResponse"
]
