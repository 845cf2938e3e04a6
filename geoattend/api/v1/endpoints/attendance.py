"""
Attendance Endpoints - rotating token, compliance check, clock-in/out and history
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from geoattend.db.session import get_db
from geoattend.services.attendance_service import AttendanceService
from geoattend.schemas import (
    AttendanceRecord,
    ClockAction,
    ClockRequest,
    ClockResponse,
    ComplianceResponse,
    LocationReport,
    RotatingTokenValue,
    TodayResponse,
    DataResponse,
    PaginationResponse
)
from geoattend.api.deps import require_auth, require_min_role_level
from geoattend.core.config import settings
from atams.encryption import encrypt_response_data
from atams.exceptions import BadRequestException

router = APIRouter()
attendance_service = AttendanceService()


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _parse_date(value: Optional[str], field: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise BadRequestException(f"Invalid {field} format. Use YYYY-MM-DD")


@router.get(
    "/token",
    response_model=DataResponse[RotatingTokenValue],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def get_rotating_token(
    current_user: dict = Depends(require_auth)
):
    """
    Current rotating token for the clock page QR code

    **Authentication:**
    - Requires valid user authentication (role level >= 1)

    **Response:**
    - payload: signed token, identical for every call within a window
    - window_id: floor(epoch / TOKEN_WINDOW_SECONDS)
    - expires_in: seconds until the next window
    """
    token = attendance_service.get_rotating_token(current_user["user_id"])

    response = DataResponse(
        success=True,
        message="Rotating token generated successfully",
        data=token
    )

    return encrypt_response_data(response, settings)


@router.post(
    "/compliance",
    response_model=DataResponse[ComplianceResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def check_compliance(
    report: LocationReport,
    request: Request,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Preliminary compliance check for the reported position

    Used by the clock page to show whether the user is inside a zone and how
    far the nearest zone is. Clocking re-validates on its own.

    **Errors:**
    - 400: No position could be resolved (kind and remediation in details)
    """
    result = await attendance_service.check_compliance(db, report, _client_ip(request))

    return DataResponse(
        success=True,
        message="Compliance evaluated successfully",
        data=result
    )


@router.post(
    "/clock-in",
    response_model=DataResponse[ClockResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def clock_in(
    payload: ClockRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Clock in for today

    **Process:**
    1. Check today's record (already clocked in -> informational outcome)
    2. Resolve position from GPS, Wi-Fi or IP
    3. Accept the uploaded JPEG selfie
    4. Re-evaluate compliance against current zones and networks
    5. Save the record with device fingerprint and rotating token

    **Errors:**
    - 400: Location, photo or token problem
    - 403: Not at an authorized location (nearest zone and distance in details)
    - 503: Record could not be saved
    """
    result = await attendance_service.clock(
        db,
        current_user["user_id"],
        ClockAction.CLOCK_IN,
        payload,
        client_ip=_client_ip(request),
        user_agent=request.headers.get("user-agent")
    )

    return DataResponse(
        success=True,
        message=result.message,
        data=result
    )


@router.post(
    "/clock-out",
    response_model=DataResponse[ClockResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def clock_out(
    payload: ClockRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Clock out of today's record

    Same flow as clock-in; requires a clock-in today and no clock-out yet,
    otherwise the outcome is informational.
    """
    result = await attendance_service.clock(
        db,
        current_user["user_id"],
        ClockAction.CLOCK_OUT,
        payload,
        client_ip=_client_ip(request),
        user_agent=request.headers.get("user-agent")
    )

    return DataResponse(
        success=True,
        message=result.message,
        data=result
    )


@router.get(
    "/today",
    response_model=DataResponse[TodayResponse],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def get_my_today(
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get current user's attendance record for today

    **Response:**
    - record: today's record, null before clock-in
    - next_action: clock_in, clock_out or null when the day is complete
    """
    today = attendance_service.get_today(db, current_user["user_id"])

    response = DataResponse(
        success=True,
        message="Today's record retrieved successfully",
        data=today
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/me",
    response_model=PaginationResponse[AttendanceRecord],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(1))]
)
async def get_my_records(
    date_from: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    limit: int = Query(50, ge=1, le=100, description="Maximum records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get current user's attendance history, newest first
    """
    user_id = current_user["user_id"]
    parsed_date_from = _parse_date(date_from, "date_from")
    parsed_date_to = _parse_date(date_to, "date_to")

    records = attendance_service.list_records(
        db, user_id=user_id, date_from=parsed_date_from, date_to=parsed_date_to,
        skip=offset, limit=limit
    )
    total = attendance_service.count_records(
        db, user_id=user_id, date_from=parsed_date_from, date_to=parsed_date_to
    )

    response = PaginationResponse(
        success=True,
        message="Attendance history retrieved successfully",
        data=records,
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/records",
    response_model=PaginationResponse[AttendanceRecord],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def get_records_admin(
    user_id: Optional[int] = Query(None, description="Filter by user ID"),
    date_from: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    status: Optional[str] = Query(None, pattern="^(present|late)$", description="Filter by status"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    sort: str = Query("desc", pattern="^(asc|desc)$", description="Sort order by date"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get attendance records (Admin only)

    **Authentication:**
    - Requires role level >= 50 (Admin or above)

    **Query Parameters:**
    - user_id: Filter by specific user
    - date_from/date_to: Date range filter (YYYY-MM-DD)
    - status: present or late
    - limit: Max records (1-1000, default 100)
    - offset: Skip records (default 0)
    - sort: asc or desc (default desc)
    """
    parsed_date_from = _parse_date(date_from, "date_from")
    parsed_date_to = _parse_date(date_to, "date_to")

    records = attendance_service.list_records(
        db, user_id, parsed_date_from, parsed_date_to, status, offset, limit, sort
    )
    total = attendance_service.count_records(
        db, user_id, parsed_date_from, parsed_date_to, status
    )

    response = PaginationResponse(
        success=True,
        message="Attendance records retrieved successfully",
        data=records,
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)
