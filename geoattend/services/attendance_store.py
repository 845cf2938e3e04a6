"""
Attendance Record Store - one record per user per calendar day
"""
from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from atams.logging import get_logger

from geoattend.core.config import settings
from geoattend.core.errors import (
    AttendanceStoreError,
    ClockOutConflictError,
    DuplicateAttendanceError,
)
from geoattend.repositories.attendance_photo_repository import AttendancePhotoRepository
from geoattend.repositories.attendance_record_repository import AttendanceRecordRepository
from geoattend.schemas.attendance import AttendanceRecord, ClockCapture
from geoattend.schemas.common import ensure_utc

logger = get_logger(__name__)

STATUS_PRESENT = "present"
STATUS_LATE = "late"


class AttendanceRecordStore(Protocol):
    async def find_for_day(self, user_id: int, day: date) -> Optional[AttendanceRecord]:
        ...

    async def create_clock_in(self, user_id: int, day: date, capture: ClockCapture) -> AttendanceRecord:
        """Raises DuplicateAttendanceError when the day already has a record"""
        ...

    async def record_clock_out(self, record_id: int, capture: ClockCapture) -> AttendanceRecord:
        """Raises ClockOutConflictError when the record is already closed"""
        ...


def attendance_day(now: datetime, tz_name: str) -> date:
    """Calendar day of an instant in the attendance timezone"""
    return ensure_utc(now).astimezone(ZoneInfo(tz_name)).date()


def attendance_status(clock_in_at: datetime, tz_name: str, work_start: str, grace_minutes: int) -> str:
    """present, or late when clocking in after work start plus grace"""
    tz = ZoneInfo(tz_name)
    local = ensure_utc(clock_in_at).astimezone(tz)
    start = datetime.combine(local.date(), time.fromisoformat(work_start), tzinfo=tz)
    if local > start + timedelta(minutes=grace_minutes):
        return STATUS_LATE
    return STATUS_PRESENT


def _event_columns(prefix: str, photo_ref: str, capture: ClockCapture) -> dict:
    reading = capture.reading
    return {
        f"{prefix}_at": capture.time,
        f"{prefix}_lat": reading.coords.latitude if reading else None,
        f"{prefix}_lon": reading.coords.longitude if reading else None,
        f"{prefix}_accuracy_m": reading.accuracy_m if reading else None,
        f"{prefix}_source": reading.source if reading else None,
        f"{prefix}_address": capture.address,
        f"{prefix}_device": capture.device_fingerprint,
        f"{prefix}_photo_ref": photo_ref,
        f"{prefix}_token": capture.token_value,
    }


class SqlAttendanceRecordStore:
    """AttendanceRecordStore over the attendance_records and attendance_photos tables"""

    def __init__(
        self,
        db: Session,
        timezone: Optional[str] = None,
        work_start: Optional[str] = None,
        late_grace_minutes: Optional[int] = None,
    ) -> None:
        self.db = db
        self.timezone = timezone or settings.ATTENDANCE_TIMEZONE
        self.work_start = work_start or settings.WORK_START_TIME
        self.late_grace_minutes = (
            settings.LATE_GRACE_MINUTES if late_grace_minutes is None else late_grace_minutes
        )
        self.record_repo = AttendanceRecordRepository()
        self.photo_repo = AttendancePhotoRepository()

    async def find_for_day(self, user_id: int, day: date) -> Optional[AttendanceRecord]:
        try:
            obj = self.record_repo.find_for_day(self.db, user_id, day)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read attendance record: {e}")
            raise AttendanceStoreError("Attendance record could not be read") from e
        return AttendanceRecord.from_model(obj) if obj else None

    async def create_clock_in(self, user_id: int, day: date, capture: ClockCapture) -> AttendanceRecord:
        try:
            photo = self.photo_repo.add_photo(self.db, user_id, capture.photo)
            record_data = {
                "ar_user_id": user_id,
                "ar_date": day,
                "ar_status": attendance_status(
                    capture.time, self.timezone, self.work_start, self.late_grace_minutes
                ),
            }
            record_data.update(_event_columns("ar_clock_in", str(photo.ap_id), capture))
            obj = self.record_repo.add_record(self.db, record_data)
        except IntegrityError as e:
            self.db.rollback()
            logger.info(
                "Duplicate clock-in rejected",
                extra={"extra_data": {"user_id": user_id, "date": day.isoformat()}}
            )
            raise DuplicateAttendanceError(f"User {user_id} already has a record for {day}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Failed to save clock-in: {e}",
                extra={"extra_data": {"user_id": user_id, "date": day.isoformat()}}
            )
            raise AttendanceStoreError("Clock-in could not be saved") from e

        logger.info(
            "Clock-in saved",
            extra={"extra_data": {"record_id": obj.ar_id, "user_id": user_id, "status": obj.ar_status}}
        )
        return AttendanceRecord.from_model(obj)

    async def record_clock_out(self, record_id: int, capture: ClockCapture) -> AttendanceRecord:
        try:
            existing = self.record_repo.get(self.db, record_id)
            if existing is None:
                raise AttendanceStoreError(f"Attendance record {record_id} not found")
            photo = self.photo_repo.add_photo(self.db, existing.ar_user_id, capture.photo)
            closed = self.record_repo.close_record(
                self.db, record_id, _event_columns("ar_clock_out", str(photo.ap_id), capture)
            )
            obj = self.record_repo.get(self.db, record_id) if closed else None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Failed to save clock-out: {e}",
                extra={"extra_data": {"record_id": record_id}}
            )
            raise AttendanceStoreError("Clock-out could not be saved") from e

        if not closed:
            raise ClockOutConflictError(f"Attendance record {record_id} is already closed")

        logger.info("Clock-out saved", extra={"extra_data": {"record_id": record_id}})
        return AttendanceRecord.from_model(obj)
