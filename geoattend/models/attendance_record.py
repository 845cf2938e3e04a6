"""
Attendance Record Model - One document per user per calendar day
"""
from sqlalchemy import (
    Column, BigInteger, Integer, String, Date, DateTime, Float, UniqueConstraint
)
from sqlalchemy.sql import func
from atams.db import Base


class AttendanceRecord(Base):
    """Attendance record model - Table: attendance_records"""
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("ar_user_id", "ar_date", name="uq_attendance_records_user_date"),
    )

    ar_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True, autoincrement=True)
    ar_user_id = Column(BigInteger, nullable=False, index=True)  # References the SSO user id
    ar_date = Column(Date, nullable=False, index=True)  # Calendar day in ATTENDANCE_TIMEZONE
    ar_status = Column(String(20), nullable=False, default="present")  # 'present' or 'late'

    # Clock-in event; position columns are NULL when only the network authorized it
    ar_clock_in_at = Column(DateTime(timezone=True), nullable=False)
    ar_clock_in_lat = Column(Float, nullable=True)
    ar_clock_in_lon = Column(Float, nullable=True)
    ar_clock_in_accuracy_m = Column(Float, nullable=True)
    ar_clock_in_source = Column(String(10), nullable=True)  # 'gps', 'network' or 'ip'
    ar_clock_in_address = Column(String(512), nullable=True)
    ar_clock_in_device = Column(String(1024), nullable=True)
    ar_clock_in_photo_ref = Column(String(64), nullable=True)
    ar_clock_in_token = Column(String(1024), nullable=True)

    # Clock-out event, NULL until the user clocks out
    ar_clock_out_at = Column(DateTime(timezone=True), nullable=True)
    ar_clock_out_lat = Column(Float, nullable=True)
    ar_clock_out_lon = Column(Float, nullable=True)
    ar_clock_out_accuracy_m = Column(Float, nullable=True)
    ar_clock_out_source = Column(String(10), nullable=True)
    ar_clock_out_address = Column(String(512), nullable=True)
    ar_clock_out_device = Column(String(1024), nullable=True)
    ar_clock_out_photo_ref = Column(String(64), nullable=True)
    ar_clock_out_token = Column(String(1024), nullable=True)

    ar_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ar_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
