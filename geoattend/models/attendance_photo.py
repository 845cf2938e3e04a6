"""
Attendance Photo Model - Verification selfies referenced by attendance records
"""
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, LargeBinary
from sqlalchemy.sql import func
from atams.db import Base


class AttendancePhoto(Base):
    """Attendance photo model - Table: attendance_photos"""
    __tablename__ = "attendance_photos"

    ap_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True, autoincrement=True)
    ap_user_id = Column(BigInteger, nullable=False, index=True)
    ap_content_type = Column(String(50), nullable=False, default="image/jpeg")
    ap_size = Column(Integer, nullable=False)
    ap_data = Column(LargeBinary, nullable=False)
    ap_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
