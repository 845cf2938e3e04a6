"""
Attendance Record Repository - Data access layer for daily attendance records
"""
from typing import Optional, List, Dict, Any
from datetime import date
from sqlalchemy.orm import Session
from sqlalchemy import and_

from atams.db import BaseRepository
from geoattend.models.attendance_record import AttendanceRecord


class AttendanceRecordRepository(BaseRepository[AttendanceRecord]):
    def __init__(self):
        super().__init__(AttendanceRecord)

    def find_for_day(self, db: Session, user_id: int, target_date: date) -> Optional[AttendanceRecord]:
        """Get the user's record for a calendar day using ORM"""
        return db.query(AttendanceRecord).filter(
            and_(
                AttendanceRecord.ar_user_id == user_id,
                AttendanceRecord.ar_date == target_date
            )
        ).first()

    def add_record(self, db: Session, record_data: Dict[str, Any]) -> AttendanceRecord:
        """Insert record and commit, raises IntegrityError on a duplicate day"""
        db_record = AttendanceRecord(**record_data)
        db.add(db_record)
        db.commit()
        db.refresh(db_record)
        return db_record

    def close_record(self, db: Session, record_id: int, update_data: Dict[str, Any]) -> bool:
        """
        Write the clock-out fields only if the record is still open

        Returns False when another request closed the record first.
        """
        updated = db.query(AttendanceRecord).filter(
            and_(
                AttendanceRecord.ar_id == record_id,
                AttendanceRecord.ar_clock_out_at.is_(None)
            )
        ).update(update_data, synchronize_session=False)

        if updated == 0:
            db.rollback()
            return False

        db.commit()
        return True

    def get_records_with_filters(
        self,
        db: Session,
        user_id: int = None,
        date_from: date = None,
        date_to: date = None,
        status: str = None,
        skip: int = 0,
        limit: int = 100,
        sort: str = "desc"
    ) -> List[AttendanceRecord]:
        """Get records with various filters using ORM"""
        query = db.query(AttendanceRecord)

        if user_id:
            query = query.filter(AttendanceRecord.ar_user_id == user_id)
        if date_from:
            query = query.filter(AttendanceRecord.ar_date >= date_from)
        if date_to:
            query = query.filter(AttendanceRecord.ar_date <= date_to)
        if status:
            query = query.filter(AttendanceRecord.ar_status == status)

        # Sorting
        if sort.lower() == "asc":
            query = query.order_by(AttendanceRecord.ar_date.asc(), AttendanceRecord.ar_id.asc())
        else:
            query = query.order_by(AttendanceRecord.ar_date.desc(), AttendanceRecord.ar_id.desc())

        return query.offset(skip).limit(limit).all()

    def count_records_with_filters(
        self,
        db: Session,
        user_id: int = None,
        date_from: date = None,
        date_to: date = None,
        status: str = None
    ) -> int:
        """Count records with filters using native SQL"""
        conditions = []
        params = {}

        if user_id:
            conditions.append("ar_user_id = :user_id")
            params["user_id"] = user_id
        if date_from:
            conditions.append("ar_date >= :date_from")
            params["date_from"] = date_from
        if date_to:
            conditions.append("ar_date <= :date_to")
            params["date_to"] = date_to
        if status:
            conditions.append("ar_status = :status")
            params["status"] = status

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        query = f"""
            SELECT COUNT(*)
            FROM attendance_records
            WHERE {where_clause}
        """

        return self.execute_raw_sql_scalar(db, query, params)
