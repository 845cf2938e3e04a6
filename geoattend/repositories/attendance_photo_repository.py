"""
Attendance Photo Repository - Data access layer for verification selfies
"""
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from geoattend.models.attendance_photo import AttendancePhoto


class AttendancePhotoRepository(BaseRepository[AttendancePhoto]):
    def __init__(self):
        super().__init__(AttendancePhoto)

    def add_photo(self, db: Session, user_id: int, data: bytes, content_type: str = "image/jpeg") -> AttendancePhoto:
        """
        Stage a photo in the current transaction and assign its id

        The caller commits together with the attendance record so that a
        rejected record never leaves an orphan photo behind.
        """
        photo = AttendancePhoto(
            ap_user_id=user_id,
            ap_content_type=content_type,
            ap_size=len(data),
            ap_data=data,
        )
        db.add(photo)
        db.flush()
        return photo
