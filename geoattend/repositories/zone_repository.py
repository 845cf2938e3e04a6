"""
Allowed Zone Repository - Data access layer for geofence zones
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func

from atams.db import BaseRepository
from geoattend.models.allowed_zone import AllowedZone


class AllowedZoneRepository(BaseRepository[AllowedZone]):
    def __init__(self):
        super().__init__(AllowedZone)

    def get_by_id(self, db: Session, zone_id: str) -> Optional[AllowedZone]:
        """Get zone by ID using ORM"""
        return db.query(AllowedZone).filter(AllowedZone.az_id == zone_id).first()

    def list_all(self, db: Session) -> List[AllowedZone]:
        """All zones, default zone first"""
        return db.query(AllowedZone).order_by(
            AllowedZone.az_is_default.desc(), AllowedZone.az_id.asc()
        ).all()

    def get_zones_with_search(self, db: Session, search: str = "", skip: int = 0, limit: int = 100) -> List[AllowedZone]:
        """Get zones with optional name filter using ORM"""
        query = db.query(AllowedZone)

        if search:
            query = query.filter(func.lower(AllowedZone.az_name).like(f"%{search.lower()}%"))

        return query.order_by(AllowedZone.az_id.asc()).offset(skip).limit(limit).all()

    def count_zones_with_search(self, db: Session, search: str = "") -> int:
        """Count zones with optional name filter using native SQL"""
        if search:
            query = """
                SELECT COUNT(*)
                FROM allowed_zones
                WHERE LOWER(az_name) LIKE :search
            """
            return self.execute_raw_sql_scalar(db, query, {"search": f"%{search.lower()}%"})
        else:
            query = "SELECT COUNT(*) FROM allowed_zones"
            return self.execute_raw_sql_scalar(db, query)

    def check_zone_exists(self, db: Session, zone_id: str) -> bool:
        """Check if zone exists using native SQL"""
        query = "SELECT 1 FROM allowed_zones WHERE az_id = :zone_id LIMIT 1"
        result = self.execute_raw_sql_scalar(db, query, {"zone_id": zone_id})
        return result is not None

    def delete_by_id(self, db: Session, zone_id: str) -> bool:
        """Delete zone by ID and return success status"""
        zone = self.get_by_id(db, zone_id)
        if zone:
            db.delete(zone)
            db.commit()
            return True
        return False

    def clear_default(self, db: Session, keep_id: str) -> None:
        """Unset the default flag on every other zone, committed by the caller"""
        db.query(AllowedZone).filter(
            AllowedZone.az_id != keep_id,
            AllowedZone.az_is_default.is_(True)
        ).update({"az_is_default": False}, synchronize_session=False)
