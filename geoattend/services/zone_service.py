"""
Zone Service - Business logic for allowed zone management
"""
from typing import List
from sqlalchemy.orm import Session

from geoattend.repositories.zone_repository import AllowedZoneRepository
from geoattend.schemas.zone import AllowedZone, Zone, ZoneCreate, ZoneUpdate
from atams.exceptions import (
    NotFoundException,
    ConflictException,
)
from atams.logging import get_logger

logger = get_logger(__name__)


class ZoneService:
    def __init__(self) -> None:
        self.repo = AllowedZoneRepository()

    def list_zones(self, db: Session, search: str = "", skip: int = 0, limit: int = 100) -> List[Zone]:
        zones = self.repo.get_zones_with_search(db, search=search, skip=skip, limit=limit)
        return [Zone.model_validate(z) for z in zones]

    def count_zones(self, db: Session, search: str = "") -> int:
        return self.repo.count_zones_with_search(db, search=search)

    def active_zones(self, db: Session) -> List[AllowedZone]:
        """Every zone, as read by the compliance evaluator"""
        return [AllowedZone.from_model(z) for z in self.repo.list_all(db)]

    def get_zone(self, db: Session, az_id: str) -> Zone:
        zone = self.repo.get_by_id(db, az_id)
        if not zone:
            raise NotFoundException("Zone not found")
        return Zone.model_validate(zone)

    def create_zone(self, db: Session, payload: ZoneCreate) -> Zone:
        if self.repo.check_zone_exists(db, payload.az_id):
            raise ConflictException("Zone with this ID already exists")

        obj = self.repo.create(db, payload.model_dump())
        if obj.az_is_default:
            self._make_only_default(db, obj.az_id)
            db.refresh(obj)

        logger.info("Zone created", extra={"extra_data": {"zone_id": obj.az_id, "radius_m": obj.az_radius_m}})
        return Zone.model_validate(obj)

    def update_zone(self, db: Session, az_id: str, payload: ZoneUpdate) -> Zone:
        obj = self.repo.get_by_id(db, az_id)
        if not obj:
            raise NotFoundException("Zone not found")
        update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
        obj = self.repo.update(db, obj, update_data)
        if update_data.get("az_is_default"):
            self._make_only_default(db, obj.az_id)
            db.refresh(obj)
        return Zone.model_validate(obj)

    def delete_zone(self, db: Session, az_id: str) -> None:
        deleted = self.repo.delete_by_id(db, az_id)
        if not deleted:
            raise NotFoundException("Zone not found")
        return None

    def _make_only_default(self, db: Session, az_id: str) -> None:
        self.repo.clear_default(db, keep_id=az_id)
        db.commit()
