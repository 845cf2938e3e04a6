"""
Allowed Network Repository - Data access layer for authorized Wi-Fi networks
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func

from atams.db import BaseRepository
from geoattend.models.allowed_network import AllowedNetwork


class AllowedNetworkRepository(BaseRepository[AllowedNetwork]):
    def __init__(self):
        super().__init__(AllowedNetwork)

    def get_by_id(self, db: Session, network_id: str) -> Optional[AllowedNetwork]:
        """Get network by ID using ORM"""
        return db.query(AllowedNetwork).filter(AllowedNetwork.an_id == network_id).first()

    def list_all(self, db: Session) -> List[AllowedNetwork]:
        return db.query(AllowedNetwork).order_by(AllowedNetwork.an_id.asc()).all()

    def get_networks_with_search(self, db: Session, search: str = "", skip: int = 0, limit: int = 100) -> List[AllowedNetwork]:
        """Get networks filtered by name or SSID using ORM"""
        query = db.query(AllowedNetwork)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                func.lower(AllowedNetwork.an_name).like(pattern)
                | func.lower(AllowedNetwork.an_ssid).like(pattern)
            )

        return query.order_by(AllowedNetwork.an_id.asc()).offset(skip).limit(limit).all()

    def count_networks_with_search(self, db: Session, search: str = "") -> int:
        """Count networks filtered by name or SSID using native SQL"""
        if search:
            query = """
                SELECT COUNT(*)
                FROM allowed_networks
                WHERE LOWER(an_name) LIKE :search OR LOWER(an_ssid) LIKE :search
            """
            return self.execute_raw_sql_scalar(db, query, {"search": f"%{search.lower()}%"})
        else:
            query = "SELECT COUNT(*) FROM allowed_networks"
            return self.execute_raw_sql_scalar(db, query)

    def check_network_exists(self, db: Session, network_id: str) -> bool:
        """Check if network exists using native SQL"""
        query = "SELECT 1 FROM allowed_networks WHERE an_id = :network_id LIMIT 1"
        result = self.execute_raw_sql_scalar(db, query, {"network_id": network_id})
        return result is not None

    def delete_by_id(self, db: Session, network_id: str) -> bool:
        """Delete network by ID and return success status"""
        network = self.get_by_id(db, network_id)
        if network:
            db.delete(network)
            db.commit()
            return True
        return False
