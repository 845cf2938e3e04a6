"""
Network Service - Business logic for authorized Wi-Fi networks
"""
from typing import Any, Dict, List
from sqlalchemy.orm import Session

from geoattend.repositories.network_repository import AllowedNetworkRepository
from geoattend.schemas.common import blank_to_none
from geoattend.schemas.network import AllowedNetwork, Network, NetworkCreate, NetworkUpdate
from atams.exceptions import (
    NotFoundException,
    ConflictException,
)
from atams.logging import get_logger

logger = get_logger(__name__)


class NetworkService:
    def __init__(self) -> None:
        self.repo = AllowedNetworkRepository()

    def list_networks(self, db: Session, search: str = "", skip: int = 0, limit: int = 100) -> List[Network]:
        networks = self.repo.get_networks_with_search(db, search=search, skip=skip, limit=limit)
        return [Network.model_validate(n) for n in networks]

    def count_networks(self, db: Session, search: str = "") -> int:
        return self.repo.count_networks_with_search(db, search=search)

    def active_networks(self, db: Session) -> List[AllowedNetwork]:
        """Every network, as read by the compliance evaluator"""
        return [AllowedNetwork.from_model(n) for n in self.repo.list_all(db)]

    def get_network(self, db: Session, an_id: str) -> Network:
        network = self.repo.get_by_id(db, an_id)
        if not network:
            raise NotFoundException("Network not found")
        return Network.model_validate(network)

    def create_network(self, db: Session, payload: NetworkCreate) -> Network:
        if self.repo.check_network_exists(db, payload.an_id):
            raise ConflictException("Network with this ID already exists")

        obj = self.repo.create(db, payload.model_dump())
        logger.info("Network created", extra={"extra_data": {"network_id": obj.an_id, "ssid": obj.an_ssid}})
        return Network.model_validate(obj)

    def update_network(self, db: Session, an_id: str, payload: NetworkUpdate) -> Network:
        obj = self.repo.get_by_id(db, an_id)
        if not obj:
            raise NotFoundException("Network not found")
        # an_bssid may be cleared explicitly to accept any access point
        update_data = payload.model_dump(exclude_unset=True)
        update_data = {
            k: v for k, v in update_data.items() if v is not None or k == "an_bssid"
        }
        obj = self.repo.update(db, obj, update_data)
        return Network.model_validate(obj)

    def delete_network(self, db: Session, an_id: str) -> None:
        deleted = self.repo.delete_by_id(db, an_id)
        if not deleted:
            raise NotFoundException("Network not found")
        return None

    def bootstrap_defaults(self, db: Session, entries: List[Dict[str, Any]]) -> int:
        """
        Seed the networks table from configuration

        Runs only against an empty table, so edits made through the API are
        never overwritten. Returns the number of networks inserted.
        """
        if not entries or self.repo.count(db) > 0:
            return 0

        inserted = 0
        seen = set()
        for entry in entries:
            ssid = entry.get("ssid")
            if not ssid:
                logger.warning(f"Skipping bootstrap network without ssid: {entry}")
                continue
            network_id = str(entry.get("id") or ssid)[:50]
            if network_id in seen:
                continue
            seen.add(network_id)
            self.repo.create(db, {
                "an_id": network_id,
                "an_name": entry.get("name") or ssid,
                "an_ssid": ssid,
                "an_bssid": blank_to_none(entry.get("bssid")),
            })
            inserted += 1

        logger.info(f"Bootstrapped {inserted} allowed networks")
        return inserted
