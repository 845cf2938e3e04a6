"""
Allowed Network Model - Wi-Fi networks accepted as proof of presence
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from atams.db import Base


class AllowedNetwork(Base):
    """Allowed network model - Table: allowed_networks"""
    __tablename__ = "allowed_networks"

    an_id = Column(String(50), primary_key=True, index=True)
    an_name = Column(String(255), nullable=False)
    an_ssid = Column(String(64), nullable=False, index=True)
    an_bssid = Column(String(17), nullable=True)  # NULL matches any access point of the SSID
    an_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    an_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
