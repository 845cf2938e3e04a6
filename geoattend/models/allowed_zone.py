"""
Allowed Zone Model - Circular geofences where clocking is permitted
"""
from sqlalchemy import Column, String, DateTime, Float, Boolean
from sqlalchemy.sql import func
from atams.db import Base


class AllowedZone(Base):
    """Allowed zone model - Table: allowed_zones"""
    __tablename__ = "allowed_zones"

    az_id = Column(String(50), primary_key=True, index=True)
    az_name = Column(String(255), nullable=False)
    az_latitude = Column(Float, nullable=False)
    az_longitude = Column(Float, nullable=False)
    az_radius_m = Column(Float, nullable=False)
    az_is_default = Column(Boolean, nullable=False, default=False)
    az_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    az_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
