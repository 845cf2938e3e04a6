"""
Allowed Zone Schemas - geofence domain type and request/response validation
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from geoattend.schemas.common import fix_datetime_timezone
from geoattend.schemas.geo import Coordinate


class AllowedZone(BaseModel):
    """Circular authorized area read by the compliance evaluator"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    center: Coordinate
    radius_m: float = Field(gt=0)
    is_default: bool = False

    @classmethod
    def from_model(cls, obj) -> "AllowedZone":
        return cls(
            id=obj.az_id,
            name=obj.az_name,
            center=Coordinate(latitude=obj.az_latitude, longitude=obj.az_longitude),
            radius_m=obj.az_radius_m,
            is_default=bool(obj.az_is_default),
        )


class ZoneBase(BaseModel):
    az_name: str
    az_latitude: float = Field(ge=-90, le=90)
    az_longitude: float = Field(ge=-180, le=180)
    az_radius_m: float = Field(gt=0)
    az_is_default: bool = False


class ZoneCreate(ZoneBase):
    az_id: str = Field(min_length=1, max_length=50)


class ZoneUpdate(BaseModel):
    az_name: Optional[str] = None
    az_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    az_longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    az_radius_m: Optional[float] = Field(default=None, gt=0)
    az_is_default: Optional[bool] = None


class ZoneInDB(ZoneBase):
    model_config = ConfigDict(from_attributes=True)

    az_id: str
    az_created_at: datetime
    az_updated_at: Optional[datetime] = None

    @field_validator('az_updated_at', 'az_created_at', mode='before')
    @classmethod
    def fix_timezone(cls, v):
        return fix_datetime_timezone(v)


class Zone(ZoneInDB):
    pass
