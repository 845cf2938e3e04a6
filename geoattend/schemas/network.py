"""
Allowed Network Schemas
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from geoattend.schemas.common import blank_to_none, fix_datetime_timezone


class AllowedNetwork(BaseModel):
    """Wi-Fi network accepted as proof of being on premises"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    ssid: str
    bssid: Optional[str] = None

    @classmethod
    def from_model(cls, obj) -> "AllowedNetwork":
        return cls(id=obj.an_id, name=obj.an_name, ssid=obj.an_ssid, bssid=obj.an_bssid or None)


class NetworkBase(BaseModel):
    an_name: str
    an_ssid: str = Field(min_length=1, max_length=64)
    an_bssid: Optional[str] = Field(default=None, max_length=17)

    @field_validator('an_bssid', mode='before')
    @classmethod
    def empty_bssid(cls, v):
        return blank_to_none(v)


class NetworkCreate(NetworkBase):
    an_id: str = Field(min_length=1, max_length=50)


class NetworkUpdate(BaseModel):
    an_name: Optional[str] = None
    an_ssid: Optional[str] = Field(default=None, min_length=1, max_length=64)
    an_bssid: Optional[str] = Field(default=None, max_length=17)

    @field_validator('an_bssid', mode='before')
    @classmethod
    def empty_bssid(cls, v):
        return blank_to_none(v)


class NetworkInDB(NetworkBase):
    model_config = ConfigDict(from_attributes=True)

    an_id: str
    an_created_at: datetime
    an_updated_at: Optional[datetime] = None

    @field_validator('an_updated_at', 'an_created_at', mode='before')
    @classmethod
    def fix_timezone(cls, v):
        return fix_datetime_timezone(v)


class Network(NetworkInDB):
    pass
