"""
Rotating token schemas
"""
from pydantic import BaseModel


class RotatingTokenValue(BaseModel):
    """QR payload valid for one time window"""
    payload: str
    window_id: int
    expires_in: int
