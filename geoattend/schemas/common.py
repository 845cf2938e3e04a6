"""
Shared schema helpers
"""
import re
from datetime import datetime, timezone
from typing import Any


def fix_datetime_timezone(v: Any) -> Any:
    """
    Fix datetime timezone format from PostgreSQL
    PostgreSQL returns: '2025-10-01 09:17:39.587802+00'
    Pydantic expects: '2025-10-01 09:17:39.587802+00:00'
    """
    if v == '' or v is None:
        return None

    if isinstance(v, str) and re.search(r'([+-]\d{2})$', v):
        v = v + ':00'

    return v


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite, client clocks) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def blank_to_none(v: Any) -> Any:
    """Empty or whitespace-only strings become None"""
    if isinstance(v, str) and not v.strip():
        return None
    return v
