"""
Device fingerprint attached to every clock event
"""
from typing import Any, Optional

from geoattend.schemas.attendance import DeviceProperties

UNKNOWN = "unknown"


def _part(value: Any) -> str:
    if value is None:
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


def fingerprint(properties: Optional[DeviceProperties]) -> str:
    """
    Build `{userAgent}-{platform}-{width}x{height}-{colorDepth}`

    Missing properties become "unknown" so the result is always a string.
    Two browsers with identical properties collide, which is accepted: the
    value is audit context, not an authenticator.
    """
    props = properties or DeviceProperties()
    return "{}-{}-{}x{}-{}".format(
        _part(props.user_agent),
        _part(props.platform),
        _part(props.screen_width),
        _part(props.screen_height),
        _part(props.color_depth),
    )


def with_user_agent(properties: Optional[DeviceProperties], user_agent: Optional[str]) -> DeviceProperties:
    """Fill in the User-Agent header when the client did not report one"""
    props = properties or DeviceProperties()
    if props.user_agent or not user_agent:
        return props
    return props.model_copy(update={"user_agent": user_agent})
