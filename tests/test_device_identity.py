from geoattend.schemas.attendance import DeviceProperties
from geoattend.services.device_identity import fingerprint, with_user_agent


def test_fingerprint_format():
    props = DeviceProperties(
        user_agent="Mozilla/5.0",
        platform="Linux armv8l",
        screen_width=412,
        screen_height=915,
        color_depth=24,
    )

    assert fingerprint(props) == "Mozilla/5.0-Linux armv8l-412x915-24"


def test_fingerprint_is_stable():
    props = DeviceProperties(user_agent="UA", platform="iPhone", screen_width=390, screen_height=844, color_depth=32)

    assert fingerprint(props) == fingerprint(props.model_copy())


def test_missing_properties_use_placeholder():
    assert fingerprint(None) == "unknown-unknown-unknownxunknown-unknown"
    assert fingerprint(DeviceProperties(platform="  ", screen_width=1920)) == "unknown-unknown-1920xunknown-unknown"


def test_user_agent_header_fills_gap():
    props = with_user_agent(DeviceProperties(platform="Win32"), "Header-UA")

    assert props.user_agent == "Header-UA"
    assert fingerprint(props).startswith("Header-UA-Win32-")


def test_reported_user_agent_wins_over_header():
    props = with_user_agent(DeviceProperties(user_agent="Reported"), "Header-UA")

    assert props.user_agent == "Reported"
    assert with_user_agent(None, None) == DeviceProperties()
