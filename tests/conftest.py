import os
import tempfile

# Settings are read at import time, so the environment must be in place first
_TEST_DB_DIR = tempfile.mkdtemp(prefix="geoattend-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'geoattend_test.db')}"

TEST_ENV = {
    "ATLAS_APP_CODE": "GEOATTEND",
    "APP_NAME": "geoattend-test",
    "APP_VERSION": "0.0.0",
    "DEBUG": "false",
    "LOGGING_ENABLED": "false",
    "ENCRYPTION_ENABLED": "false",
    "TOKEN_JWT_SECRET": "test-secret-with-enough-length-for-hs256",
    "TOKEN_JWT_ALG": "HS256",
    "TOKEN_WINDOW_SECONDS": "30",
    "TOKEN_GRACE_WINDOWS": "1",
    "LOCATION_USE_GPS": "true",
    "LOCATION_USE_NETWORK": "true",
    "LOCATION_USE_IP": "false",
    "LOCATION_TIMEOUT_MS": "2000",
    "POSITION_MAX_AGE_SECONDS": "60",
    "IP_GEOLOCATION_URL": "https://ipapi.co/{ip}/json/",
    "IP_GEOLOCATION_ACCURACY_M": "5000",
    "REVERSE_GEOCODING_ENABLED": "false",
    "REVERSE_GEOCODING_URL": "https://nominatim.openstreetmap.org/reverse",
    "ATTENDANCE_TIMEZONE": "UTC",
    "WORK_START_TIME": "08:00",
    "LATE_GRACE_MINUTES": "15",
    "MAX_PHOTO_BYTES": "2097152",
    "BOOTSTRAP_NETWORKS": "[]",
}
for key, value in TEST_ENV.items():
    os.environ[key] = value

import base64

import pytest
from fastapi.testclient import TestClient

from atams.db import Base
import geoattend.models  # noqa: F401  registers the tables on Base.metadata
from geoattend.db.session import engine, SessionLocal
from geoattend.api.deps import require_auth
from geoattend.main import app

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00\x10JFIF\x00" + b"\x00" * 32 + b"\xff\xd9"
JPEG_BASE64 = base64.b64encode(JPEG_BYTES).decode()


@pytest.fixture()
def db_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(db_tables):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def current_user():
    return {
        "user_id": 101,
        "username": "employee",
        "email": "employee@example.com",
        "role_level": 1,
        "roles": [],
    }


@pytest.fixture()
def client(db_tables, current_user):
    # require_min_role_level depends on require_auth, so this covers both
    app.dependency_overrides[require_auth] = lambda: current_user

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def admin(current_user):
    current_user["role_level"] = 50
    return current_user
