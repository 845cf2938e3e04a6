"""
geoattend - Attendance compliance service
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from atams.logging import setup_logging_from_settings, get_logger
from atams.middleware import RequestIDMiddleware
from atams.exceptions import setup_exception_handlers
from atams.api import health_router

from geoattend.core.config import settings
from geoattend.db.session import SessionLocal
from geoattend.api.v1.api import api_router
from geoattend.api.v1.endpoints.attendance import attendance_service
from geoattend.services.network_service import NetworkService

# Setup logging
setup_logging_from_settings(settings)
logger = get_logger(__name__)


def bootstrap_networks() -> int:
    """Seed allowed networks from BOOTSTRAP_NETWORKS into an empty table"""
    entries = settings.bootstrap_networks_list
    if not entries:
        return 0

    db = SessionLocal()
    try:
        return NetworkService().bootstrap_defaults(db, entries)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Network bootstrap failed: {e}")
        return 0
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    bootstrap_networks()
    attendance_service.token_refresher.start()
    yield
    await attendance_service.token_refresher.stop()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    description="Attendance compliance service with Atlas SSO Integration",
    swagger_ui_parameters={
        "persistAuthorization": True,
    },
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.cors_methods_list,
    allow_headers=settings.cors_headers_list,
)

# Request ID middleware
app.add_middleware(RequestIDMiddleware)

# Exception handlers
setup_exception_handlers(app)

# Include routers
app.include_router(health_router, prefix="/health", tags=["Health"])
app.include_router(api_router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    """API Root - Basic information"""
    return {"name": settings.APP_NAME, "version": settings.APP_VERSION}
