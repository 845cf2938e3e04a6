from fastapi import APIRouter
from geoattend.api.v1.endpoints import zones, networks, attendance

api_router = APIRouter()

# Register routes
api_router.include_router(zones.router, prefix="/zones", tags=["Zones"])
api_router.include_router(networks.router, prefix="/networks", tags=["Networks"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
