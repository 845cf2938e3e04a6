"""
Zones Endpoints - CRUD operations for geofence zones
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from geoattend.db.session import get_db
from geoattend.services.zone_service import ZoneService
from geoattend.schemas import Zone, ZoneCreate, ZoneUpdate, DataResponse, PaginationResponse
from geoattend.api.deps import require_auth, require_min_role_level
from geoattend.core.config import settings
from atams.encryption import encrypt_response_data

router = APIRouter()
zone_service = ZoneService()


@router.get(
    "/",
    response_model=PaginationResponse[Zone],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def list_zones(
    search: str = Query("", description="Search zones by name"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum records to return"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """Get list of allowed zones with pagination and search"""
    zones = zone_service.list_zones(db, search=search, skip=skip, limit=limit)
    total = zone_service.count_zones(db, search=search)

    response = PaginationResponse(
        success=True,
        message="Zones retrieved successfully",
        data=zones,
        total=total,
        page=skip // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/{az_id}",
    response_model=DataResponse[Zone],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def get_zone(
    az_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """Get single zone by ID"""
    zone = zone_service.get_zone(db, az_id)

    response = DataResponse(
        success=True,
        message="Zone retrieved successfully",
        data=zone
    )

    return encrypt_response_data(response, settings)


@router.post(
    "/",
    response_model=DataResponse[Zone],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_min_role_level(50))]
)
async def create_zone(
    zone: ZoneCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Create new allowed zone

    **Validation:**
    - az_id: required, unique, max 50 characters
    - az_latitude / az_longitude: valid WGS84 degrees
    - az_radius_m: positive number of meters
    - az_is_default: marking a zone default clears the flag on the others
    """
    new_zone = zone_service.create_zone(db, zone)

    response = DataResponse(
        success=True,
        message="Zone created successfully",
        data=new_zone
    )

    return encrypt_response_data(response, settings)


@router.put(
    "/{az_id}",
    response_model=DataResponse[Zone],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def update_zone(
    az_id: str,
    zone: ZoneUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """Update existing zone"""
    updated_zone = zone_service.update_zone(db, az_id, zone)

    response = DataResponse(
        success=True,
        message="Zone updated successfully",
        data=updated_zone
    )

    return encrypt_response_data(response, settings)


@router.delete(
    "/{az_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_min_role_level(50))]
)
async def delete_zone(
    az_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    zone_service.delete_zone(db, az_id)

    # 204 returns no content
    return None
