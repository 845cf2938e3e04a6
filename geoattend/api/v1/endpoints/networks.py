"""
Networks Endpoints - CRUD operations for authorized Wi-Fi networks
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from geoattend.db.session import get_db
from geoattend.services.network_service import NetworkService
from geoattend.schemas import Network, NetworkCreate, NetworkUpdate, DataResponse, PaginationResponse
from geoattend.api.deps import require_auth, require_min_role_level
from geoattend.core.config import settings
from atams.encryption import encrypt_response_data

router = APIRouter()
network_service = NetworkService()


@router.get(
    "/",
    response_model=PaginationResponse[Network],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def list_networks(
    search: str = Query("", description="Search networks by name or SSID"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum records to return"),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """Get list of allowed networks with pagination and search"""
    networks = network_service.list_networks(db, search=search, skip=skip, limit=limit)
    total = network_service.count_networks(db, search=search)

    response = PaginationResponse(
        success=True,
        message="Networks retrieved successfully",
        data=networks,
        total=total,
        page=skip // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/{an_id}",
    response_model=DataResponse[Network],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def get_network(
    an_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """Get single network by ID"""
    network = network_service.get_network(db, an_id)

    response = DataResponse(
        success=True,
        message="Network retrieved successfully",
        data=network
    )

    return encrypt_response_data(response, settings)


@router.post(
    "/",
    response_model=DataResponse[Network],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_min_role_level(50))]
)
async def create_network(
    network: NetworkCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Create new allowed network

    **Validation:**
    - an_id: required, unique, max 50 characters
    - an_ssid: required, compared exactly
    - an_bssid: optional, compared exactly; blank means any access point
      broadcasting the SSID matches
    """
    new_network = network_service.create_network(db, network)

    response = DataResponse(
        success=True,
        message="Network created successfully",
        data=new_network
    )

    return encrypt_response_data(response, settings)


@router.put(
    "/{an_id}",
    response_model=DataResponse[Network],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(50))]
)
async def update_network(
    an_id: str,
    network: NetworkUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """Update existing network"""
    updated_network = network_service.update_network(db, an_id, network)

    response = DataResponse(
        success=True,
        message="Network updated successfully",
        data=updated_network
    )

    return encrypt_response_data(response, settings)


@router.delete(
    "/{an_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_min_role_level(50))]
)
async def delete_network(
    an_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    network_service.delete_network(db, an_id)

    # 204 returns no content
    return None
