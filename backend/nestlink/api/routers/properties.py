from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from nestlink.models.profile import ListingType
from nestlink.models.property import Property, PropertyCreate, PropertyUpdate, PropertyFilter
from nestlink.modules.properties.service import PropertyService
from nestlink.core.database import get_db
from nestlink.core.auth import get_current_profile_id
from nestlink.core.exceptions import NotFoundError, PermissionDeniedError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

def get_property_service(db: Session = Depends(get_db)) -> PropertyService:
    return PropertyService(db)

@router.get("/", response_model=List[Property])
async def get_properties(
    limit: int = Query(50, ge=1, le=100, description="Maximum number of properties to return"),
    offset: int = Query(0, ge=0, description="Number of properties to skip"),
    type: str = Query("all", description="Listing type: all, rent or sale"),
    search: Optional[str] = Query(None, description="Text matched against title and location"),
    location: Optional[str] = Query(None, description="Location substring"),
    min_price: Optional[float] = Query(None, ge=0, description="Minimum price filter"),
    max_price: Optional[float] = Query(None, ge=0, description="Maximum price filter"),
    min_area: Optional[float] = Query(None, ge=0, description="Minimum area filter"),
    max_area: Optional[float] = Query(None, ge=0, description="Maximum area filter"),
    property_service: PropertyService = Depends(get_property_service)
):
    """
    Get listings, newest first, with basic filtering and pagination.
    """
    try:
        types = [] if type == "all" else [ListingType(type)]
        criteria = PropertyFilter(
            types=types,
            search=search,
            location=location,
            min_price=min_price,
            max_price=max_price,
            min_area=min_area,
            max_area=max_area,
            limit=limit,
            offset=offset
        )
        return await property_service.list_properties(criteria)

    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get properties: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve properties"
        )

@router.get("/recommended", response_model=List[Property])
async def get_recommended_properties(
    limit: int = Query(50, ge=1, le=100),
    current_profile_id: str = Depends(get_current_profile_id),
    property_service: PropertyService = Depends(get_property_service)
):
    """Listings matching the viewer's saved listing preferences."""
    try:
        return await property_service.recommended_for(current_profile_id, limit)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get recommended properties: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve recommended properties"
        )

@router.get("/owner/{profile_id}", response_model=List[Property])
async def get_properties_by_owner(
    profile_id: str,
    property_service: PropertyService = Depends(get_property_service)
):
    """Listings published by a profile."""
    try:
        return await property_service.list_by_owner(profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get properties for owner {profile_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve properties"
        )

@router.get("/{property_id}", response_model=Property)
async def get_property(
    property_id: str,
    property_service: PropertyService = Depends(get_property_service)
):
    try:
        return await property_service.get_property(property_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve property"
        )

@router.post("/", response_model=Property)
async def create_property(
    property_data: PropertyCreate,
    current_profile_id: str = Depends(get_current_profile_id),
    property_service: PropertyService = Depends(get_property_service)
):
    """Publish a listing owned by the viewer."""
    try:
        return await property_service.create_property(current_profile_id, property_data)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create property: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create property"
        )

@router.put("/{property_id}", response_model=Property)
async def update_property(
    property_id: str,
    changes: PropertyUpdate,
    current_profile_id: str = Depends(get_current_profile_id),
    property_service: PropertyService = Depends(get_property_service)
):
    """Edit a listing. Owner only."""
    try:
        return await property_service.update_property(current_profile_id, property_id, changes)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update property"
        )

@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    property_service: PropertyService = Depends(get_property_service)
):
    """Remove a listing and take it off every shortlist. Owner only."""
    try:
        await property_service.delete_property(current_profile_id, property_id)
        return {"message": "Property deleted successfully"}

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete property {property_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete property"
        )
