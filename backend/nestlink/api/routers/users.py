from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field
from nestlink.models.profile import Profile, ProfileUpdate, Badge, ListingPreferences, parse_listing_preference
from nestlink.modules.profiles.service import ProfileService, MENTION_SUGGESTION_LIMIT
from nestlink.core.database import get_db
from nestlink.core.auth import AuthService, get_current_profile_id
from nestlink.core.config import settings
from nestlink.core.exceptions import NotFoundError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

# Request/Response models
class UserRegistration(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str
    badge: Badge
    location: Optional[str] = None
    description: Optional[str] = None

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    profile: Profile

def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)

# Authentication endpoints
@router.post("/register", response_model=Profile)
async def register_user(
    user_data: UserRegistration,
    profile_service: ProfileService = Depends(get_profile_service)
):
    """
    Register a new account.

    Creates the login and its public profile and returns the profile.
    """
    try:
        return await profile_service.create_account(
            email=user_data.email,
            password=user_data.password,
            name=user_data.name,
            badge=user_data.badge,
            location=user_data.location,
            description=user_data.description
        )

    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"User registration failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )

@router.post("/login", response_model=TokenResponse)
async def login_user(
    login_data: UserLogin,
    profile_service: ProfileService = Depends(get_profile_service)
):
    """
    Authenticate and return a JWT access token for the profile.
    """
    try:
        profile = await profile_service.authenticate(login_data.email, login_data.password)

        if not profile:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        access_token = AuthService.create_access_token(
            data={"sub": profile.id, "email": profile.email}
        )

        return TokenResponse(
            access_token=access_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            profile=profile
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )

# Profile endpoints
@router.get("/me", response_model=Profile)
async def get_current_user(
    current_profile_id: str = Depends(get_current_profile_id),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Get the signed-in profile."""
    try:
        return await profile_service.get_profile(current_profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get profile: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve profile"
        )

@router.put("/me", response_model=Profile)
async def update_current_user(
    changes: ProfileUpdate,
    current_profile_id: str = Depends(get_current_profile_id),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Update fields of the signed-in profile. Omitted fields are left unchanged."""
    try:
        return await profile_service.update_profile(current_profile_id, changes)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update profile: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )

@router.get("/me/listing-preferences", response_model=ListingPreferences)
async def get_listing_preferences(
    current_profile_id: str = Depends(get_current_profile_id),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """
    Get the signed-in profile's listing filter.

    Profiles saved before filters were structured only carry a location;
    they are returned as the default filter for that location.
    """
    try:
        profile = await profile_service.get_profile(current_profile_id)
        return parse_listing_preference(profile.listing_preference)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get listing preferences: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve listing preferences"
        )

@router.put("/me/listing-preferences", response_model=Profile)
async def update_listing_preferences(
    preferences: ListingPreferences,
    current_profile_id: str = Depends(get_current_profile_id),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Replace the signed-in profile's listing filter."""
    try:
        return await profile_service.set_listing_preferences(current_profile_id, preferences)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update listing preferences: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update listing preferences"
        )

@router.get("/search", response_model=List[Profile])
async def search_profiles(
    q: str = Query("", description="Part of a profile name"),
    limit: int = Query(MENTION_SUGGESTION_LIMIT, ge=1, le=20),
    current_profile_id: str = Depends(get_current_profile_id),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Profiles whose name contains the query, used for @mention suggestions."""
    try:
        return await profile_service.search_profiles(q, limit)

    except Exception as e:
        logger.error(f"Profile search failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search profiles"
        )

@router.get("/{profile_id}", response_model=Profile)
async def get_profile(
    profile_id: str,
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Get a public profile."""
    try:
        return await profile_service.get_profile(profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get profile {profile_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve profile"
        )
