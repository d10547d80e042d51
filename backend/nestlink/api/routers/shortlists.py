from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List
from pydantic import BaseModel
from nestlink.models.shortlist import (
    Shortlist, ShortlistDetail, ShortlistCreate, ShortlistUpdate, SharedShortlist, ShareLink,
    Invitation, InviteResult, InvitationStatuses, AddPropertyResult
)
from nestlink.modules.shortlists.service import ShortlistService
from nestlink.core.database import get_db
from nestlink.core.auth import get_current_profile_id
from nestlink.core.exceptions import NotFoundError, PermissionDeniedError, ConflictError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

# Request models
class SharingRequest(BaseModel):
    is_shared: bool

class AddPropertyRequest(BaseModel):
    property_id: str

class InviteRequest(BaseModel):
    profile_id: str

class InvitationResponse(BaseModel):
    accept: bool

def get_shortlist_service(db: Session = Depends(get_db)) -> ShortlistService:
    return ShortlistService(db)

# Endpoints without a shortlist id come first so "/invitations" and
# "/shared/..." are not captured by "/{shortlist_id}"

@router.get("/shared/{share_token}", response_model=SharedShortlist)
async def get_shared_shortlist(
    share_token: str,
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """
    Public view of a shared shortlist.

    No sign-in needed. Returns 404 when the token is unknown or the owner
    has turned sharing off.
    """
    try:
        return await shortlist_service.get_shared_shortlist(share_token)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to resolve shared shortlist: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve shared shortlist"
        )

@router.get("/invitations", response_model=List[Invitation])
async def get_pending_invitations(
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Invitations waiting for the viewer's answer, newest first."""
    try:
        return await shortlist_service.get_pending_invitations(current_profile_id)

    except Exception as e:
        logger.error(f"Failed to get invitations: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve invitations"
        )

@router.post("/invitations/{invitation_id}/respond", response_model=Invitation)
async def respond_to_invitation(
    invitation_id: str,
    response: InvitationResponse,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """
    Accept or reject an invitation.

    Accepting makes the viewer a member of the shortlist. Answering an
    invitation that is no longer pending returns 409.
    """
    try:
        return await shortlist_service.respond_to_invitation(current_profile_id, invitation_id, response.accept)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to respond to invitation {invitation_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to respond to invitation"
        )

# Shortlists

@router.post("/", response_model=Shortlist)
async def create_shortlist(
    shortlist_data: ShortlistCreate,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Create a private shortlist owned by the viewer."""
    try:
        return await shortlist_service.create_shortlist(
            current_profile_id, shortlist_data.name, shortlist_data.description
        )

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create shortlist: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create shortlist"
        )

@router.get("/", response_model=List[Shortlist])
async def get_shortlists(
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Shortlists the viewer owns, followed by those they were invited into."""
    try:
        return await shortlist_service.list_shortlists(current_profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get shortlists: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve shortlists"
        )

@router.get("/{shortlist_id}", response_model=ShortlistDetail)
async def get_shortlist(
    shortlist_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Shortlist with its members and property ids. Members only."""
    try:
        return await shortlist_service.get_shortlist(current_profile_id, shortlist_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get shortlist {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve shortlist"
        )

@router.put("/{shortlist_id}", response_model=Shortlist)
async def update_shortlist(
    shortlist_id: str,
    changes: ShortlistUpdate,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Rename or re-describe a shortlist. Owner only."""
    try:
        return await shortlist_service.update_shortlist(current_profile_id, shortlist_id, changes)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update shortlist {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update shortlist"
        )

@router.delete("/{shortlist_id}")
async def delete_shortlist(
    shortlist_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Delete a shortlist with its members, properties and invitations. Owner only."""
    try:
        await shortlist_service.delete_shortlist(current_profile_id, shortlist_id)
        return {"message": "Shortlist deleted successfully"}

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete shortlist {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete shortlist"
        )

# Sharing

@router.put("/{shortlist_id}/sharing", response_model=Shortlist)
async def set_sharing(
    shortlist_id: str,
    request: SharingRequest,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Turn link sharing on or off. The link itself stays the same."""
    try:
        return await shortlist_service.set_sharing(current_profile_id, shortlist_id, request.is_shared)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update sharing for {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update sharing"
        )

@router.get("/{shortlist_id}/share-link", response_model=ShareLink)
async def get_share_link(
    shortlist_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Public URL of the shortlist, whether or not sharing is currently on."""
    try:
        return await shortlist_service.get_share_link(current_profile_id, shortlist_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get share link for {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve share link"
        )

# Properties

@router.post("/{shortlist_id}/properties", response_model=AddPropertyResult)
async def add_property(
    shortlist_id: str,
    request: AddPropertyRequest,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """
    Add a property to the shortlist.

    Adding a property that is already there succeeds with added=false.
    """
    try:
        return await shortlist_service.add_property(current_profile_id, shortlist_id, request.property_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to add property to {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add property"
        )

@router.delete("/{shortlist_id}/properties/{property_id}")
async def remove_property(
    shortlist_id: str,
    property_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Remove a property from the shortlist."""
    try:
        await shortlist_service.remove_property(current_profile_id, shortlist_id, property_id)
        return {"message": "Property removed from shortlist"}

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to remove property {property_id} from {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove property"
        )

# Invitations

@router.post("/{shortlist_id}/invitations", response_model=InviteResult)
async def invite(
    shortlist_id: str,
    request: InviteRequest,
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """
    Invite a profile to collaborate on the shortlist.

    Re-inviting someone who rejected reopens their invitation; re-inviting
    someone pending or accepted changes nothing. The outcome field tells
    which happened.
    """
    try:
        return await shortlist_service.invite(current_profile_id, shortlist_id, request.profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to invite to {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send invitation"
        )

@router.get("/{shortlist_id}/invitations/status", response_model=InvitationStatuses)
async def get_invitation_statuses(
    shortlist_id: str,
    profile_ids: List[str] = Query([], description="Profiles to report on"),
    current_profile_id: str = Depends(get_current_profile_id),
    shortlist_service: ShortlistService = Depends(get_shortlist_service)
):
    """Invitation state of each given profile: not_invited, pending, accepted or rejected."""
    try:
        return await shortlist_service.get_invitation_statuses(current_profile_id, shortlist_id, profile_ids)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get invitation statuses for {shortlist_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve invitation statuses"
        )
