from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from pydantic import BaseModel
from nestlink.models.profile import Profile
from nestlink.models.connection import (
    Connection, ConnectionOverview, ConnectionStatusResponse, ConnectionRequestResult
)
from nestlink.modules.connections.service import ConnectionService
from nestlink.core.database import get_db
from nestlink.core.auth import get_current_profile_id
from nestlink.core.exceptions import NotFoundError, PermissionDeniedError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

class ConnectionRequest(BaseModel):
    profile_id: str

class DisconnectResponse(BaseModel):
    profile_id: str
    removed: int

def get_connection_service(db: Session = Depends(get_db)) -> ConnectionService:
    return ConnectionService(db)

@router.get("/", response_model=ConnectionOverview)
async def get_connections(
    current_profile_id: str = Depends(get_current_profile_id),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """
    Get the viewer's network.

    Returns accepted connections as profiles and every pending request the
    viewer has sent or received.
    """
    try:
        return await connection_service.get_overview(current_profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get connections: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve connections"
        )

@router.get("/suggestions", response_model=List[Profile])
async def get_suggestions(
    current_profile_id: str = Depends(get_current_profile_id),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Profiles the viewer is not connected with, most relevant first."""
    try:
        return await connection_service.get_suggestions(current_profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get suggestions: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve suggestions"
        )

@router.get("/status/{profile_id}", response_model=ConnectionStatusResponse)
async def get_connection_status(
    profile_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Relationship between the viewer and another profile: none, pending, received or connected."""
    try:
        return await connection_service.get_status(current_profile_id, profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get connection status for {profile_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve connection status"
        )

@router.post("/requests", response_model=ConnectionRequestResult)
async def request_connection(
    request: ConnectionRequest,
    current_profile_id: str = Depends(get_current_profile_id),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """
    Send a connection request.

    When the two profiles are already linked nothing changes and the
    outcome says how (already_pending, already_received, already_connected).
    """
    try:
        return await connection_service.request_connection(current_profile_id, request.profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to request connection: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send connection request"
        )

@router.post("/requests/{connection_id}/accept", response_model=Connection)
async def accept_connection(
    connection_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Accept a request sent to the viewer."""
    try:
        return await connection_service.accept_connection(current_profile_id, connection_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to accept connection {connection_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to accept connection"
        )

@router.delete("/{profile_id}", response_model=DisconnectResponse)
async def disconnect(
    profile_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    connection_service: ConnectionService = Depends(get_connection_service)
):
    """Remove the connection or pending request between the viewer and a profile."""
    try:
        removed = await connection_service.disconnect(current_profile_id, profile_id)
        return DisconnectResponse(profile_id=profile_id, removed=removed)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to disconnect from {profile_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove connection"
        )
