from fastapi import APIRouter, Depends, HTTPException, status, Query, WebSocket
from sqlalchemy.orm import Session
from typing import List, Optional
import redis
from nestlink.models.notification import Notification, UnreadCount
from nestlink.modules.notifications.service import NotificationService
from nestlink.core.database import get_db
from nestlink.core.auth import AuthService, get_current_profile_id
from nestlink.core.exceptions import NotFoundError
from nestlink.core.realtime import NotificationStream, serve_notifications, subscribe_notifications
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)

@router.get("/", response_model=List[Notification])
async def get_notifications(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Defaults to the configured page size"),
    current_profile_id: str = Depends(get_current_profile_id),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """The viewer's most recent notifications, newest first."""
    try:
        return await notification_service.list_notifications(current_profile_id, limit)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get notifications: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve notifications"
        )

@router.get("/unread-count", response_model=UnreadCount)
async def get_unread_count(
    current_profile_id: str = Depends(get_current_profile_id),
    notification_service: NotificationService = Depends(get_notification_service)
):
    try:
        count = await notification_service.unread_count(current_profile_id)
        return UnreadCount(unread_count=count)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to count unread notifications: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to count notifications"
        )

@router.put("/read-all")
async def mark_all_as_read(
    current_profile_id: str = Depends(get_current_profile_id),
    notification_service: NotificationService = Depends(get_notification_service)
):
    try:
        updated = await notification_service.mark_all_as_read(current_profile_id)
        return {"message": "Notifications marked as read", "updated": updated}

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to mark notifications as read: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update notifications"
        )

@router.put("/{notification_id}/read", response_model=Notification)
async def mark_as_read(
    notification_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """Mark one of the viewer's notifications as read."""
    try:
        return await notification_service.mark_as_read(current_profile_id, notification_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to mark notification {notification_id} as read: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update notification"
        )

@router.websocket("/ws")
async def notification_socket(
    websocket: WebSocket,
    token: str = Query(...),
    db: Session = Depends(get_db)
):
    """
    Live notification feed.

    Sends the unread backlog on connect, then every new notification for
    the signed-in profile. Browsers cannot set headers on a WebSocket, so
    the access token travels as a query parameter.
    """
    profile_id = AuthService.decode_access_token(token)
    if not profile_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    stream = NotificationStream()

    try:
        # Subscribe before reading the backlog; overlap is removed by the stream
        async with subscribe_notifications(profile_id) as pubsub:
            backlog = await NotificationService(db).list_unread(profile_id)
            for notification in stream.merge(backlog):
                await websocket.send_json(notification.model_dump(mode="json"))

            await serve_notifications(websocket, pubsub, stream, profile_id)

    except NotFoundError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
    except redis.RedisError as e:
        logger.warning(f"Notification subscription for {profile_id} failed: {e}")
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
