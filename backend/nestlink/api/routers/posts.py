from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List
from nestlink.models.post import Post, PostCreate, Comment, CommentCreate, LikeState
from nestlink.modules.feed.service import FeedService
from nestlink.core.database import get_db
from nestlink.core.auth import get_current_profile_id
from nestlink.core.exceptions import NotFoundError, PermissionDeniedError
from nestlink.core.realtime import NotificationPublisher, get_notification_publisher
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

def get_feed_service(
    db: Session = Depends(get_db),
    publisher: NotificationPublisher = Depends(get_notification_publisher)
) -> FeedService:
    return FeedService(db, publisher)

@router.get("/", response_model=List[Post])
async def get_feed(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    feed_service: FeedService = Depends(get_feed_service)
):
    """Posts newest first, each with its likes and comments."""
    try:
        return await feed_service.get_feed(limit, offset)

    except Exception as e:
        logger.error(f"Failed to get feed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve posts"
        )

@router.get("/author/{profile_id}", response_model=List[Post])
async def get_posts_by_author(
    profile_id: str,
    feed_service: FeedService = Depends(get_feed_service)
):
    try:
        return await feed_service.get_posts_by(profile_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get posts by {profile_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve posts"
        )

@router.get("/{post_id}", response_model=Post)
async def get_post(
    post_id: str,
    feed_service: FeedService = Depends(get_feed_service)
):
    try:
        return await feed_service.get_post(post_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get post {post_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve post"
        )

@router.post("/", response_model=Post)
async def create_post(
    post_data: PostCreate,
    current_profile_id: str = Depends(get_current_profile_id),
    feed_service: FeedService = Depends(get_feed_service)
):
    """
    Publish a post.

    Tagged profiles that do not exist are dropped; every remaining tag
    receives a mention notification.
    """
    try:
        return await feed_service.create_post(current_profile_id, post_data)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create post: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create post"
        )

@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    feed_service: FeedService = Depends(get_feed_service)
):
    try:
        await feed_service.delete_post(current_profile_id, post_id)
        return {"message": "Post deleted successfully"}

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete post {post_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete post"
        )

@router.post("/{post_id}/like", response_model=LikeState)
async def toggle_like(
    post_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    feed_service: FeedService = Depends(get_feed_service)
):
    """Like the post, or take the like back if the viewer already liked it."""
    try:
        return await feed_service.toggle_like(current_profile_id, post_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to toggle like on {post_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update like"
        )

@router.post("/{post_id}/comments", response_model=Comment)
async def add_comment(
    post_id: str,
    comment_data: CommentCreate,
    current_profile_id: str = Depends(get_current_profile_id),
    feed_service: FeedService = Depends(get_feed_service)
):
    try:
        return await feed_service.add_comment(current_profile_id, post_id, comment_data.content)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to add comment to {post_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add comment"
        )
