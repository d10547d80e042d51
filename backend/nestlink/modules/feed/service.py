from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_, desc
from sqlalchemy.exc import IntegrityError
from datetime import datetime
import uuid
from nestlink.models.post import Post, Comment, PostCreate, LikeState
from nestlink.models.notification import NotificationType
from nestlink.core.database import as_uuid
from nestlink.core.exceptions import NotFoundError, PermissionDeniedError
from nestlink.core.realtime import NotificationPublisher
from nestlink.db.models import (
    Post as DBPost, PostLike as DBPostLike, PostComment as DBPostComment,
    Notification as DBNotification, Property as DBProperty
)
from nestlink.modules.notifications.service import NotificationService
from nestlink.modules.profiles.cache import ProfileCache, profile_key
import logging

logger = logging.getLogger(__name__)


def to_comment(row: DBPostComment) -> Comment:
    return Comment(
        id=str(row.id),
        post_id=str(row.post_id),
        user_id=str(row.user_id),
        content=row.content,
        created_at=row.created_at
    )


class FeedService:
    """Posts with likes, comments and @mentions"""

    def __init__(self, db: Session, publisher: Optional[NotificationPublisher] = None):
        self.db = db
        self.cache = ProfileCache(db)
        self.notifications = NotificationService(db, publisher)

    def _get_post(self, post_id) -> DBPost:
        post = self.db.query(DBPost).filter(DBPost.id == as_uuid(post_id, "Post")).first()
        if not post:
            raise NotFoundError("Post not found")
        return post

    def _assemble(self, posts: List[DBPost]) -> List[Post]:
        """Attach like ids and comments with one query each, like the feed screen does"""
        if not posts:
            return []

        post_ids = [p.id for p in posts]
        likes: Dict[uuid.UUID, List[str]] = {}
        for like in self.db.query(DBPostLike).filter(DBPostLike.post_id.in_(post_ids)).order_by(DBPostLike.created_at).all():
            likes.setdefault(like.post_id, []).append(str(like.user_id))

        comments: Dict[uuid.UUID, List[Comment]] = {}
        for row in self.db.query(DBPostComment).filter(DBPostComment.post_id.in_(post_ids)).order_by(DBPostComment.created_at).all():
            comments.setdefault(row.post_id, []).append(to_comment(row))

        authors = self.cache.get_many(p.user_id for p in posts)

        return [
            Post(
                id=str(p.id),
                user_id=str(p.user_id),
                author_name=authors[p.user_id].name if p.user_id in authors else None,
                content=p.content,
                images=p.images or [],
                property_id=str(p.property_id) if p.property_id else None,
                tagged_users=p.tagged_users or [],
                likes=likes.get(p.id, []),
                comments=comments.get(p.id, []),
                created_at=p.created_at
            )
            for p in posts
        ]

    async def get_feed(self, limit: int = 50, offset: int = 0) -> List[Post]:
        posts = self.db.query(DBPost).order_by(desc(DBPost.created_at)).offset(offset).limit(limit).all()
        return self._assemble(posts)

    async def get_posts_by(self, profile_id: str) -> List[Post]:
        posts = self.db.query(DBPost).filter(
            DBPost.user_id == as_uuid(profile_id, "Profile")
        ).order_by(desc(DBPost.created_at)).all()
        return self._assemble(posts)

    async def get_post(self, post_id: str) -> Post:
        return self._assemble([self._get_post(post_id)])[0]

    async def create_post(self, author_id: str, data: PostCreate) -> Post:
        """Publish a post and notify every tagged profile"""
        author = as_uuid(author_id, "Profile")

        property_id = None
        if data.property_id:
            property_id = as_uuid(data.property_id, "Property")
            if not self.db.query(DBProperty.id).filter(DBProperty.id == property_id).first():
                raise NotFoundError("Property not found")

        # Unknown profiles are dropped from the tags; order is kept, duplicates removed
        requested = list(dict.fromkeys(str(t) for t in data.tagged_users))
        known = self.cache.get_many(requested)
        tagged = [t for t in requested if profile_key(t) in known]

        try:
            post = DBPost(
                id=uuid.uuid4(),
                user_id=author,
                content=data.content,
                images=data.images,
                property_id=property_id,
                tagged_users=tagged,
                created_at=datetime.utcnow()
            )
            self.db.add(post)
            self.db.flush()

            staged = [
                self.notifications.stage(profile_id, author, NotificationType.MENTION, post.id)
                for profile_id in tagged
            ]
            self.db.commit()
            self.db.refresh(post)

            self.notifications.publish(staged)
            logger.info(f"Post {post.id} created by {author} ({len(tagged)} mention(s))")
            return self._assemble([post])[0]

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create post: {e}")
            raise

    async def delete_post(self, viewer_id: str, post_id: str) -> None:
        try:
            post = self._get_post(post_id)
            if post.user_id != as_uuid(viewer_id, "Profile"):
                raise PermissionDeniedError("You can only delete your own posts")

            self.db.query(DBNotification).filter(DBNotification.post_id == post.id).delete(synchronize_session=False)
            self.db.delete(post)
            self.db.commit()

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete post {post_id}: {e}")
            raise

    async def toggle_like(self, viewer_id: str, post_id: str) -> LikeState:
        """Like the post, or remove the viewer's like when there already is one"""
        viewer = as_uuid(viewer_id, "Profile")
        post = self._get_post(post_id)

        try:
            existing = self.db.query(DBPostLike).filter(
                and_(DBPostLike.post_id == post.id, DBPostLike.user_id == viewer)
            ).first()

            staged = None
            if existing:
                self.db.delete(existing)
                liked = False
            else:
                self.db.add(DBPostLike(id=uuid.uuid4(), post_id=post.id, user_id=viewer, created_at=datetime.utcnow()))
                staged = self.notifications.stage(post.user_id, viewer, NotificationType.LIKE, post.id)
                liked = True

            self.db.commit()
            self.notifications.publish([staged])

        except IntegrityError:
            # Double click: the like is already there
            self.db.rollback()
            liked = True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to toggle like on {post_id}: {e}")
            raise

        count = self.db.query(DBPostLike).filter(DBPostLike.post_id == post.id).count()
        return LikeState(post_id=str(post.id), liked=liked, like_count=count)

    async def add_comment(self, viewer_id: str, post_id: str, content: str) -> Comment:
        viewer = as_uuid(viewer_id, "Profile")
        content = (content or "").strip()
        if not content:
            raise ValueError("Comment must not be empty")

        post = self._get_post(post_id)
        try:
            comment = DBPostComment(
                id=uuid.uuid4(),
                post_id=post.id,
                user_id=viewer,
                content=content,
                created_at=datetime.utcnow()
            )
            self.db.add(comment)
            self.db.flush()

            staged = self.notifications.stage(post.user_id, viewer, NotificationType.COMMENT, post.id, comment.id)
            self.db.commit()
            self.db.refresh(comment)

            self.notifications.publish([staged])
            return to_comment(comment)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to add comment to {post_id}: {e}")
            raise
