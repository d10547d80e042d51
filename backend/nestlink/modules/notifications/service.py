from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_, desc
from datetime import datetime, timedelta
import uuid
from nestlink.models.notification import Notification, NotificationType
from nestlink.core.config import settings
from nestlink.core.database import as_uuid
from nestlink.core.exceptions import NotFoundError
from nestlink.core.realtime import NotificationPublisher
from nestlink.db.models import Notification as DBNotification
import logging

logger = logging.getLogger(__name__)


def to_notification(row: DBNotification) -> Notification:
    return Notification(
        id=str(row.id),
        user_id=str(row.user_id),
        type=row.type,
        related_user_id=str(row.related_user_id),
        post_id=str(row.post_id),
        comment_id=str(row.comment_id) if row.comment_id else None,
        is_read=row.is_read,
        created_at=row.created_at
    )


class NotificationService:
    """Service for activity notifications"""

    def __init__(self, db: Session, publisher: Optional[NotificationPublisher] = None):
        self.db = db
        self.publisher = publisher

    def stage(self, recipient_id, actor_id, type: NotificationType, post_id,
              comment_id=None) -> Optional[DBNotification]:
        """
        Add a notification to the current transaction.

        Nothing is staged when the actor is the recipient. The caller commits
        and then hands the rows to publish().
        """
        if str(recipient_id) == str(actor_id):
            return None

        row = DBNotification(
            id=uuid.uuid4(),
            user_id=as_uuid(recipient_id, "Profile"),
            related_user_id=as_uuid(actor_id, "Profile"),
            type=NotificationType(type).value,
            post_id=as_uuid(post_id, "Post"),
            comment_id=as_uuid(comment_id, "Comment") if comment_id else None,
            is_read=False,
            created_at=datetime.utcnow()
        )
        self.db.add(row)
        return row

    def publish(self, rows: Iterable[Optional[DBNotification]]) -> None:
        if self.publisher is None:
            return
        for row in rows:
            if row is not None:
                self.publisher.publish(to_notification(row))

    async def list_notifications(self, viewer_id: str, limit: Optional[int] = None) -> List[Notification]:
        rows = self.db.query(DBNotification).filter(
            DBNotification.user_id == as_uuid(viewer_id, "Profile")
        ).order_by(desc(DBNotification.created_at)).limit(limit or settings.NOTIFICATION_PAGE_SIZE).all()
        return [to_notification(row) for row in rows]

    async def list_unread(self, viewer_id: str) -> List[Notification]:
        rows = self.db.query(DBNotification).filter(
            and_(DBNotification.user_id == as_uuid(viewer_id, "Profile"), DBNotification.is_read == False)
        ).order_by(DBNotification.created_at).limit(settings.NOTIFICATION_PAGE_SIZE).all()
        return [to_notification(row) for row in rows]

    async def unread_count(self, viewer_id: str) -> int:
        return self.db.query(DBNotification).filter(
            and_(DBNotification.user_id == as_uuid(viewer_id, "Profile"), DBNotification.is_read == False)
        ).count()

    async def mark_as_read(self, viewer_id: str, notification_id: str) -> Notification:
        try:
            row = self.db.query(DBNotification).filter(
                and_(
                    DBNotification.id == as_uuid(notification_id, "Notification"),
                    DBNotification.user_id == as_uuid(viewer_id, "Profile")
                )
            ).first()
            if not row:
                raise NotFoundError("Notification not found")

            row.is_read = True
            self.db.commit()
            self.db.refresh(row)
            return to_notification(row)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark notification {notification_id} as read: {e}")
            raise

    async def mark_all_as_read(self, viewer_id: str) -> int:
        try:
            updated = self.db.query(DBNotification).filter(
                and_(DBNotification.user_id == as_uuid(viewer_id, "Profile"), DBNotification.is_read == False)
            ).update({DBNotification.is_read: True}, synchronize_session=False)
            self.db.commit()
            return updated

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to mark notifications as read for {viewer_id}: {e}")
            raise

    def purge_read(self, days_old: int) -> int:
        """Delete read notifications older than the retention window"""
        cutoff = datetime.utcnow() - timedelta(days=days_old)
        try:
            deleted = self.db.query(DBNotification).filter(
                and_(DBNotification.is_read == True, DBNotification.created_at < cutoff)
            ).delete(synchronize_session=False)
            self.db.commit()
            return deleted

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to purge read notifications: {e}")
            raise
