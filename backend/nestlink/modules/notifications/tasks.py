"""
Celery tasks for notification housekeeping
"""
import logging
from datetime import datetime
from typing import Dict, Any
from celery import Task
from sqlalchemy.orm import Session

from nestlink.core.celery_app import celery_app
from nestlink.core.database import SessionLocal
from .service import NotificationService

logger = logging.getLogger(__name__)


class DatabaseTask(Task):
    """Base task class that provides database session management"""

    def __call__(self, *args, **kwargs):
        with SessionLocal() as db:
            try:
                return self.run(db, *args, **kwargs)
            except Exception as e:
                db.rollback()
                logger.error(f"Task {self.name} failed: {str(e)}")
                raise


def purge_old_notifications(db: Session, days_old: int) -> Dict[str, Any]:
    deleted = NotificationService(db).purge_read(days_old)
    result = {
        'deleted': deleted,
        'days_old': days_old,
        'purged_at': datetime.utcnow().isoformat()
    }
    logger.info(f"Purged read notifications: {result}")
    return result


@celery_app.task(bind=True, base=DatabaseTask, max_retries=3, default_retry_delay=300)
def purge_read_notifications(self, db: Session, days_old: int = 30) -> Dict[str, Any]:
    """
    Periodic task removing read notifications older than days_old
    """
    try:
        return purge_old_notifications(db, days_old)
    except Exception as e:
        logger.error(f"Error in purge_read_notifications: {str(e)}")
        raise self.retry(exc=e, countdown=60 * (2 ** self.request.retries))
