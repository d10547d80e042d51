"""
Celery configuration for background tasks
"""
from celery import Celery
from nestlink.core.config import settings

# Create Celery instance
celery_app = Celery(
    "nestlink",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["nestlink.modules.notifications.tasks"]
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,  # 10 minutes
    task_soft_time_limit=8 * 60,  # 8 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Beat schedule for periodic tasks
    beat_schedule={
        "purge-read-notifications": {
            "task": "nestlink.modules.notifications.tasks.purge_read_notifications",
            "schedule": 24 * 3600.0,  # Daily
            "args": (settings.NOTIFICATION_RETENTION_DAYS,),
        },
    },
)
