from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    LIKE = "like"
    COMMENT = "comment"
    MENTION = "mention"


class Notification(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    related_user_id: str
    post_id: str
    comment_id: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None


class UnreadCount(BaseModel):
    unread_count: int
