from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


class Comment(BaseModel):
    id: str
    post_id: str
    user_id: str
    content: str
    created_at: Optional[datetime] = None


class Post(BaseModel):
    id: str
    user_id: str
    author_name: Optional[str] = None
    content: str
    images: List[str] = []
    property_id: Optional[str] = None
    tagged_users: List[str] = []
    likes: List[str] = []  # profile ids
    comments: List[Comment] = []
    created_at: Optional[datetime] = None


class PostCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    images: List[str] = []
    property_id: Optional[str] = None
    tagged_users: List[str] = []

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v.strip():
            raise ValueError('Post content must not be empty')
        return v.strip()


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=2000)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if not v.strip():
            raise ValueError('Comment must not be empty')
        return v.strip()


class LikeState(BaseModel):
    post_id: str
    liked: bool
    like_count: int
