from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class RatingSubmission(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class BusinessRating(BaseModel):
    id: str
    rater_id: str
    business_id: str
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None


class Review(BaseModel):
    id: str
    rating: int
    comment: Optional[str] = None
    rater_id: str
    rater_name: Optional[str] = None
    rater_avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class RatingStats(BaseModel):
    business_id: str
    average_rating: float = 0.0
    total_ratings: int = 0
