from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Dict, List
from pydantic import BaseModel
from nestlink.models.rating import RatingSubmission, BusinessRating, Review, RatingStats
from nestlink.modules.ratings.service import RatingService
from nestlink.core.database import get_db
from nestlink.core.auth import get_current_profile_id
from nestlink.core.exceptions import NotFoundError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

class MyRating(BaseModel):
    business_id: str
    rating: int  # 0 when the viewer has not rated the business

def get_rating_service(db: Session = Depends(get_db)) -> RatingService:
    return RatingService(db)

@router.get("/stats", response_model=Dict[str, RatingStats])
async def get_rating_stats(
    business_ids: List[str] = Query(..., description="Businesses to summarise"),
    rating_service: RatingService = Depends(get_rating_service)
):
    """Average rating and rating count per business."""
    try:
        return await rating_service.get_stats(business_ids)

    except Exception as e:
        logger.error(f"Failed to get rating stats: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve rating stats"
        )

@router.put("/{business_id}", response_model=BusinessRating)
async def rate_business(
    business_id: str,
    submission: RatingSubmission,
    current_profile_id: str = Depends(get_current_profile_id),
    rating_service: RatingService = Depends(get_rating_service)
):
    """
    Rate a business from 1 to 5 stars.

    Rating the same business again replaces the earlier rating.
    """
    try:
        return await rating_service.rate_business(
            current_profile_id, business_id, submission.rating, submission.comment
        )

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to rate business {business_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save rating"
        )

@router.get("/{business_id}/reviews", response_model=List[Review])
async def get_reviews(
    business_id: str,
    rating_service: RatingService = Depends(get_rating_service)
):
    try:
        return await rating_service.get_reviews(business_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get reviews for {business_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve reviews"
        )

@router.get("/{business_id}/mine", response_model=MyRating)
async def get_my_rating(
    business_id: str,
    current_profile_id: str = Depends(get_current_profile_id),
    rating_service: RatingService = Depends(get_rating_service)
):
    try:
        rating = await rating_service.get_my_rating(current_profile_id, business_id)
        return MyRating(business_id=business_id, rating=rating)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get rating for {business_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve rating"
        )
