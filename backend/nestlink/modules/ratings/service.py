from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_, desc, func
from sqlalchemy.exc import IntegrityError
from datetime import datetime
import uuid
from nestlink.models.profile import Badge
from nestlink.models.rating import BusinessRating, Review, RatingStats
from nestlink.core.database import as_uuid
from nestlink.core.exceptions import NotFoundError
from nestlink.db.models import BusinessRating as DBBusinessRating
from nestlink.modules.profiles.cache import ProfileCache
import logging

logger = logging.getLogger(__name__)


def to_rating(row: DBBusinessRating) -> BusinessRating:
    return BusinessRating(
        id=str(row.id),
        rater_id=str(row.rater_id),
        business_id=str(row.business_id),
        rating=row.rating,
        comment=row.comment,
        created_at=row.created_at
    )


class RatingService:
    """Star ratings that profiles leave on business profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.cache = ProfileCache(db)

    def _find(self, rater: uuid.UUID, business: uuid.UUID) -> Optional[DBBusinessRating]:
        return self.db.query(DBBusinessRating).filter(
            and_(DBBusinessRating.rater_id == rater, DBBusinessRating.business_id == business)
        ).first()

    async def rate_business(self, rater_id: str, business_id: str, rating: int,
                            comment: Optional[str] = None) -> BusinessRating:
        """Insert the rater's rating or replace the one they gave before"""
        rater = as_uuid(rater_id, "Profile")
        business = as_uuid(business_id, "Business")

        if not 1 <= rating <= 5:
            raise ValueError("Rating must be between 1 and 5")
        if rater == business:
            raise ValueError("You cannot rate yourself")

        db_business = self.cache.get(business)
        if not db_business:
            raise NotFoundError("Business not found")
        if db_business.badge != Badge.BUSINESS.value:
            raise ValueError("Only business profiles can be rated")

        comment = (comment or "").strip() or None

        for attempt in range(2):
            try:
                row = self._find(rater, business)
                now = datetime.utcnow()
                if row is None:
                    row = DBBusinessRating(id=uuid.uuid4(), rater_id=rater, business_id=business, created_at=now)
                    self.db.add(row)
                row.rating = rating
                row.comment = comment
                row.updated_at = now

                self.db.commit()
                self.db.refresh(row)
                logger.info(f"{rater} rated business {business}: {rating}")
                return to_rating(row)

            except IntegrityError:
                # Another submission from the same rater landed first; update it instead
                self.db.rollback()
                if attempt:
                    raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to rate business {business_id}: {e}")
                raise

    async def get_reviews(self, business_id: str) -> List[Review]:
        rows = self.db.query(DBBusinessRating).filter(
            DBBusinessRating.business_id == as_uuid(business_id, "Business")
        ).order_by(desc(DBBusinessRating.created_at)).all()

        raters = self.cache.get_many(row.rater_id for row in rows)
        reviews = []
        for row in rows:
            rater = raters.get(row.rater_id)
            reviews.append(Review(
                id=str(row.id),
                rating=row.rating,
                comment=row.comment,
                rater_id=str(row.rater_id),
                rater_name=rater.name if rater else None,
                rater_avatar_url=rater.avatar_url if rater else None,
                created_at=row.created_at
            ))
        return reviews

    async def get_stats(self, business_ids: List[str]) -> Dict[str, RatingStats]:
        """Average and count per business; businesses without ratings get zeros"""
        keys = {}
        for business_id in business_ids:
            try:
                keys[as_uuid(business_id, "Business")] = business_id
            except NotFoundError:
                continue

        stats = {bid: RatingStats(business_id=bid) for bid in business_ids}
        if not keys:
            return stats

        rows = (
            self.db.query(
                DBBusinessRating.business_id,
                func.avg(DBBusinessRating.rating),
                func.count(DBBusinessRating.id)
            )
            .filter(DBBusinessRating.business_id.in_(list(keys)))
            .group_by(DBBusinessRating.business_id)
            .all()
        )
        for business, average, total in rows:
            original = keys[business]
            stats[original] = RatingStats(
                business_id=original,
                average_rating=round(float(average), 2),
                total_ratings=total
            )
        return stats

    async def get_my_rating(self, rater_id: str, business_id: str) -> int:
        """The viewer's rating for a business, 0 when they have not rated it"""
        row = self._find(as_uuid(rater_id, "Profile"), as_uuid(business_id, "Business"))
        return row.rating if row else 0
