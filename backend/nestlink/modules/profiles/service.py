from typing import List, Optional
from sqlalchemy.orm import Session
from datetime import datetime
import uuid
from nestlink.models.profile import Badge, Profile, ProfileUpdate, ListingPreferences
from nestlink.core.auth import AuthService
from nestlink.core.database import as_uuid
from nestlink.core.exceptions import NotFoundError
from nestlink.db.models import User as DBUser, Profile as DBProfile
from nestlink.modules.profiles.cache import ProfileCache
import logging

logger = logging.getLogger(__name__)

MENTION_SUGGESTION_LIMIT = 5


def to_profile(db_profile: DBProfile) -> Profile:
    return Profile(
        id=str(db_profile.id),
        name=db_profile.name,
        email=db_profile.email,
        avatar_url=db_profile.avatar_url,
        description=db_profile.description,
        location=db_profile.location,
        badge=db_profile.badge,
        listing_preference=db_profile.listing_preference,
        created_at=db_profile.created_at
    )


class ProfileService:
    """Service for accounts and profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.cache = ProfileCache(db)

    async def create_account(self, email: str, password: str, name: str, badge: Badge,
                             location: Optional[str] = None, description: Optional[str] = None) -> Profile:
        """Create the auth user and its profile in one transaction"""
        try:
            if not name or not name.strip():
                raise ValueError("Name must not be empty")

            existing_user = self.db.query(DBUser).filter(DBUser.email == email).first()
            if existing_user:
                raise ValueError("User with this email already exists")

            db_user = DBUser(
                id=uuid.uuid4(),
                email=email,
                hashed_password=AuthService.get_password_hash(password),
                is_active=True,
                created_at=datetime.utcnow()
            )
            db_profile = DBProfile(
                id=uuid.uuid4(),
                user_id=db_user.id,
                name=name.strip(),
                email=email,
                badge=Badge(badge).value,
                location=location,
                description=description,
                created_at=datetime.utcnow()
            )

            self.db.add(db_user)
            self.db.add(db_profile)
            self.db.commit()
            self.db.refresh(db_profile)

            logger.info(f"Created account for profile {db_profile.id} ({db_profile.badge})")
            return to_profile(db_profile)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create account: {e}")
            raise

    async def authenticate(self, email: str, password: str) -> Optional[Profile]:
        """Return the profile for valid credentials, None otherwise"""
        db_user = self.db.query(DBUser).filter(DBUser.email == email, DBUser.is_active == True).first()

        if not db_user or not AuthService.verify_password(password, db_user.hashed_password):
            return None

        db_user.last_login = datetime.utcnow()
        self.db.commit()

        db_profile = self.db.query(DBProfile).filter(DBProfile.user_id == db_user.id).first()
        if not db_profile:
            logger.error(f"User {db_user.id} has no profile")
            return None
        return to_profile(db_profile)

    async def get_profile(self, profile_id: str) -> Profile:
        db_profile = self.cache.get(as_uuid(profile_id, "Profile"))
        if not db_profile:
            raise NotFoundError("Profile not found")
        return to_profile(db_profile)

    async def update_profile(self, profile_id: str, changes: ProfileUpdate) -> Profile:
        """Apply the provided fields to the caller's own profile"""
        try:
            db_profile = self.db.query(DBProfile).filter(DBProfile.id == as_uuid(profile_id, "Profile")).first()
            if not db_profile:
                raise NotFoundError("Profile not found")

            for field, value in changes.model_dump(exclude_unset=True).items():
                if field == "badge" and value is not None:
                    value = Badge(value).value
                setattr(db_profile, field, value)
            db_profile.updated_at = datetime.utcnow()

            self.db.commit()
            self.db.refresh(db_profile)
            self.cache.invalidate(db_profile.id)

            return to_profile(db_profile)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update profile {profile_id}: {e}")
            raise

    async def set_listing_preferences(self, profile_id: str, preferences: ListingPreferences) -> Profile:
        return await self.update_profile(
            profile_id, ProfileUpdate(listing_preference=preferences.to_text())
        )

    async def search_profiles(self, query: str, limit: int = MENTION_SUGGESTION_LIMIT) -> List[Profile]:
        """Case-insensitive name lookup used for @mention suggestions"""
        query = (query or "").strip()
        if not query:
            return []

        rows = (
            self.db.query(DBProfile)
            .filter(DBProfile.name.ilike(f"%{query}%"))
            .order_by(DBProfile.name)
            .limit(limit)
            .all()
        )
        return [to_profile(row) for row in rows]
