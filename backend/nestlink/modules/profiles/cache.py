from typing import Dict, Iterable, Optional
import uuid
from sqlalchemy.orm import Session
from nestlink.db.models import Profile as DBProfile


def profile_key(profile_id) -> Optional[uuid.UUID]:
    if isinstance(profile_id, uuid.UUID):
        return profile_id
    try:
        return uuid.UUID(str(profile_id))
    except (ValueError, TypeError):
        return None


class ProfileCache:
    """
    Request-scoped lookup cache for profiles, keyed by profile id.

    Owned by the service that created it; mutations of a profile must call
    invalidate() so later reads go back to the database.
    """

    def __init__(self, db: Session):
        self.db = db
        self._profiles: Dict[uuid.UUID, DBProfile] = {}

    def get(self, profile_id) -> Optional[DBProfile]:
        return self.get_many([profile_id]).get(profile_key(profile_id))

    def get_many(self, profile_ids: Iterable) -> Dict[uuid.UUID, DBProfile]:
        """Return cached profiles, fetching every miss with a single query"""
        keys = {profile_key(pid) for pid in profile_ids}
        keys.discard(None)

        missing = [key for key in keys if key not in self._profiles]
        if missing:
            rows = self.db.query(DBProfile).filter(DBProfile.id.in_(missing)).all()
            for row in rows:
                self._profiles[row.id] = row

        return {key: self._profiles[key] for key in keys if key in self._profiles}

    def name_of(self, profile_id) -> Optional[str]:
        profile = self.get(profile_id)
        return profile.name if profile else None

    def invalidate(self, profile_id=None) -> None:
        if profile_id is None:
            self._profiles.clear()
        else:
            self._profiles.pop(profile_key(profile_id), None)

    def __len__(self) -> int:
        return len(self._profiles)
