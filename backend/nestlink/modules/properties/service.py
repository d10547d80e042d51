from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import desc, or_
from datetime import datetime
import uuid
from nestlink.models.property import Property, PropertyCreate, PropertyUpdate, PropertyFilter
from nestlink.models.profile import ListingPreferences, ListingType, parse_listing_preference
from nestlink.core.database import as_uuid
from nestlink.core.exceptions import NotFoundError, PermissionDeniedError
from nestlink.db.models import Property as DBProperty, Profile as DBProfile, ShortlistProperty as DBShortlistProperty
import logging

logger = logging.getLogger(__name__)


def to_property(db_property: DBProperty) -> Property:
    """Map a row to the API model, filling blanks the way listing cards expect"""
    listing_type = db_property.type if db_property.type in (ListingType.RENT.value, ListingType.SALE.value) else ListingType.RENT.value
    return Property(
        id=str(db_property.id),
        owner_id=str(db_property.owner_id),
        title=db_property.title,
        description=db_property.description or "",
        price=db_property.price,
        type=listing_type,
        location=db_property.location,
        bedrooms=db_property.bedrooms or 0,
        bathrooms=db_property.bathrooms or 0,
        area=db_property.area or 0,
        images=db_property.images or [],
        features=db_property.features or [],
        created_at=db_property.created_at
    )


def preferences_to_filter(preferences: ListingPreferences, limit: int = 50) -> PropertyFilter:
    return PropertyFilter(
        types=preferences.types,
        location=preferences.location or None,
        min_price=preferences.min_price,
        max_price=preferences.max_price,
        min_area=preferences.min_size,
        max_area=preferences.max_size,
        limit=limit
    )


def matches_preferences(prop: Property, preferences: ListingPreferences) -> bool:
    """In-memory counterpart of the recommended listings query"""
    if preferences.types and prop.type not in preferences.types:
        return False
    if not preferences.min_price <= prop.price <= preferences.max_price:
        return False
    if not preferences.min_size <= prop.area <= preferences.max_size:
        return False
    if preferences.location and preferences.location.lower() not in prop.location.lower():
        return False
    return True


class PropertyService:
    """Service for property listings"""

    def __init__(self, db: Session):
        self.db = db

    def _get(self, property_id) -> DBProperty:
        db_property = self.db.query(DBProperty).filter(DBProperty.id == as_uuid(property_id, "Property")).first()
        if not db_property:
            raise NotFoundError("Property not found")
        return db_property

    async def list_properties(self, criteria: PropertyFilter) -> List[Property]:
        """Newest listings matching the filter"""
        query = self.db.query(DBProperty)

        if criteria.types:
            query = query.filter(DBProperty.type.in_([t.value for t in criteria.types]))
        if criteria.search:
            term = f"%{criteria.search.strip()}%"
            query = query.filter(or_(DBProperty.title.ilike(term), DBProperty.location.ilike(term)))
        if criteria.location:
            query = query.filter(DBProperty.location.ilike(f"%{criteria.location.strip()}%"))
        if criteria.min_price is not None:
            query = query.filter(DBProperty.price >= criteria.min_price)
        if criteria.max_price is not None:
            query = query.filter(DBProperty.price <= criteria.max_price)
        if criteria.min_area is not None:
            query = query.filter(DBProperty.area >= criteria.min_area)
        if criteria.max_area is not None:
            query = query.filter(DBProperty.area <= criteria.max_area)

        rows = query.order_by(desc(DBProperty.created_at)).offset(criteria.offset).limit(criteria.limit).all()
        return [to_property(row) for row in rows]

    async def recommended_for(self, profile_id: str, limit: int = 50) -> List[Property]:
        """Listings matching the viewer's stored listing preference"""
        db_profile = self.db.query(DBProfile).filter(DBProfile.id == as_uuid(profile_id, "Profile")).first()
        if not db_profile:
            raise NotFoundError("Profile not found")

        preferences = parse_listing_preference(db_profile.listing_preference)
        return await self.list_properties(preferences_to_filter(preferences, limit))

    async def get_property(self, property_id: str) -> Property:
        return to_property(self._get(property_id))

    async def list_by_owner(self, owner_id: str) -> List[Property]:
        rows = self.db.query(DBProperty).filter(
            DBProperty.owner_id == as_uuid(owner_id, "Profile")
        ).order_by(desc(DBProperty.created_at)).all()
        return [to_property(row) for row in rows]

    async def create_property(self, owner_id: str, data: PropertyCreate) -> Property:
        try:
            now = datetime.utcnow()
            db_property = DBProperty(
                id=uuid.uuid4(),
                owner_id=as_uuid(owner_id, "Profile"),
                title=data.title,
                description=data.description,
                price=data.price,
                type=data.type.value,
                location=data.location,
                bedrooms=data.bedrooms,
                bathrooms=data.bathrooms,
                area=data.area,
                images=data.images,
                features=data.features,
                created_at=now,
                updated_at=now
            )
            self.db.add(db_property)
            self.db.commit()
            self.db.refresh(db_property)

            logger.info(f"Property {db_property.id} listed by {owner_id}")
            return to_property(db_property)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create property: {e}")
            raise

    async def update_property(self, owner_id: str, property_id: str, changes: PropertyUpdate) -> Property:
        try:
            db_property = self._get(property_id)
            if str(db_property.owner_id) != str(owner_id):
                raise PermissionDeniedError("Only the owner can edit this listing")

            for field, value in changes.model_dump(exclude_unset=True).items():
                if field == "type" and value is not None:
                    value = ListingType(value).value
                setattr(db_property, field, value)
            db_property.updated_at = datetime.utcnow()

            self.db.commit()
            self.db.refresh(db_property)
            return to_property(db_property)

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update property {property_id}: {e}")
            raise

    async def delete_property(self, owner_id: str, property_id: str) -> None:
        try:
            db_property = self._get(property_id)
            if str(db_property.owner_id) != str(owner_id):
                raise PermissionDeniedError("Only the owner can delete this listing")

            self.db.query(DBShortlistProperty).filter(
                DBShortlistProperty.property_id == db_property.id
            ).delete(synchronize_session=False)
            self.db.delete(db_property)
            self.db.commit()

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise
