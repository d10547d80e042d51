from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
import json
import logging

logger = logging.getLogger(__name__)


class Badge(str, Enum):
    OWNER = "owner"
    SEEKER = "seeker"
    BUSINESS = "business"


class ListingType(str, Enum):
    RENT = "rent"
    SALE = "sale"


class ListingPreferenceFields(BaseModel):
    """The preference fields without the cross-field range rules"""
    model_config = ConfigDict(populate_by_name=True)

    types: List[ListingType] = []
    min_size: float = Field(10, alias="minSize", ge=0)
    max_size: float = Field(200, alias="maxSize", ge=0)
    min_price: float = Field(500, alias="minPrice", ge=0)
    max_price: float = Field(5000, alias="maxPrice", ge=0)
    location: str = ""


class ListingPreferences(ListingPreferenceFields):
    """Filter criteria a seeker keeps on their profile, serialised with camelCase keys"""

    @model_validator(mode='after')
    def validate_ranges(self):
        if self.min_size > self.max_size:
            raise ValueError('minSize must not exceed maxSize')
        if self.min_price > self.max_price:
            raise ValueError('minPrice must not exceed maxPrice')
        return self

    def to_text(self) -> str:
        return self.model_dump_json(by_alias=True)


RANGE_PAIRS = (("minSize", "maxSize"), ("minPrice", "maxPrice"))


def salvage_listing_preference(data: dict) -> ListingPreferences:
    """Keep the fields of a stored object that are valid on their own; the rest fall back to defaults"""
    kept = {}
    for key, value in data.items():
        try:
            field = ListingPreferenceFields.model_validate({key: value})
        except ValueError:
            logger.warning(f"Ignoring invalid listing preference field {key!r}")
            continue
        kept.update(field.model_dump(by_alias=True, exclude_unset=True))

    defaults = ListingPreferenceFields().model_dump(by_alias=True)
    for low, high in RANGE_PAIRS:
        if kept.get(low, defaults[low]) > kept.get(high, defaults[high]):
            logger.warning(f"Ignoring inverted listing preference range {low}/{high}")
            kept.pop(low, None)
            kept.pop(high, None)

    return ListingPreferences.model_validate(kept)


def parse_listing_preference(text: Optional[str]) -> ListingPreferences:
    """
    Read the stored listing preference.

    Older profiles stored a free-text location instead of JSON; text that is
    not a JSON object is used as the location filter. A JSON object keeps
    whichever of its fields are valid.
    """
    if not text or not text.strip():
        return ListingPreferences()

    try:
        data = json.loads(text)
    except ValueError:
        return ListingPreferences(location=text)

    if not isinstance(data, dict):
        return ListingPreferences(location=text)

    try:
        return ListingPreferences.model_validate(data)
    except ValueError:
        return salvage_listing_preference(data)


class Profile(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    badge: Badge
    listing_preference: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    badge: Optional[Badge] = None
    listing_preference: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is None or not v.strip():
            raise ValueError('name must not be empty')
        return v.strip()

    @field_validator('badge')
    @classmethod
    def validate_badge(cls, v):
        # Omit the field to keep the current badge
        if v is None:
            raise ValueError('badge cannot be null')
        return v
