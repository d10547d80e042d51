from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from nestlink.models.profile import ListingType


class Property(BaseModel):
    id: str
    owner_id: str
    title: str
    description: str = ""
    price: float
    type: ListingType
    location: str
    bedrooms: int = 0
    bathrooms: int = 0
    area: float = 0
    images: List[str] = []
    features: List[str] = []
    created_at: Optional[datetime] = None

    class Config:
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }


class PropertyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    type: ListingType
    location: str = Field(..., min_length=1, max_length=500)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    area: Optional[float] = Field(None, ge=0)
    images: List[str] = []
    features: List[str] = []


class PropertyUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    type: Optional[ListingType] = None
    location: Optional[str] = Field(None, min_length=1, max_length=500)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    area: Optional[float] = Field(None, ge=0)
    images: Optional[List[str]] = None
    features: Optional[List[str]] = None

    @field_validator('title', 'price', 'type', 'location')
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v


class PropertyFilter(BaseModel):
    """Browse filters; type None means both rent and sale"""
    types: List[ListingType] = []
    search: Optional[str] = None
    location: Optional[str] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    min_area: Optional[float] = Field(None, ge=0)
    max_area: Optional[float] = Field(None, ge=0)
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)

    @model_validator(mode='after')
    def validate_ranges(self):
        if (self.min_price is not None and self.max_price is not None
                and self.min_price > self.max_price):
            raise ValueError('min_price must not exceed max_price')
        if (self.min_area is not None and self.max_area is not None
                and self.min_area > self.max_area):
            raise ValueError('min_area must not exceed max_area')
        return self
