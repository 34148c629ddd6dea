# app/schemas/provider.py
from pydantic import BaseModel, Field
from typing import Optional


class ProviderCreate(BaseModel):
    service_id: int
    hourly_rate: float = Field(..., gt=0)
    experience: int = Field(0, ge=0)
    availability: Optional[str] = None


class ProviderResponse(BaseModel):
    id: int
    user_id: int
    service_id: int
    experience: int
    hourly_rate: float
    availability: Optional[str]
    rating: float
    total_reviews: int
    completed_bookings: int
    is_verified: bool
    is_available: bool

    class Config:
        from_attributes = True


class ProviderListItem(BaseModel):
    """Provider card shown on a service page."""
    id: int
    user_id: int
    name: Optional[str]
    avatar: Optional[str]
    city: Optional[str]
    experience: int
    hourly_rate: float
    rating: float
    total_reviews: int
    completed_bookings: int
