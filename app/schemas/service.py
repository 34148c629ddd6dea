# app/schemas/service.py

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

ServiceCategory = Literal["cleaning", "hospitality", "gardening", "other"]


# Admin creates service
class ServiceCreate(BaseModel):
    name_ar: str = Field(..., min_length=1)
    name_en: str = Field(..., min_length=1)
    description_ar: str
    description_en: str
    category: ServiceCategory
    base_price: float = Field(..., ge=0)
    price_unit: str = "hour"
    icon: Optional[str] = None
    image: Optional[str] = None


# What API returns
class ServiceResponse(BaseModel):
    id: int
    name_ar: str
    name_en: str
    description_ar: str
    description_en: str
    category: str
    icon: Optional[str] = None
    image: Optional[str] = None
    base_price: float
    price_unit: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
