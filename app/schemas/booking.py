from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional

BookingStatus = Literal["pending", "confirmed", "in_progress", "completed", "cancelled"]


# --- CREATE ---
class BookingCreate(BaseModel):
    provider_id: int
    service_id: int
    booking_date: datetime
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    duration: int = Field(..., ge=1, le=24)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = None
    total_price: float = Field(..., ge=0)


# --- UPDATE (Provider or Admin) ---
class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    cancellation_reason: Optional[str] = None


# --- RESPONSE ---
class BookingResponse(BaseModel):
    id: int
    customer_id: int
    provider_id: int
    service_id: int
    booking_date: datetime
    start_time: str
    duration: int
    status: str
    address: str
    city: str
    notes: Optional[str]
    total_price: float
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
