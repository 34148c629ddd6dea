# app/schemas/admin.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserListItem(BaseModel):
    id: int
    email: str
    name: Optional[str]
    role: str
    email_verified: bool
    created_at: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlatformStatistics(BaseModel):
    total_users: int
    total_providers: int
    total_services: int
    total_bookings: int
    pending_bookings: int
    completed_bookings: int
