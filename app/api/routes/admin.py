# app/api/routes/admin.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Optional, List

from app.api.deps import require_admin
from app.core.errors import NotFound
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.provider import Provider
from app.db.models.service import Service
from app.db.models.user import User
from app.schemas.admin import PlatformStatistics, UserListItem
from app.schemas.booking import BookingResponse
from app.schemas.provider import ProviderResponse

router = APIRouter(prefix="/admin", tags=["admin"])


# -------------------------
# Users (filterable)
# -------------------------
@router.get("/users", response_model=List[UserListItem])
def list_users(
    role: Optional[str] = Query(None, description="user/provider/admin"),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)

    offset = (page - 1) * per_page
    return q.order_by(User.id).offset(offset).limit(per_page).all()


# -------------------------
# Bookings
# -------------------------
@router.get("/bookings", response_model=List[BookingResponse])
def list_bookings(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    q = db.query(Booking)
    if status:
        q = q.filter(Booking.status == status)

    offset = (page - 1) * per_page
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(offset).limit(per_page).all()


# -------------------------
# Verify / unverify provider
# -------------------------
@router.put("/providers/{provider_id}/verify", response_model=ProviderResponse)
def verify_provider(
    provider_id: int,
    verified: bool = Query(True),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    provider = db.query(Provider).filter(Provider.id == provider_id).first()
    if not provider:
        raise NotFound(f"provider {provider_id}")

    provider.is_verified = verified
    db.commit()
    db.refresh(provider)
    return provider


# -------------------------
# Platform counts
# -------------------------
@router.get("/statistics", response_model=PlatformStatistics)
def statistics(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return PlatformStatistics(
        total_users=db.query(func.count(User.id)).scalar() or 0,
        total_providers=db.query(func.count(Provider.id)).scalar() or 0,
        total_services=db.query(func.count(Service.id)).scalar() or 0,
        total_bookings=db.query(func.count(Booking.id)).scalar() or 0,
        pending_bookings=db.query(func.count(Booking.id)).filter(Booking.status == "pending").scalar() or 0,
        completed_bookings=db.query(func.count(Booking.id)).filter(Booking.status == "completed").scalar() or 0,
    )
