# app/api/routes/providers.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, has_role
from app.core.errors import Conflict, NotFound
from app.db.base import get_db
from app.db.models.provider import Provider
from app.db.models.service import Service
from app.db.models.user import User
from app.schemas.provider import ProviderCreate, ProviderListItem, ProviderResponse

router = APIRouter(prefix="/providers", tags=["providers"])


# Verified, available providers for a service (public)
@router.get("/by-service/{service_id}", response_model=list[ProviderListItem])
def list_by_service(service_id: int, db: Session = Depends(get_db)):
    rows = (
        db.query(Provider, User)
        .join(User, Provider.user_id == User.id)
        .filter(
            Provider.service_id == service_id,
            Provider.is_verified == True,
            Provider.is_available == True,
        )
        .order_by(Provider.rating.desc(), Provider.id)
        .all()
    )

    items = []
    for prov, user in rows:
        items.append(
            ProviderListItem(
                id=prov.id,
                user_id=user.id,
                name=user.name,
                avatar=user.avatar,
                city=user.city,
                experience=prov.experience,
                hourly_rate=float(prov.hourly_rate),
                rating=float(prov.rating or 0),
                total_reviews=prov.total_reviews or 0,
                completed_bookings=prov.completed_bookings or 0,
            )
        )
    return items


# Current user's provider profile
@router.get("/me", response_model=ProviderResponse)
def my_provider_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    provider = db.query(Provider).filter(Provider.user_id == current_user.id).first()
    if not provider:
        raise NotFound("no provider profile")
    return provider


# Apply as a provider; an admin verifies the profile later
@router.post("", response_model=ProviderResponse, status_code=201)
def apply_as_provider(
    provider_in: ProviderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    existing = db.query(Provider).filter(Provider.user_id == current_user.id).first()
    if existing:
        raise Conflict("provider profile already exists")

    service = db.query(Service).filter(Service.id == provider_in.service_id, Service.is_active == True).first()
    if not service:
        raise NotFound(f"service {provider_in.service_id}")

    provider = Provider(
        user_id=current_user.id,
        service_id=service.id,
        hourly_rate=provider_in.hourly_rate,
        experience=provider_in.experience,
        availability=provider_in.availability,
        is_verified=False,
        is_available=True,
    )
    if has_role(current_user, "user"):
        current_user.role = "provider"

    db.add(provider)
    db.commit()
    db.refresh(provider)
    return provider
