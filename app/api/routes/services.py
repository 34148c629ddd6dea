# app/api/routes/services.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.core.errors import NotFound
from app.db.base import get_db
from app.db.models.service import Service
from app.db.models.user import User
from app.schemas.service import ServiceCategory, ServiceCreate, ServiceResponse


router = APIRouter(prefix="/services", tags=["services"])


# Public catalogue

@router.get("", response_model=list[ServiceResponse])
def list_services(
    category: Optional[ServiceCategory] = Query(None),
    db: Session = Depends(get_db),
):
    q = db.query(Service).filter(Service.is_active == True)
    if category:
        q = q.filter(Service.category == category)
    return q.order_by(Service.id).all()


@router.get("/{service_id}", response_model=ServiceResponse)
def get_service(service_id: int, db: Session = Depends(get_db)):
    service = db.query(Service).filter(Service.id == service_id).first()
    if not service:
        raise NotFound(f"service {service_id}")
    return service


# Admin creates service

@router.post("", response_model=ServiceResponse, status_code=201)
def create_service(
    service_data: ServiceCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    new_service = Service(**service_data.model_dump(), is_active=True)

    db.add(new_service)
    db.commit()
    db.refresh(new_service)

    return new_service
