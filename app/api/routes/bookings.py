from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_managed_booking, get_mailer
from app.core.errors import BadRequest, NotFound
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.provider import Provider
from app.db.models.service import Service
from app.db.models.user import User
from app.schemas.booking import BookingCreate, BookingResponse, BookingStatusUpdate
from app.services import notifications
from app.services.email import Mailer

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _recalculate_completed_bookings(db: Session, provider: Provider):
    provider.completed_bookings = (
        db.query(Booking)
        .filter(Booking.provider_id == provider.id, Booking.status == "completed")
        .count()
    )
    db.add(provider)


# Customer creates booking

@router.post("", response_model=BookingResponse, status_code=201)
def create_booking(
    booking: BookingCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    mailer: Mailer = Depends(get_mailer),
):
    service = db.query(Service).filter(Service.id == booking.service_id, Service.is_active == True).first()
    if not service:
        raise NotFound(f"service {booking.service_id}")

    provider = db.query(Provider).filter(Provider.id == booking.provider_id).first()
    if not provider or not provider.is_verified or not provider.is_available:
        raise NotFound(f"provider {booking.provider_id}")

    if provider.user_id == current_user.id:
        raise BadRequest("provider cannot book themselves")

    new_booking = Booking(
        customer_id=current_user.id,
        provider_id=provider.id,
        service_id=service.id,
        booking_date=booking.booking_date,
        start_time=booking.start_time,
        duration=booking.duration,
        address=booking.address,
        city=booking.city,
        notes=booking.notes,
        total_price=booking.total_price,
        status="pending",
    )
    db.add(new_booking)
    db.flush()

    notifications.booking_created(db, mailer, new_booking, schedule=background_tasks.add_task)

    db.commit()
    db.refresh(new_booking)
    return new_booking


# Customer views their bookings

@router.get("/me", response_model=list[BookingResponse])
def my_bookings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(Booking)
        .filter(Booking.customer_id == current_user.id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .all()
    )


# Provider views their bookings

@router.get("/provider", response_model=list[BookingResponse])
def provider_bookings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    provider = db.query(Provider).filter(Provider.user_id == current_user.id).first()
    if not provider:
        raise NotFound("no provider profile")

    return (
        db.query(Booking)
        .filter(Booking.provider_id == provider.id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .all()
    )


# Provider (or admin) moves a booking to a new status

@router.put("/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    update: BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    booking: Booking = Depends(get_managed_booking),
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    if booking.status == update.status:
        return booking

    booking.status = update.status
    if update.status == "cancelled":
        booking.cancellation_reason = update.cancellation_reason
    if booking.provider is not None:
        db.flush()
        _recalculate_completed_bookings(db, booking.provider)

    notifications.booking_status_changed(db, mailer, booking, schedule=background_tasks.add_task)

    db.commit()
    db.refresh(booking)
    return booking
