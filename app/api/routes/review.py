# app/api/routes/review.py
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from typing import List

from app.api.deps import get_current_user, get_mailer
from app.core.errors import BadRequest, Conflict, Forbidden, NotFound
from app.db.base import get_db
from app.db.models.booking import Booking
from app.db.models.provider import Provider
from app.db.models.review import Review
from app.db.models.user import User
from app.schemas.review import ReviewCreate, ReviewResponse
from app.services import notifications
from app.services.email import Mailer

router = APIRouter(prefix="/reviews", tags=["reviews"])


# Helper: recalc provider aggregates
def _recalculate_provider_rating(db: Session, provider: Provider):
    ratings = [r for (r,) in db.query(Review.rating).filter(Review.provider_id == provider.id).all()]
    total = len(ratings)
    if total == 0:
        provider.rating = 0
        provider.total_reviews = 0
    else:
        provider.rating = round(sum(ratings) / total, 2)
        provider.total_reviews = total
    db.add(provider)


# Create review (customer of a completed booking)
@router.post("", response_model=ReviewResponse, status_code=201)
def create_review(
    review_in: ReviewCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    mailer: Mailer = Depends(get_mailer),
):
    booking = db.query(Booking).filter(Booking.id == review_in.booking_id).first()
    if not booking:
        raise NotFound(f"booking {review_in.booking_id}")

    if booking.customer_id != current_user.id:
        raise Forbidden("booking belongs to another customer")

    if booking.status != "completed":
        raise BadRequest("booking not completed")

    # one review per booking (db unique + check)
    existing = db.query(Review).filter(Review.booking_id == booking.id).first()
    if existing:
        raise Conflict("booking already reviewed")

    provider = db.query(Provider).filter(Provider.id == booking.provider_id).first()
    if not provider:
        raise NotFound(f"provider {booking.provider_id}")

    review = Review(
        booking_id=booking.id,
        customer_id=current_user.id,
        provider_id=provider.id,
        service_id=booking.service_id,
        rating=review_in.rating,
        comment=review_in.comment,
    )
    db.add(review)
    db.flush()

    _recalculate_provider_rating(db, provider)
    notifications.review_added(db, mailer, review, schedule=background_tasks.add_task)

    db.commit()
    db.refresh(review)
    return review


# List reviews for a provider (public)
@router.get("/provider/{provider_id}", response_model=List[ReviewResponse])
def list_provider_reviews(provider_id: int, db: Session = Depends(get_db)):
    return (
        db.query(Review)
        .filter(Review.provider_id == provider_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
