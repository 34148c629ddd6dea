# app/services/notifications.py
"""In-app notification rows plus the matching transactional emails."""
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.db.models.booking import Booking
from app.db.models.notification import Notification
from app.db.models.review import Review
from app.services import email as email_service

logger = logging.getLogger(__name__)


def add_notification(
    db: Session, user_id: int, type_: str, title: str, message: str, related_id: Optional[int] = None
) -> Notification:
    """Stage a notification on `db`; the caller commits."""
    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        related_id=related_id,
        is_read=False,
    )
    db.add(notification)
    return notification


def _run(schedule: Optional[Callable], fn, *args) -> None:
    if schedule is not None:
        schedule(fn, *args)
    else:
        fn(*args)


def booking_created(db: Session, mailer: email_service.Mailer, booking: Booking, schedule: Optional[Callable] = None) -> None:
    service_name = booking.service.name_ar if booking.service else ""
    add_notification(
        db, booking.customer_id, "booking", "تم استلام حجزك",
        f"حجزك لخدمة {service_name} قيد المراجعة", booking.id,
    )
    provider_user = booking.provider.user if booking.provider else None
    if provider_user is not None:
        add_notification(
            db, provider_user.id, "booking", "حجز جديد",
            f"لديك حجز جديد لخدمة {service_name}", booking.id,
        )

    customer = booking.customer
    _run(
        schedule,
        email_service.send_booking_confirmation_email,
        mailer,
        customer.email,
        customer.name,
        service_name,
        booking.booking_date.strftime("%Y-%m-%d"),
        booking.start_time,
        f"{float(booking.total_price):.2f}",
    )


def booking_status_changed(db: Session, mailer: email_service.Mailer, booking: Booking, schedule: Optional[Callable] = None) -> None:
    service_name = booking.service.name_ar if booking.service else ""
    status_message = email_service.STATUS_MESSAGES.get(booking.status, booking.status)
    add_notification(db, booking.customer_id, "status_change", "تحديث حالة الحجز", status_message, booking.id)

    customer = booking.customer
    _run(
        schedule,
        email_service.send_booking_status_email,
        mailer,
        customer.email,
        customer.name,
        service_name,
        booking.status,
    )


def review_added(db: Session, mailer: email_service.Mailer, review: Review, schedule: Optional[Callable] = None) -> None:
    provider_user = review.provider.user if review.provider else None
    if provider_user is None:
        logger.warning("Review %s has no provider user to notify", review.id)
        return

    customer = review.customer
    add_notification(
        db, provider_user.id, "review", "تقييم جديد",
        f"تلقيت تقييماً جديداً: {review.rating} من 5", review.id,
    )
    _run(
        schedule,
        email_service.send_new_review_email,
        mailer,
        provider_user.email,
        provider_user.name,
        customer.name if customer else None,
        review.rating,
        review.comment,
    )
