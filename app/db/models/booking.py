from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from app.db.base import Base, utcnow

BOOKING_STATUSES = ("pending", "confirmed", "in_progress", "completed", "cancelled")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)

    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    booking_date = Column(DateTime, nullable=False)
    start_time = Column(String(10), nullable=False)  # HH:MM
    duration = Column(Integer, nullable=False)  # hours

    status = Column(String(16), nullable=False, default="pending")

    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    notes = Column(Text, nullable=True)
    total_price = Column(Numeric(10, 2), nullable=False)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # relationships
    customer = relationship("User", foreign_keys=[customer_id])
    provider = relationship("Provider", foreign_keys=[provider_id])
    service = relationship("Service", foreign_keys=[service_id])
