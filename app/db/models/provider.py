# app/db/models/provider.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, Text, func
from sqlalchemy.orm import relationship
from app.db.base import Base


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)

    experience = Column(Integer, nullable=False, default=0)  # years
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    availability = Column(Text, nullable=True)

    # aggregates, recomputed when a review is added
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)
    completed_bookings = Column(Integer, nullable=False, default=0)

    id_document = Column(Text, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="provider_profile", lazy="selectin")
    service = relationship("Service", back_populates="providers", lazy="selectin")
