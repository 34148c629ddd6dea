# app/db/models/service.py

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship
from app.db.base import Base

CATEGORIES = ("cleaning", "hospitality", "gardening", "other")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)

    # Bilingual details
    name_ar = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=False)
    description_ar = Column(Text, nullable=False)
    description_en = Column(Text, nullable=False)

    category = Column(String(32), nullable=False, index=True)  # one of CATEGORIES
    icon = Column(String(100), nullable=True)
    image = Column(Text, nullable=True)

    # Pricing
    base_price = Column(Numeric(10, 2), nullable=False)
    price_unit = Column(String(50), nullable=False, default="hour")

    # Status
    is_active = Column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    providers = relationship("Provider", back_populates="service", lazy="selectin")
