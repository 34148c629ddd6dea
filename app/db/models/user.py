# app/db/models/user.py

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base, utcnow

ROLES = ("user", "admin", "provider")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    open_id = Column(String(64), unique=True, nullable=True)
    email = Column(String(320), unique=True, index=True, nullable=False)
    # absent for accounts provisioned through an external identity
    password_hash = Column(String(255), nullable=True)
    name = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)
    login_method = Column(String(64), nullable=True, default="email")
    role = Column(String(16), nullable=False, default="user", server_default="user")

    avatar = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)

    is_verified = Column(Boolean, nullable=False, default=False)
    email_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    last_signed_in = Column(DateTime, default=utcnow, nullable=False)

    provider_profile = relationship("Provider", back_populates="user", uselist=False, lazy="selectin")
