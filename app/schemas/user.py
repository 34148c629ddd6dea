from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=2)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class VerifyEmailRequest(BaseModel):
    user_id: int = Field(..., alias="userId")
    token: str = Field(..., min_length=1, max_length=255)

    class Config:
        populate_by_name = True


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2)
    phone: Optional[str] = Field(default=None, max_length=20)
    avatar: Optional[str] = None
    bio: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = Field(default=None, max_length=100)


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str]
    role: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    email_verified: bool
    is_verified: bool
    created_at: datetime
    last_signed_in: Optional[datetime] = None

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user_id: int = Field(..., alias="userId")

    class Config:
        populate_by_name = True


class LoginResponse(BaseModel):
    success: bool = True
    user: UserResponse


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
