"""
Authentication Pydantic schemas.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from heartcart.schemas.common import CamelModel


class RegisterRequest(BaseModel):
    """Schema for creating an account."""

    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: Optional[str] = Field(None, alias="fullName", max_length=255)
    phone_number: Optional[str] = Field(None, alias="phoneNumber", max_length=50)

    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(BaseModel):
    """Login with either username or email."""

    username: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    id: UUID
    username: str
    email: str
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    role: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
