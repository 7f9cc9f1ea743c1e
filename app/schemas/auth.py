"""Pydantic schemas for authentication endpoints."""

from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from uuid import UUID

from app.models.user import UserRole
from app.schemas.common import InputModel


class UserLogin(BaseModel):
    """Request schema for user login."""
    email: EmailStr
    password: str


class UserOut(BaseModel):
    """Response schema for user info."""
    id: UUID
    email: str
    name: str
    role: str
    status: str
    last_login_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    """Response schema for login: JWT plus the user it was issued to."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


class UserCreate(InputModel):
    """Super admin creates staff or client accounts."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=2, max_length=100)
    role: UserRole = UserRole.CONTENT_EDITOR


class ChangePassword(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)
