
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserResponse(BaseModel):
    """Public user fields returned to the client."""

    id: UUID
    name: Optional[str] = None
    email: EmailStr
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class UserEnvelope(BaseModel):
    """Schema for responses that carry a single user."""
    success: bool = True
    message: Optional[str] = None
    user: UserResponse


class AuthResponse(UserEnvelope):
    """Schema for authentication response with JWT."""
    token: str


class GoogleAuthResponse(AuthResponse):
    is_new_user: bool = Field(alias="isNewUser")

    model_config = ConfigDict(populate_by_name=True)
