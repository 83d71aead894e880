"""Auth schemas for request bodies, token claims and the request identity."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class _RequestBody(BaseModel):
    """Base for request bodies: empty strings count as missing fields."""

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_to_none(cls, value):
        if isinstance(value, str) and value == "":
            return None
        return value


class RegisterRequest(_RequestBody):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class LoginRequest(_RequestBody):
    email: Optional[str] = None
    password: Optional[str] = None


class GoogleCallbackRequest(_RequestBody):
    id_token: Optional[str] = Field(default=None, alias="idToken")


class ProfileUpdateRequest(_RequestBody):
    name: Optional[str] = None
    email: Optional[EmailStr] = None


class PasswordChangeRequest(_RequestBody):
    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class TokenClaims(BaseModel):
    """Decoded session token payload."""

    id: str
    email: str
    name: Optional[str] = None
    exp: int


class CurrentUser(BaseModel):
    """Identity attached to an authenticated request, taken from token claims."""

    id: str
    email: str
    name: Optional[str] = None
