"""
Pydantic models for user data.

Password hashes never leave the service layer: every read model
exposes only id, name, email, role and creation time.
"""

from typing import Optional

from pydantic import Field, field_validator

from ..core.permissions import Role
from ..core.validation import validate_email, validate_name, validate_password, validate_role
from . import CamelModel


class UserProfile(CamelModel):
    """Fields an administrator sets when creating or editing a user."""

    name: str = Field(..., examples=["Alexandra Catherine Johnson"])
    email: str = Field(..., examples=["alexandra@example.com"])
    role: Role = Field(..., examples=["USER"])

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_name(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)

    @field_validator("role", mode="before")
    @classmethod
    def check_role(cls, v) -> Role:
        return validate_role(v)


class UserCreate(UserProfile):
    """Schema for the admin‑only signup endpoint."""

    password: str = Field(..., examples=["Secret#Pass1"])

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_password(v)


class UserUpdate(UserProfile):
    """Schema for an administrator editing a user's profile or role."""


class UserLogin(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return validate_email(v)


class PasswordUpdate(CamelModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, v: str) -> str:
        return validate_password(v)


class UserRead(CamelModel):
    id: int
    name: str
    email: str
    role: Role
    created_at: Optional[str] = None


class UserCounts(CamelModel):
    ratings: int = 0
    stores: int = 0


class UserListItem(UserRead):
    """User row in the admin listing, with related record counts."""

    counts: UserCounts = Field(default_factory=UserCounts, alias="_count")


class SignupResponse(CamelModel):
    message: str
    user: UserRead


class LoginResponse(CamelModel):
    token: str
    user: UserRead


class UserUpdateResponse(CamelModel):
    message: str
    user: UserRead
