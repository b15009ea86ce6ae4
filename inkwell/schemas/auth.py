"""Request/response schemas for auth endpoints and the authenticated identity."""

import re
from datetime import datetime
from typing import Annotated

from pydantic import AliasChoices, Field, StringConstraints, field_validator

from inkwell.core.roles import Role
from inkwell.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from inkwell.schemas.common import CamelModel

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=31)]
EmailStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_lower=True, max_length=255, pattern=EMAIL_PATTERN),
]


class RegisterRequest(CamelModel):
    """New account details; every field is required."""

    first_name: NameStr
    last_name: NameStr
    email: EmailStr
    username: NameStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not (
            re.search(r"[a-z]", v)
            and re.search(r"[A-Z]", v)
            and re.search(r"\d", v)
            and re.search(r"[^a-zA-Z0-9]", v)
        ):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, "
                "one number and one special character"
            )
        return v


class LoginRequest(CamelModel):
    """Credentials for login; identifier is an email or a username."""

    identifier: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("identifier", "username", "email"),
    )
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class RefreshRequest(CamelModel):
    """Body fallback for clients that cannot send the refresh cookie."""

    refresh_token: str | None = None


class UserPublic(CamelModel):
    """Sanitized user projection; never carries the password hash or refresh token."""

    id: int
    email: str
    username: str
    first_name: str
    last_name: str
    role: Role
    is_active: bool
    bio: str | None = None
    phone: str | None = None
    address: str | None = None
    website: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUser(UserPublic):
    full_name: str


class CurrentUser(CamelModel):
    """Authenticated identity attached to a request by the session dependencies."""

    id: int
    email: str
    username: str
    first_name: str
    last_name: str
    role: Role
    is_active: bool


class AuthData(CamelModel):
    """Payload returned by register, login and refresh."""

    user: UserPublic
    access_token: str
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class ProfileData(CamelModel):
    user: ProfileUser
