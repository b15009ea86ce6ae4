"""Password hashing and JWT access/refresh token issuance and verification."""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import bcrypt
import jwt

from inkwell.core.config import settings

# Min/max lengths for password validation (bcrypt only reads the first 72 bytes).
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


class TokenError(Exception):
    """Raised when a token cannot be verified."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenExpiredError(TokenError):
    """Token signature is valid but its exp claim has passed."""


class TokenInvalidError(TokenError):
    """Token is malformed, tampered with, or signed with another secret."""


@dataclass(frozen=True)
class TokenPair:
    """Access token (bearer) and refresh token (cookie) issued together."""

    access_token: str
    refresh_token: str


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(
        pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def _dummy_hash() -> str:
    return hash_password("inkwell-timing-dummy")


def verify_dummy_password(plain_password: str) -> None:
    """Spend one bcrypt check when no account matched, so timing does not reveal existence."""
    verify_password(plain_password, _dummy_hash())


def _encode(user_id: int, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        # Random id keeps two tokens issued within the same second distinct.
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str, secret: str) -> int:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except jwt.PyJWTError as e:
        raise TokenInvalidError("Token is invalid") from e
    try:
        return int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise TokenInvalidError("Token payload is invalid") from e


def create_access_token(user_id: int, lifetime: timedelta | None = None) -> str:
    """Create a short-lived access token signed with the access secret."""
    if lifetime is None:
        lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(user_id, settings.JWT_ACCESS_SECRET.get_secret_value(), lifetime)


def create_refresh_token(user_id: int, lifetime: timedelta | None = None) -> str:
    """Create a long-lived refresh token signed with the refresh secret."""
    if lifetime is None:
        lifetime = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(user_id, settings.JWT_REFRESH_SECRET.get_secret_value(), lifetime)


def issue_token_pair(user_id: int) -> TokenPair:
    """
    Issue a new access/refresh pair for a user.

    Nothing is persisted here; callers store the refresh token on the user row.
    """
    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )


def verify_access_token(token: str) -> int:
    """
    Return the user id from a valid access token.
    Raises TokenExpiredError or TokenInvalidError.
    """
    return _decode(token, settings.JWT_ACCESS_SECRET.get_secret_value())


def verify_refresh_token(token: str) -> int:
    """
    Return the user id from a valid refresh token.
    Raises TokenExpiredError or TokenInvalidError.
    """
    return _decode(token, settings.JWT_REFRESH_SECRET.get_secret_value())
