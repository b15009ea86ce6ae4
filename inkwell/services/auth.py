"""
Session lifecycle: register, login, refresh-token rotation and logout.

Each user row holds exactly one live refresh token. Login and refresh overwrite
it; a refresh presenting anything other than the stored token is rejected even
when its signature is valid, which is what defeats replay of rotated-out tokens.
"""

import hmac
import logging
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from inkwell.core.errors import AuthenticationError, ConflictError, ErrorCode
from inkwell.core.roles import Role
from inkwell.core.security import (
    TokenError,
    TokenPair,
    hash_password,
    issue_token_pair,
    verify_dummy_password,
    verify_password,
    verify_refresh_token,
)
from inkwell.models import User
from inkwell.schemas.auth import RegisterRequest

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


@dataclass
class AuthResult:
    """User plus the freshly issued token pair (refresh token already persisted)."""

    user: User
    tokens: TokenPair


def _issue_and_store(db: Session, user: User) -> TokenPair:
    tokens = issue_token_pair(user.id)
    user.refresh_token = tokens.refresh_token
    db.commit()
    db.refresh(user)
    return tokens


def register_user(db: Session, body: RegisterRequest) -> AuthResult:
    """
    Create an account and open its first session.

    Email is checked before username so each conflict has its own code.
    """
    email_taken = (
        db.query(User.id).filter(func.lower(User.email) == body.email.lower()).first()
    )
    if email_taken:
        raise ConflictError(
            "An account with this email already exists", code=ErrorCode.USER_EXISTS
        )
    username_taken = (
        db.query(User.id)
        .filter(func.lower(User.username) == body.username.lower())
        .first()
    )
    if username_taken:
        raise ConflictError(
            "This username is already taken", code=ErrorCode.USERNAME_EXISTS
        )

    user = User(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        username=body.username,
        password_hash=hash_password(body.password),
        role=Role.USER.value,
        is_active=True,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(
            "An account with this email or username already exists"
        ) from e
    tokens = _issue_and_store(db, user)
    logger.info("Registered user id=%s", user.id)
    return AuthResult(user=user, tokens=tokens)


def find_by_identifier(db: Session, identifier: str) -> User | None:
    """Look up a user by email or username, trimmed and case-insensitive."""
    normalized = identifier.strip().lower()
    return (
        db.query(User)
        .filter(
            or_(
                func.lower(User.email) == normalized,
                func.lower(User.username) == normalized,
            )
        )
        .first()
    )


def login_user(db: Session, identifier: str, password: str) -> AuthResult:
    """
    Verify credentials and rotate the stored refresh token.

    Unknown account and wrong password fail identically with INVALID_CREDENTIALS.
    """
    user = find_by_identifier(db, identifier)
    if user is None:
        verify_dummy_password(password)
        logger.warning("Login failed: no matching account")
        raise AuthenticationError(
            INVALID_CREDENTIALS_MESSAGE, code=ErrorCode.INVALID_CREDENTIALS
        )
    if not verify_password(password, user.password_hash):
        logger.warning("Login failed: bad password for user id=%s", user.id)
        raise AuthenticationError(
            INVALID_CREDENTIALS_MESSAGE, code=ErrorCode.INVALID_CREDENTIALS
        )
    if not user.is_active:
        raise AuthenticationError(
            "User account is deactivated", code=ErrorCode.USER_INACTIVE
        )
    tokens = _issue_and_store(db, user)
    logger.info("User id=%s logged in", user.id)
    return AuthResult(user=user, tokens=tokens)


def rotate_refresh_token(db: Session, presented: str | None) -> AuthResult:
    """
    Exchange the presented refresh token for a new pair.

    Every failure after the token is found asks for the refresh cookie to be cleared.
    The compare-and-rotate is not atomic: two concurrent calls with the same
    pre-rotation token can both pass the comparison before either write lands.
    """
    if not presented:
        raise AuthenticationError(
            "Session expired. Please log in again.",
            code=ErrorCode.REFRESH_TOKEN_MISSING,
        )
    try:
        user_id = verify_refresh_token(presented)
    except TokenError as e:
        logger.warning("Refresh rejected: %s", e.message)
        raise AuthenticationError(
            "Your session has expired. Please log in again.",
            code=ErrorCode.REFRESH_TOKEN_INVALID,
            clear_session=True,
        ) from e

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError(
            "User account not found. Please log in again.",
            code=ErrorCode.USER_NOT_FOUND,
            clear_session=True,
        )
    if not user.refresh_token or not hmac.compare_digest(
        user.refresh_token.encode("utf-8"), presented.encode("utf-8")
    ):
        logger.warning("Refresh rejected: stale or foreign token for user id=%s", user.id)
        raise AuthenticationError(
            "Invalid session. Please log in again for security.",
            code=ErrorCode.REFRESH_TOKEN_MISMATCH,
            clear_session=True,
        )
    if not user.is_active:
        raise AuthenticationError(
            "User account is deactivated",
            code=ErrorCode.USER_INACTIVE,
            clear_session=True,
        )
    tokens = _issue_and_store(db, user)
    return AuthResult(user=user, tokens=tokens)


def revoke_refresh_token(db: Session, user_id: int) -> bool:
    """
    Clear the stored refresh token. Returns False if the write failed.

    Logout reports success either way; the failure is only logged.
    """
    try:
        user = db.get(User, user_id)
        if user is not None:
            user.refresh_token = None
            db.commit()
        return True
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Logout: failed to clear refresh token for user id=%s", user_id)
        return False
