"""Session dependencies: access-token extraction, user loading and role guards."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from inkwell.core.config import settings
from inkwell.core.database import get_db
from inkwell.core.errors import AuthenticationError, ErrorCode, PermissionDenied
from inkwell.core.roles import Role
from inkwell.core.security import TokenExpiredError, TokenInvalidError, verify_access_token
from inkwell.models import User
from inkwell.schemas.auth import CurrentUser


def extract_access_token(request: Request) -> str | None:
    """Bearer header first, then the access-token cookie."""
    scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() == "bearer" and param:
        return param
    return request.cookies.get(settings.ACCESS_COOKIE_NAME) or None


def get_current_user(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: require a valid access token for an active user. Raises 401 otherwise."""
    token = extract_access_token(request)
    if not token:
        raise AuthenticationError(
            "Access denied. No token provided.", code=ErrorCode.TOKEN_MISSING
        )
    try:
        user_id = verify_access_token(token)
    except TokenExpiredError as e:
        raise AuthenticationError(
            "Access token expired", code=ErrorCode.TOKEN_EXPIRED
        ) from e
    except TokenInvalidError as e:
        raise AuthenticationError(
            "Invalid access token", code=ErrorCode.TOKEN_INVALID
        ) from e

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found", code=ErrorCode.USER_NOT_FOUND)
    if not user.is_active:
        raise AuthenticationError(
            "User account is deactivated", code=ErrorCode.USER_INACTIVE
        )
    return CurrentUser.model_validate(user)


def require_roles(*roles: Role) -> Callable[..., CurrentUser]:
    """Dependency factory: require an authenticated user whose role is in roles. Raises 403."""
    allowed = frozenset(roles)

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise PermissionDenied("You do not have permission to perform this action")
        return current_user

    return dependency


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
DbSession = Annotated[Session, Depends(get_db)]
