"""Auth endpoints: register, login, refresh, logout and profile."""

import json

from fastapi import APIRouter, Request, Response, status
from pydantic import ValidationError

from inkwell.api.cookies import clear_refresh_cookie, set_refresh_cookie
from inkwell.api.deps import CurrentUserDep, DbSession
from inkwell.core.config import settings
from inkwell.schemas.auth import (
    AuthData,
    LoginRequest,
    ProfileData,
    ProfileUser,
    RefreshRequest,
    RegisterRequest,
    UserPublic,
)
from inkwell.schemas.common import ApiResponse
from inkwell.services.auth import (
    AuthResult,
    login_user,
    register_user,
    revoke_refresh_token,
    rotate_refresh_token,
)
from inkwell.services.users import get_user_or_404

router = APIRouter()


def _auth_payload(result: AuthResult) -> AuthData:
    return AuthData(
        user=UserPublic.model_validate(result.user),
        access_token=result.tokens.access_token,
        expires_in=settings.access_token_max_age,
    )


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
def register(body: RegisterRequest, response: Response, db: DbSession) -> ApiResponse[AuthData]:
    """Create an account, open its first session and set the refresh cookie."""
    result = register_user(db, body)
    set_refresh_cookie(response, result.tokens.refresh_token, settings)
    return ApiResponse(message="User registered successfully", data=_auth_payload(result))


@router.post("/login", response_model=ApiResponse[AuthData])
def login(body: LoginRequest, response: Response, db: DbSession) -> ApiResponse[AuthData]:
    """
    Authenticate with an email or username and password.

    Returns a short-lived access token for the Authorization header
    (Bearer <accessToken>); the refresh token travels in an httpOnly cookie.
    """
    result = login_user(db, body.identifier, body.password)
    set_refresh_cookie(response, result.tokens.refresh_token, settings)
    return ApiResponse(message="Login successful", data=_auth_payload(result))


async def _presented_refresh_token(request: Request) -> str | None:
    """Refresh cookie first, then a refreshToken field in a JSON body."""
    token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    if token:
        return token
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type != "application/json":
        return None
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        return RefreshRequest.model_validate(payload).refresh_token
    except ValidationError:
        return None


@router.post("/refresh", response_model=ApiResponse[AuthData])
async def refresh(request: Request, response: Response, db: DbSession) -> ApiResponse[AuthData]:
    """Rotate the refresh token and return a new access token."""
    presented = await _presented_refresh_token(request)
    result = rotate_refresh_token(db, presented)
    set_refresh_cookie(response, result.tokens.refresh_token, settings)
    return ApiResponse(message="Token refreshed successfully", data=_auth_payload(result))


@router.post("/logout", response_model=ApiResponse[None])
def logout(current_user: CurrentUserDep, response: Response, db: DbSession) -> ApiResponse[None]:
    """Revoke the stored refresh token and clear the cookie; always succeeds."""
    revoke_refresh_token(db, current_user.id)
    clear_refresh_cookie(response, settings)
    return ApiResponse(message="Logout successful")


@router.get("/profile", response_model=ApiResponse[ProfileData])
def profile(current_user: CurrentUserDep, db: DbSession) -> ApiResponse[ProfileData]:
    user = get_user_or_404(db, current_user.id)
    return ApiResponse(data=ProfileData(user=ProfileUser.model_validate(user)))
