"""Pydantic request/response schemas."""

from inkwell.schemas.auth import (
    AuthData,
    CurrentUser,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserPublic,
)
from inkwell.schemas.common import ApiResponse, ErrorResponse
from inkwell.schemas.health import HealthStatus
from inkwell.schemas.post import PostCreate, PostDetail, PostOut, PostUpdate

__all__ = [
    "ApiResponse",
    "AuthData",
    "CurrentUser",
    "ErrorResponse",
    "HealthStatus",
    "LoginRequest",
    "PostCreate",
    "PostDetail",
    "PostOut",
    "PostUpdate",
    "RefreshRequest",
    "RegisterRequest",
    "UserPublic",
]
