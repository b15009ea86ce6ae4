"""User administration endpoints (role-guarded) and own-profile endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from inkwell.api.deps import CurrentUserDep, DbSession, require_roles
from inkwell.core.roles import ADMIN_ROLES
from inkwell.schemas.auth import CurrentUser, UserPublic
from inkwell.schemas.common import ApiResponse
from inkwell.schemas.user import (
    Pagination,
    ProfileUpdate,
    RoleChangeData,
    RoleUpdate,
    UserListItem,
    UserListResponse,
    UserStats,
)
from inkwell.services import users as user_service

router = APIRouter()

AdminUser = Annotated[CurrentUser, Depends(require_roles(*ADMIN_ROLES))]


@router.get("", response_model=UserListResponse)
def list_users(
    _admin: AdminUser,
    db: DbSession,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=user_service.MAX_PAGE_SIZE),
    search: str | None = None,
    status: str | None = Query(None, pattern="^(active|inactive)$"),
    role: str | None = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
) -> UserListResponse:
    """Paginated user list with search, filters and per-role stats (admins only)."""
    result = user_service.list_users(
        db,
        page=page,
        limit=limit,
        search=search,
        status=status,
        role=role,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    items = []
    for user, post_count in result.rows:
        item = UserListItem.model_validate(user)
        item.post_count = post_count
        items.append(item)
    return UserListResponse(
        data=items,
        pagination=Pagination(
            current_page=result.page,
            total_pages=result.total_pages,
            total_count=result.total_count,
            has_next=result.page < result.total_pages,
            has_prev=result.page > 1,
            limit=result.limit,
        ),
        stats=UserStats(**user_service.user_stats(db)),
    )


@router.get("/profile", response_model=ApiResponse[UserPublic])
def get_own_profile(current_user: CurrentUserDep, db: DbSession) -> ApiResponse[UserPublic]:
    user = user_service.get_user_or_404(db, current_user.id)
    return ApiResponse(data=UserPublic.model_validate(user))


@router.put("/profile", response_model=ApiResponse[UserPublic])
def update_own_profile(
    body: ProfileUpdate,
    current_user: CurrentUserDep,
    db: DbSession,
) -> ApiResponse[UserPublic]:
    user = user_service.get_user_or_404(db, current_user.id)
    user = user_service.update_profile(db, user, body)
    return ApiResponse(message="Profile updated successfully", data=UserPublic.model_validate(user))


@router.get("/{user_id}", response_model=ApiResponse[UserPublic])
def get_user(user_id: int, _current_user: CurrentUserDep, db: DbSession) -> ApiResponse[UserPublic]:
    user = user_service.get_user_or_404(db, user_id)
    return ApiResponse(data=UserPublic.model_validate(user))


@router.patch("/{user_id}", response_model=ApiResponse[UserPublic])
def update_user(
    user_id: int,
    body: ProfileUpdate,
    admin: AdminUser,
    db: DbSession,
) -> ApiResponse[UserPublic]:
    user = user_service.update_user(db, admin, user_id, body)
    return ApiResponse(message="User updated successfully", data=UserPublic.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[UserPublic])
def delete_user(user_id: int, admin: AdminUser, db: DbSession) -> ApiResponse[UserPublic]:
    """Delete a lower-ranked user together with their posts."""
    snapshot = user_service.delete_user(db, admin, user_id)
    return ApiResponse(message="User deleted successfully", data=snapshot)


@router.patch("/{user_id}/role", response_model=ApiResponse[RoleChangeData])
def change_role(
    user_id: int,
    body: RoleUpdate,
    admin: AdminUser,
    db: DbSession,
) -> ApiResponse[RoleChangeData]:
    user, previous = user_service.change_role(db, admin, user_id, body.role)
    return ApiResponse(
        message=f"User role updated from {previous} to {user.role}",
        data=RoleChangeData(
            user=UserPublic.model_validate(user),
            previous_role=previous,
            new_role=user.role,
        ),
    )


@router.patch("/{user_id}/toggle-status", response_model=ApiResponse[UserPublic])
def toggle_status(user_id: int, admin: AdminUser, db: DbSession) -> ApiResponse[UserPublic]:
    user = user_service.toggle_status(db, admin, user_id)
    state = "activated" if user.is_active else "deactivated"
    return ApiResponse(message=f"User {state} successfully", data=UserPublic.model_validate(user))
