"""Request/response schemas for user administration."""

from typing import Annotated, Any

from pydantic import StringConstraints, field_validator

from inkwell.schemas.auth import NameStr, UserPublic
from inkwell.schemas.common import ApiResponse, CamelModel

OptionalText = Annotated[str, StringConstraints(strip_whitespace=True, max_length=2000)]
ShortText = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]


class ProfileUpdate(CamelModel):
    """Editable profile fields; omitted or empty fields are left unchanged."""

    first_name: NameStr | None = None
    last_name: NameStr | None = None
    bio: OptionalText | None = None
    phone: Annotated[str, StringConstraints(strip_whitespace=True, max_length=32)] | None = None
    address: ShortText | None = None
    website: ShortText | None = None

    @field_validator("*", mode="before")
    @classmethod
    def empty_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class RoleUpdate(CamelModel):
    role: str


class UserListItem(UserPublic):
    post_count: int = 0


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool
    limit: int


class UserStats(CamelModel):
    total: int
    active: int
    inactive: int
    users: int
    moderators: int
    admins: int
    super_admins: int


class UserListResponse(ApiResponse[list[UserListItem]]):
    pagination: Pagination
    stats: UserStats


class RoleChangeData(CamelModel):
    user: UserPublic
    previous_role: str
    new_role: str
