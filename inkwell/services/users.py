"""User administration under the role hierarchy."""

import logging
import math
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from inkwell.core.errors import NotFoundError, PermissionDenied, ValidationFailed
from inkwell.core.roles import Role, outranks, parse_role, role_level
from inkwell.models import Post, User
from inkwell.schemas.auth import CurrentUser, UserPublic
from inkwell.schemas.user import ProfileUpdate

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

SORT_COLUMNS = {
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
    "firstName": User.first_name,
    "lastName": User.last_name,
    "email": User.email,
    "username": User.username,
}


@dataclass
class UserPage:
    """One page of users with their post counts, plus totals for the whole filter."""

    rows: list[tuple[User, int]]
    total_count: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.total_count else 0


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    status: str | None = None,
    role: str | None = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> UserPage:
    """Filter, sort and paginate users; unknown sort keys fall back to createdAt desc."""
    page = max(1, page)
    limit = min(MAX_PAGE_SIZE, max(1, limit))

    filters = []
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        filters.append(
            or_(
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
                func.lower(User.email).like(pattern),
                func.lower(User.username).like(pattern),
            )
        )
    if status == "active":
        filters.append(User.is_active.is_(True))
    elif status == "inactive":
        filters.append(User.is_active.is_(False))
    if role and role.strip().upper() in Role.__members__:
        filters.append(User.role == parse_role(role).value)

    column = SORT_COLUMNS.get(sort_by, User.created_at)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    total_count = db.query(func.count(User.id)).filter(*filters).scalar() or 0
    rows = (
        db.query(User, func.count(Post.id))
        .outerjoin(Post, Post.author_id == User.id)
        .filter(*filters)
        .group_by(User.id)
        .order_by(ordering, User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return UserPage(rows=[(u, n) for u, n in rows], total_count=total_count, page=page, limit=limit)


def user_stats(db: Session) -> dict[str, int]:
    """Counts over all users by activity and role."""
    by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    active = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0
    total = db.query(func.count(User.id)).scalar() or 0
    return {
        "total": total,
        "active": active,
        "inactive": total - active,
        "users": by_role.get(Role.USER.value, 0),
        "moderators": by_role.get(Role.MODERATOR.value, 0),
        "admins": by_role.get(Role.ADMIN.value, 0),
        "super_admins": by_role.get(Role.SUPERADMIN.value, 0),
    }


def update_profile(db: Session, user: User, body: ProfileUpdate) -> User:
    """Apply the non-empty profile fields. Raises ValidationFailed if there are none."""
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise ValidationFailed("No valid fields provided to update")
    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def ensure_can_manage(actor: CurrentUser, target: User, action: str) -> None:
    """
    Raise PermissionDenied unless actor may act on target.

    Nobody acts on their own account here, and the actor must rank strictly above
    the target.
    """
    if actor.id == target.id:
        raise PermissionDenied(f"You cannot {action} your own account")
    if not outranks(actor.role, target.role):
        raise PermissionDenied(f"You do not have permission to {action} this user")


def change_role(db: Session, actor: CurrentUser, target_id: int, role: str) -> tuple[User, str]:
    """Assign a new role; returns (user, previous_role)."""
    try:
        new_role = parse_role(role)
    except ValueError as e:
        valid = ", ".join(r.value for r in Role)
        raise ValidationFailed(
            f"Invalid role. Valid roles are: {valid}", errors={"role": "Invalid role"}
        ) from e

    if new_role == Role.SUPERADMIN and actor.role != Role.SUPERADMIN:
        raise PermissionDenied("Only Super Administrators can assign the Super Admin role")
    if role_level(new_role) > role_level(actor.role):
        raise PermissionDenied(
            f"You cannot assign a role higher than your own ({actor.role.value})"
        )

    target = get_user_or_404(db, target_id)
    ensure_can_manage(actor, target, "change the role of")
    previous = target.role
    if previous == new_role.value:
        raise ValidationFailed(f"User already has {new_role.value} role")

    target.role = new_role.value
    db.commit()
    db.refresh(target)
    logger.info(
        "Role update: user id=%s %s -> %s by user id=%s",
        target.id,
        previous,
        new_role.value,
        actor.id,
    )
    return target, previous


def toggle_status(db: Session, actor: CurrentUser, target_id: int) -> User:
    target = get_user_or_404(db, target_id)
    ensure_can_manage(actor, target, "change the status of")
    target.is_active = not target.is_active
    db.commit()
    db.refresh(target)
    logger.info(
        "Status update: user id=%s active=%s by user id=%s",
        target.id,
        target.is_active,
        actor.id,
    )
    return target


def update_user(db: Session, actor: CurrentUser, target_id: int, body: ProfileUpdate) -> User:
    target = get_user_or_404(db, target_id)
    ensure_can_manage(actor, target, "update")
    return update_profile(db, target, body)


def delete_user(db: Session, actor: CurrentUser, target_id: int) -> UserPublic:
    """Delete a user and their posts; returns a snapshot of the deleted account."""
    target = get_user_or_404(db, target_id)
    ensure_can_manage(actor, target, "delete")
    snapshot = UserPublic.model_validate(target)
    db.delete(target)
    db.commit()
    logger.info("Deleted user id=%s by user id=%s", target_id, actor.id)
    return snapshot
