"""Role hierarchy: one ordered enum consumed by every role check."""

from enum import Enum


class Role(str, Enum):
    """User roles, lowest to highest."""

    USER = "USER"
    MODERATOR = "MODERATOR"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


_LEVELS = {
    Role.USER: 1,
    Role.MODERATOR: 2,
    Role.ADMIN: 3,
    Role.SUPERADMIN: 4,
}

ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPERADMIN})
STAFF_ROLES = frozenset({Role.MODERATOR, Role.ADMIN, Role.SUPERADMIN})


def parse_role(value: str | Role) -> Role:
    """Return the Role for a case-insensitive name. Raises ValueError if unknown."""
    if isinstance(value, Role):
        return value
    return Role(value.strip().upper())


def role_level(role: str | Role) -> int:
    """Numeric level of a role; unknown roles rank below USER."""
    try:
        return _LEVELS[parse_role(role)]
    except ValueError:
        return 0


def outranks(actor: str | Role, target: str | Role) -> bool:
    """True if actor sits strictly above target in the hierarchy."""
    return role_level(actor) > role_level(target)
