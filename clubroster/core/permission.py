from enum import Flag, auto
from typing import Callable, FrozenSet
from fastapi import Depends
from ..core.errors import Unauthorized
from ..core.security import get_current_user
from ..models.types import UserRole
from ..models.users import User

class Permission(Flag):
    NONE = 0
    VIEW_CLUBS = auto()
    INVITE_OFFICERS = auto()
    MANAGE_ALL_CLUBS = auto()
    GRANT_SUPER_ADMIN = auto()
    MANAGE_INVITES = auto()

ROLE_PERMISSIONS = {

    UserRole.SUPER_ADMIN : (
        Permission.VIEW_CLUBS |
        Permission.INVITE_OFFICERS |
        Permission.MANAGE_ALL_CLUBS |
        Permission.GRANT_SUPER_ADMIN |
        Permission.MANAGE_INVITES
    ),
    UserRole.ADMIN: (
        Permission.VIEW_CLUBS |
        Permission.INVITE_OFFICERS
    ),
}

ROLE_DASHBOARDS = {
    UserRole.SUPER_ADMIN: "/dashboard/super-admin",
    UserRole.ADMIN: "/dashboard/admin",
}

ROLE_DISPLAY_NAMES = {
    UserRole.SUPER_ADMIN: "Super Administrator",
    UserRole.ADMIN: "Club Administrator",
}

# Every role must appear in every table; fail at import rather than at a request
for _table in (ROLE_PERMISSIONS, ROLE_DASHBOARDS, ROLE_DISPLAY_NAMES):
    _missing = set(UserRole) - set(_table)
    if _missing:
        raise RuntimeError(f"Role table is missing entries for: {sorted(r.value for r in _missing)}")


def _lookup(table: dict, role):
    try:
        return table[UserRole(role)]
    except (KeyError, ValueError):
        raise Unauthorized(f"Unrecognized role: {role!r}")


def permissions_for(role: UserRole) -> Permission:
    return _lookup(ROLE_PERMISSIONS, role)


def dashboard_path_for(role: UserRole) -> str:
    return _lookup(ROLE_DASHBOARDS, role)


def role_display_name(role: UserRole) -> str:
    return _lookup(ROLE_DISPLAY_NAMES, role)


def has_permission(role: UserRole, permission: Permission) -> bool:
    return bool(permissions_for(role) & permission)


def grantable_roles(role: UserRole) -> FrozenSet[UserRole]:
    """Roles a user holding ``role`` may hand out through an invitation."""
    if has_permission(role, Permission.GRANT_SUPER_ADMIN):
        return frozenset(UserRole)
    if has_permission(role, Permission.INVITE_OFFICERS):
        return frozenset({UserRole.ADMIN})
    return frozenset()


def can_manage_club(role: UserRole, club_id: int, led_club_ids) -> bool:
    if has_permission(role, Permission.MANAGE_ALL_CLUBS):
        return True
    if has_permission(role, Permission.INVITE_OFFICERS):
        return club_id in led_club_ids
    return False


def require_permission(permission: Permission) -> Callable:
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user.role, permission):
            raise Unauthorized("Insufficient permissions")
        return current_user
    return checker
