# Overview: Service-layer operations for permission checks.

from __future__ import annotations

from ..models import User
from ..permissions import ROLE_PERMISSIONS, ALL_PERMISSIONS


class PermissionDeniedError(Exception):
    """Raised when a user lacks a required capability."""
    pass


def get_user_permissions(user: User) -> frozenset[str]:
    """Capability set for the user's role; empty for inactive users."""
    if user is None or not user.is_active:
        return frozenset()
    return ROLE_PERMISSIONS.get(user.role, frozenset())


def can_access(user: User, resource: str) -> bool:
    """
    Authorization predicate evaluated on every protected request.

    resource is a capability code from posledger.permissions. Unknown codes
    are never granted.
    """
    if resource not in ALL_PERMISSIONS:
        return False
    return resource in get_user_permissions(user)


def require_permission(user: User, permission_code: str) -> None:
    if not can_access(user, permission_code):
        raise PermissionDeniedError(
            f"Role '{getattr(user, 'role', None)}' lacks permission {permission_code}"
        )
