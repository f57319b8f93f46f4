"""
Role capability tests for permission_service.can_access.
"""

import pytest

from posledger.models import User
from posledger.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS, VALID_ROLES
from posledger.services.permission_service import (
    PermissionDeniedError,
    can_access,
    get_user_permissions,
    require_permission,
)


def _user(role, is_active=True):
    return User(username=f"u-{role}", password_hash="x", role=role, is_active=is_active)


def test_every_role_has_a_capability_set():
    assert set(ROLE_PERMISSIONS) == set(VALID_ROLES)
    for perms in ROLE_PERMISSIONS.values():
        assert perms <= ALL_PERMISSIONS


def test_admin_has_everything():
    admin = _user("admin")
    assert all(can_access(admin, code) for code in ALL_PERMISSIONS)


@pytest.mark.parametrize(
    "role,allowed,denied",
    [
        ("sales", ["CREATE_SALE", "RECORD_PAYMENT", "MANAGE_PARTIES"], ["CREATE_PURCHASE", "VIEW_REPORTS", "MANAGE_SETTINGS"]),
        ("accountant", ["VIEW_REPORTS", "RECORD_PAYMENT", "VIEW_DEBTS"], ["CREATE_SALE", "MANAGE_PRODUCTS"]),
        ("warehouse", ["MANAGE_PRODUCTS", "CREATE_PURCHASE"], ["CREATE_SALE", "RECORD_PAYMENT", "VIEW_REPORTS"]),
    ],
)
def test_role_matrix(role, allowed, denied):
    user = _user(role)
    for code in allowed:
        assert can_access(user, code), f"{role} should have {code}"
    for code in denied:
        assert not can_access(user, code), f"{role} should not have {code}"


def test_inactive_user_has_nothing():
    assert get_user_permissions(_user("admin", is_active=False)) == frozenset()


def test_unknown_resource_is_denied():
    assert not can_access(_user("admin"), "LAUNCH_ROCKETS")


def test_no_user_is_denied():
    assert not can_access(None, "VIEW_INVOICES")


def test_require_permission_raises():
    with pytest.raises(PermissionDeniedError):
        require_permission(_user("sales"), "MANAGE_SETTINGS")
