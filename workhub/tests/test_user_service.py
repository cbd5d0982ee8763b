"""
Tests for account helpers and the admin bootstrap
"""
from fastapi import status

from workhub.core.config import settings
from workhub.core.errors import status_for_error_code
from workhub.core.security import verify_password
from workhub.models.user import Role, User
from workhub.services.results import ErrorCode
from workhub.services.user_service import (
    add_user,
    complete_first_login,
    ensure_initial_admin,
    login,
    normalize_email,
    user_counts,
)


def test_normalize_email():
    assert normalize_email("priya") == f"priya@{settings.EMAIL_DOMAIN}"
    assert normalize_email("  Priya@Example.com ") == "priya@example.com"
    assert normalize_email("") == ""
    assert normalize_email(None) == ""


def test_ensure_initial_admin_creates_once(db):
    admin = ensure_initial_admin(db)

    assert admin is not None
    assert admin.role == Role.ADMIN.value
    assert admin.must_change_password is False
    assert verify_password(settings.INITIAL_ADMIN_PASSWORD, admin.password_hash)

    assert ensure_initial_admin(db) is None
    assert db.query(User).count() == 1


def test_ensure_initial_admin_skips_when_admin_exists(db, admin):
    assert ensure_initial_admin(db) is None


def test_user_counts_empty(db):
    assert user_counts(db) == {"total": 0, "admins": 0, "employees": 0}


def test_admin_created_admin_is_not_gated(db, admin):
    result = add_user(db, admin, "Second Admin", "second", "start123", role="ADMIN")
    assert result.success

    login_result = login(db, "second", "start123")

    assert login_result.success
    assert login_result.data["role"] == "admin"


def test_login_empty_fields(db):
    result = login(db, "", "")

    assert not result.success
    assert result.error_code == ErrorCode.INVALID_INPUT


def test_login_bad_credentials_unauthorized(db, employee):
    wrong_password = login(db, "employee@opsbeetech.com", "wrongpass")
    unknown_user = login(db, "nobody@opsbeetech.com", "testpass123")

    for result in (wrong_password, unknown_user):
        assert not result.success
        assert result.error == "Invalid credentials."
        assert result.error_code == ErrorCode.UNAUTHORIZED
    assert status_for_error_code(ErrorCode.UNAUTHORIZED) == status.HTTP_401_UNAUTHORIZED


def test_first_login_wrong_temporary_password_unauthorized(db, employee):
    result = complete_first_login(db, "employee", "wrongpass", "newpass123", "newpass123")

    assert not result.success
    assert result.error_code == ErrorCode.UNAUTHORIZED
