"""
Tests for authentication endpoints
"""
import pytest
from fastapi import status
from sqlalchemy.orm import Session
from workhub.models.user import User, Role
from workhub.core.security import hash_password, verify_password, decode_token


@pytest.fixture
def new_employee(db: Session):
    """Employee created by an admin, still on the temporary password"""
    user = User(
        name="New Joiner",
        email="joiner@opsbeetech.com",
        password_hash=hash_password("temp1234"),
        role=Role.EMPLOYEE.value,
        must_change_password=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_auth_token(client, email, password):
    """Helper to get auth token"""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password}
    )
    return response.json()["access_token"]


def test_auth_login_success(client, employee):
    """Successful login returns a token whose subject is the user id"""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "employee@opsbeetech.com", "password": "testpass123"}
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["role"] == "employee"
    assert data["redirect_url"] == "/employee-dashboard"
    assert data["reset_required"] is False
    assert decode_token(data["access_token"])["sub"] == str(employee.id)


def test_auth_login_bare_name_gets_company_domain(client, employee):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "employee", "password": "testpass123"}
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["access_token"]


def test_auth_login_admin_redirect(client, admin):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "admin@opsbeetech.com", "password": "adminpass123"}
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["redirect_url"] == "/admin"


def test_auth_login_wrong_password(client, employee):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "employee@opsbeetech.com", "password": "wrongpass"}
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Invalid credentials."


def test_auth_login_unknown_user(client, db):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@opsbeetech.com", "password": "whatever"}
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_auth_login_missing_fields(client):
    response = client.post("/api/v1/auth/login", json={"email": ""})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_first_login_gate_withholds_token(client, new_employee):
    response = client.post(
        "/api/v1/auth/login",
        json={"email": "joiner@opsbeetech.com", "password": "temp1234"}
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["reset_required"] is True
    assert data["user_id"] == new_employee.id
    assert data["access_token"] is None


def test_first_login_sets_new_password(client, db, new_employee):
    response = client.post(
        "/api/v1/auth/first-login",
        json={
            "email": "joiner@opsbeetech.com",
            "current_password": "temp1234",
            "new_password": "mine5678",
            "confirm_password": "mine5678",
        }
    )

    assert response.status_code == status.HTTP_200_OK
    db.refresh(new_employee)
    assert new_employee.must_change_password is False
    assert verify_password("mine5678", new_employee.password_hash)

    token = get_auth_token(client, "joiner", "mine5678")
    assert token


@pytest.mark.parametrize(
    "new_password, confirm_password, message",
    [
        ("abc", "abc", "Password must be at least 6 characters."),
        ("mine5678", "mine9999", "Passwords do not match."),
        ("temp1234", "temp1234", "New password cannot be the same as your current password."),
    ],
)
def test_first_login_rejects_bad_password(client, db, new_employee, new_password, confirm_password, message):
    response = client.post(
        "/api/v1/auth/first-login",
        json={
            "email": "joiner@opsbeetech.com",
            "current_password": "temp1234",
            "new_password": new_password,
            "confirm_password": confirm_password,
        }
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == message
    db.refresh(new_employee)
    assert new_employee.must_change_password is True


def test_first_login_requires_temporary_password(client, new_employee):
    response = client.post(
        "/api/v1/auth/first-login",
        json={
            "email": "joiner@opsbeetech.com",
            "current_password": "guess",
            "new_password": "mine5678",
            "confirm_password": "mine5678",
        }
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_change_password(client, db, employee):
    token = get_auth_token(client, "employee@opsbeetech.com", "testpass123")

    response = client.post(
        "/api/v1/auth/change-password",
        json={
            "current_password": "testpass123",
            "new_password": "newpass456",
            "confirm_password": "newpass456",
        },
        headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == status.HTTP_200_OK
    db.refresh(employee)
    assert verify_password("newpass456", employee.password_hash)


def test_change_password_wrong_current(client, employee):
    token = get_auth_token(client, "employee@opsbeetech.com", "testpass123")

    response = client.post(
        "/api/v1/auth/change-password",
        json={
            "current_password": "nope",
            "new_password": "newpass456",
            "confirm_password": "newpass456",
        },
        headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Incorrect current password."


def test_protected_endpoint_requires_token(client):
    response = client.get("/api/v1/attendance/status")

    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_invalid_token_rejected(client):
    response = client.get(
        "/api/v1/attendance/status",
        headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
