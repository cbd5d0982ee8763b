"""
Tests for the employee profile endpoints
"""
import pytest
from fastapi import status
from workhub.models.profile import Certification, Education, WorkExperience


def get_auth_token(client, email, password):
    """Helper to get auth token"""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password}
    )
    return response.json()["access_token"]


@pytest.fixture
def headers(client, employee):
    return {"Authorization": f"Bearer {get_auth_token(client, 'employee@opsbeetech.com', 'testpass123')}"}


FULL_PROFILE = {
    "name": "Priya Sharma",
    "designation": "Engineer",
    "department": "Platform",
    "phone_number": "9876543210",
    "joining_date": "2023-06-01",
    "guardian_name": "R. Sharma",
    "work_experiences": [
        {"company": "Acme", "role": "Intern", "start_date": "2022-01-01", "end_date": "2022-06-30"},
        {"company": "Globex", "role": "Developer"},
    ],
    "educations": [{"level": "Graduation", "institution": "State University", "year": "2021", "score": "8.1"}],
    "certifications": [{"name": "Cloud Practitioner", "issuer": "AWS"}],
}


def test_empty_profile(client, employee, headers):
    response = client.get("/api/v1/profile", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["user_id"] == employee.id
    assert data["name"] == "Test Employee"
    assert data["designation"] is None
    assert data["work_experiences"] == []


def test_put_profile_creates_everything(client, headers):
    response = client.put("/api/v1/profile", json=FULL_PROFILE, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["name"] == "Priya Sharma"
    assert data["designation"] == "Engineer"
    assert data["joining_date"] == "2023-06-01"
    assert [w["company"] for w in data["work_experiences"]] == ["Acme", "Globex"]
    assert data["educations"][0]["level"] == "Graduation"
    assert data["certifications"][0]["issuer"] == "AWS"

    again = client.get("/api/v1/profile", headers=headers).json()
    assert again["work_experiences"] == data["work_experiences"]


def test_put_profile_replaces_child_lists(client, db, headers):
    client.put("/api/v1/profile", json=FULL_PROFILE, headers=headers)

    update = dict(FULL_PROFILE, work_experiences=[{"company": "Initech"}], educations=[], certifications=[])
    response = client.put("/api/v1/profile", json=update, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [w["company"] for w in data["work_experiences"]] == ["Initech"]
    assert data["educations"] == []
    assert db.query(WorkExperience).count() == 1
    assert db.query(Education).count() == 0
    assert db.query(Certification).count() == 0


def test_put_profile_rejects_foreign_email_domain(client, db, employee, headers):
    response = client.put(
        "/api/v1/profile",
        json=dict(FULL_PROFILE, email="priya@gmail.com"),
        headers=headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    db.refresh(employee)
    assert employee.email == "employee@opsbeetech.com"
    assert employee.name == "Test Employee"


def test_put_profile_email_taken_rolls_back(client, db, employee, admin, headers):
    response = client.put(
        "/api/v1/profile",
        json=dict(FULL_PROFILE, email="admin@opsbeetech.com"),
        headers=headers,
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    db.refresh(employee)
    assert employee.name == "Test Employee"
    assert db.query(WorkExperience).count() == 0


def test_put_profile_validation(client, headers):
    response = client.put(
        "/api/v1/profile",
        json={"work_experiences": [{"role": "No company"}]},
        headers=headers,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
