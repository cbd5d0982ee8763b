"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time; give the test run its own values
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-workhub-tests-only"
os.environ["APP_ENV"] = "local"
os.environ["TZ"] = "Asia/Kolkata"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from workhub.main import app
from workhub.db.base import Base
from workhub.core.deps import get_db
from workhub.core.security import hash_password

# Import all models to ensure they're registered with Base.metadata
from workhub.models import (
    User,
    Role,
    AttendanceRecord,
    EmployeeProfile,
    WorkExperience,
    Education,
    Certification,
    AuditLog,
)  # noqa


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def employee(db: Session):
    """Employee who has already chosen their own password"""
    user = User(
        name="Test Employee",
        email="employee@opsbeetech.com",
        password_hash=hash_password("testpass123"),
        role=Role.EMPLOYEE.value,
        must_change_password=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db: Session):
    user = User(
        name="Test Admin",
        email="admin@opsbeetech.com",
        password_hash=hash_password("adminpass123"),
        role=Role.ADMIN.value,
        must_change_password=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
