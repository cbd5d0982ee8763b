"""
User model (account, role and enrolled face template)
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from workhub.db.base import Base


class Role(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=Role.EMPLOYEE.value)
    # Accounts created by an admin must pick their own password on first login
    must_change_password = Column(Boolean, default=False, nullable=False)

    # Face template: 12 floats (6 landmarks x 2 normalized coordinates) or NULL
    face_descriptor = Column(JSON, nullable=True)
    face_enrolled = Column(Boolean, default=False, nullable=False)
    face_enrolled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    # Relationships
    attendance_records = relationship("AttendanceRecord", back_populates="user", cascade="all, delete-orphan")
    profile = relationship("EmployeeProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
