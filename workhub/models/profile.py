"""
Employee profile model and its list-valued sub-entities
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from workhub.db.base import Base


class EmployeeProfile(Base):
    __tablename__ = "employee_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    designation = Column(String, nullable=True)
    department = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    alternate_phone = Column(String, nullable=True)
    alternate_email = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    pincode = Column(String, nullable=True)
    map_location = Column(String, nullable=True)
    joining_date = Column(Date, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    profile_image = Column(String, nullable=True)  # URL; uploads are handled elsewhere

    # Guardian / emergency contact
    guardian_name = Column(String, nullable=True)
    guardian_designation = Column(String, nullable=True)
    guardian_phone = Column(String, nullable=True)
    guardian_email = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    user = relationship("User", back_populates="profile")
    work_experiences = relationship("WorkExperience", back_populates="profile", cascade="all, delete-orphan", order_by="WorkExperience.id")
    educations = relationship("Education", back_populates="profile", cascade="all, delete-orphan", order_by="Education.id")
    certifications = relationship("Certification", back_populates="profile", cascade="all, delete-orphan", order_by="Certification.id")


class WorkExperience(Base):
    __tablename__ = "work_experiences"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("employee_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    company = Column(String, nullable=False)
    role = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    profile = relationship("EmployeeProfile", back_populates="work_experiences")


class Education(Base):
    __tablename__ = "educations"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("employee_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    level = Column(String, nullable=False)  # e.g. "10th", "12th", "Graduation"
    institution = Column(String, nullable=True)
    year = Column(String, nullable=True)
    score = Column(String, nullable=True)

    profile = relationship("EmployeeProfile", back_populates="educations")


class Certification(Base):
    __tablename__ = "certifications"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("employee_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    issuer = Column(String, nullable=True)
    date = Column(Date, nullable=True)

    profile = relationship("EmployeeProfile", back_populates="certifications")
