"""
Database models
"""
from workhub.models.user import User, Role
from workhub.models.attendance import AttendanceRecord, AttendanceStatus, BreakType
from workhub.models.profile import EmployeeProfile, WorkExperience, Education, Certification
from workhub.models.audit_log import AuditLog

__all__ = [
    "User",
    "Role",
    "AttendanceRecord",
    "AttendanceStatus",
    "BreakType",
    "EmployeeProfile",
    "WorkExperience",
    "Education",
    "Certification",
    "AuditLog",
]
