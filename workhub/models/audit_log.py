"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from workhub.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    # No FK: audit rows must survive deletion of the acting or affected user
    actor_id = Column(Integer, nullable=False, index=True)
    action = Column(String, nullable=False)  # e.g. "ATTENDANCE_IN", "FACE_ENROLL", "USER_DELETE"
    entity_type = Column(String, nullable=False)  # e.g. "attendance_records", "users"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
