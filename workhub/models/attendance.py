"""
Attendance record model: one row per user per attendance day.
"""
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from workhub.db.base import Base


class BreakType(str, enum.Enum):
    LUNCH = "LUNCH"
    TEA = "TEA"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    HALF_DAY = "HALF_DAY"
    SHORT_DAY = "SHORT_DAY"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)  # attendance day key (local calendar date)
    punch_in = Column(DateTime(timezone=True), nullable=True)  # UTC
    punch_out = Column(DateTime(timezone=True), nullable=True)  # UTC
    break_start_time = Column(DateTime(timezone=True), nullable=True)  # set iff currently on break
    break_type = Column(SQLEnum(BreakType), nullable=True)  # set iff break_start_time is set
    total_break_seconds = Column(Integer, nullable=False, default=0)
    total_lunch_seconds = Column(Integer, nullable=False, default=0)
    total_tea_seconds = Column(Integer, nullable=False, default=0)
    total_work_seconds = Column(Integer, nullable=False, default=0)
    status = Column(SQLEnum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
    )

    # UPDATE ... WHERE version = :old; a stale read raises StaleDataError on flush
    __mapper_args__ = {"version_id_col": version}

    user = relationship("User", back_populates="attendance_records")
