"""
Attendance schemas. All datetimes are serialized in the local reference zone.
"""
import datetime as dt
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from workhub.models.attendance import AttendanceStatus, BreakType
from workhub.services.attendance_service import PunchAction, PunchState
from workhub.utils.datetime_utils import iso_local


class PunchRequest(BaseModel):
    """Schema for a punch action"""
    action: PunchAction = Field(..., description="IN, OUT, START_BREAK or END_BREAK")
    date: Optional[dt.date] = Field(None, description="Attendance day (default today)")
    break_type: Optional[BreakType] = Field(None, description="LUNCH or TEA; required for START_BREAK")


class PunchStatusOut(BaseModel):
    """Current punch status for one attendance day"""
    state: PunchState
    total_break_seconds: int = 0
    total_lunch_seconds: int = 0
    total_tea_seconds: int = 0
    total_work_seconds: int = 0
    punch_in: Optional[datetime] = None
    punch_out: Optional[datetime] = None
    break_start_time: Optional[datetime] = None
    break_type: Optional[BreakType] = None
    record_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("punch_in", "punch_out", "break_start_time", when_used="always")
    @classmethod
    def _ser_datetime(cls, value: Optional[datetime]) -> Optional[str]:
        return iso_local(value)


class PunchResponse(BaseModel):
    success: bool = True
    updated_state: PunchStatusOut


class AttendanceRecordOut(BaseModel):
    """Schema for one attendance day"""
    id: int
    user_id: int
    date: dt.date
    punch_in: Optional[datetime]
    punch_out: Optional[datetime]
    break_start_time: Optional[datetime]
    break_type: Optional[BreakType]
    total_break_seconds: int
    total_lunch_seconds: int
    total_tea_seconds: int
    total_work_seconds: int
    status: AttendanceStatus

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("punch_in", "punch_out", "break_start_time", when_used="always")
    @classmethod
    def _ser_datetime(cls, value: Optional[datetime]) -> Optional[str]:
        return iso_local(value)


class MonthlyAttendanceResponse(BaseModel):
    year: int
    month: int
    items: List[AttendanceRecordOut]
    total: int


class WeeklySummaryOut(BaseModel):
    week_start: dt.date
    week_end: dt.date
    week_number: int
    hours: float
    target_hours: int
    percent_completed: int

    model_config = ConfigDict(from_attributes=True)
