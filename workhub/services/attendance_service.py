"""
Attendance service: daily punch cycle (in / break start / break end / out) with
break and work time accounting.

One AttendanceRecord per user per attendance day. The punch state is never
stored; derive_punch_state() reads it off the record's nullable fields.

Mutations never raise. perform_punch() returns a PunchResult carrying either
the updated state or an error message, and leaves the record untouched on
error. Concurrent writers are caught by the (user_id, date) unique key and by
the record's version column.
"""
import calendar
import enum
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from workhub.core.config import settings
from workhub.models.attendance import AttendanceRecord, AttendanceStatus, BreakType
from workhub.services.audit_service import log_audit
from workhub.services.results import ErrorCode
from workhub.utils.datetime_utils import anchor_timestamp, attendance_day, elapsed_seconds

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600
FULL_DAY_HOURS = 6.5
HALF_DAY_HOURS = 4.5


class PunchState(str, enum.Enum):
    NOT_PUNCHED = "NOT_PUNCHED"
    PUNCHED_IN = "PUNCHED_IN"
    ON_BREAK = "ON_BREAK"
    PUNCHED_OUT = "PUNCHED_OUT"


class PunchAction(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    START_BREAK = "START_BREAK"
    END_BREAK = "END_BREAK"


@dataclass
class PunchStatusView:
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


@dataclass
class PunchResult:
    success: bool
    updated_state: Optional[PunchStatusView] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def failed(cls, message: str, code: ErrorCode = ErrorCode.INVALID_STATE) -> "PunchResult":
        return cls(success=False, error=message, error_code=code)


@dataclass
class WeeklySummary:
    week_start: date
    week_end: date
    week_number: int
    hours: float
    target_hours: int
    percent_completed: int


def derive_punch_state(record: Optional[AttendanceRecord]) -> PunchState:
    """The day's punch state, read from the record (None = no record for the day)."""
    if record is None:
        return PunchState.NOT_PUNCHED
    if record.punch_out is not None:
        return PunchState.PUNCHED_OUT
    if record.break_start_time is not None:
        return PunchState.ON_BREAK
    if record.punch_in is not None:
        return PunchState.PUNCHED_IN
    return PunchState.NOT_PUNCHED


def classify_work_status(total_work_seconds: int) -> AttendanceStatus:
    """Day status from the worked span (breaks included)."""
    hours = total_work_seconds / SECONDS_PER_HOUR
    if hours >= FULL_DAY_HOURS:
        return AttendanceStatus.PRESENT
    if hours >= HALF_DAY_HOURS:
        return AttendanceStatus.HALF_DAY
    if total_work_seconds > 0:
        return AttendanceStatus.SHORT_DAY
    return AttendanceStatus.ABSENT


def build_status_view(record: Optional[AttendanceRecord]) -> PunchStatusView:
    """
    Map a record to the client-facing status.

    Work time is only final at punch-out, so it reads 0 until then.
    """
    state = derive_punch_state(record)
    if record is None:
        return PunchStatusView(state=state)

    return PunchStatusView(
        state=state,
        total_break_seconds=record.total_break_seconds or 0,
        total_lunch_seconds=record.total_lunch_seconds or 0,
        total_tea_seconds=record.total_tea_seconds or 0,
        total_work_seconds=(record.total_work_seconds or 0) if state == PunchState.PUNCHED_OUT else 0,
        punch_in=record.punch_in,
        punch_out=record.punch_out,
        break_start_time=record.break_start_time,
        break_type=record.break_type,
        record_id=record.id,
    )


def get_record(db: Session, user_id: int, day: date) -> Optional[AttendanceRecord]:
    return (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.user_id == user_id, AttendanceRecord.date == day)
        .first()
    )


def get_punch_status(
    db: Session,
    user_id: int,
    day: Optional[Union[date, datetime]] = None,
) -> PunchStatusView:
    """Current punch status for the attendance day (default today)."""
    return build_status_view(get_record(db, user_id, attendance_day(day)))


def _fold_open_break(record: AttendanceRecord, timestamp: datetime) -> int:
    """Close the running break at `timestamp`, adding its length to the accumulators."""
    duration = max(0, elapsed_seconds(record.break_start_time, timestamp))
    record.total_break_seconds = (record.total_break_seconds or 0) + duration
    if record.break_type == BreakType.LUNCH:
        record.total_lunch_seconds = (record.total_lunch_seconds or 0) + duration
    elif record.break_type == BreakType.TEA:
        record.total_tea_seconds = (record.total_tea_seconds or 0) + duration
    record.break_start_time = None
    record.break_type = None
    return duration


def _start_break(
    record: Optional[AttendanceRecord],
    break_type: Optional[BreakType],
    timestamp: datetime,
) -> Optional[str]:
    if record is None or record.punch_out is not None:
        return "Cannot start break."
    if record.break_start_time is not None:
        return "Already on break."
    if break_type is None:
        return "Break type required."
    # each break type once per day
    if break_type == BreakType.LUNCH and (record.total_lunch_seconds or 0) > 0:
        return "Lunch break already taken."
    if break_type == BreakType.TEA and (record.total_tea_seconds or 0) > 0:
        return "Tea break already taken."

    record.break_start_time = timestamp
    record.break_type = break_type
    return None


def _end_break(record: Optional[AttendanceRecord], timestamp: datetime) -> Optional[str]:
    if record is None or record.break_start_time is None:
        return "Not on break."
    _fold_open_break(record, timestamp)
    return None


def _punch_out(record: Optional[AttendanceRecord], timestamp: datetime) -> Optional[str]:
    if record is None or record.punch_out is not None or record.punch_in is None:
        return "Cannot punch out."

    if record.break_start_time is not None:
        _fold_open_break(record, timestamp)

    record.punch_out = timestamp
    # whole span from punch-in to punch-out; breaks are not subtracted
    record.total_work_seconds = max(0, elapsed_seconds(record.punch_in, timestamp))
    record.status = classify_work_status(record.total_work_seconds)
    return None


def perform_punch(
    db: Session,
    user_id: int,
    action: Union[PunchAction, str],
    day: Optional[Union[date, datetime]] = None,
    break_type: Optional[Union[BreakType, str]] = None,
    now: Optional[datetime] = None,
) -> PunchResult:
    """
    Apply one punch action to the user's record for the attendance day.

    Args:
        db: Database session
        user_id: Acting user
        action: IN, OUT, START_BREAK or END_BREAK
        day: Attendance day (default today)
        break_type: LUNCH or TEA, required for START_BREAK
        now: Current time (default server time); only its time of day is used

    Returns:
        PunchResult with the updated status, or an error and no change
    """
    try:
        action = PunchAction(action)
    except ValueError:
        return PunchResult.failed("Invalid punch action.", ErrorCode.INVALID_INPUT)
    if break_type is not None:
        try:
            break_type = BreakType(break_type)
        except ValueError:
            return PunchResult.failed("Invalid break type.", ErrorCode.INVALID_INPUT)

    day = attendance_day(day)
    timestamp = anchor_timestamp(day, now)

    try:
        record = get_record(db, user_id, day)

        if action == PunchAction.IN:
            if record is not None:
                return PunchResult.failed("Already punched in for this date.")
            record = AttendanceRecord(
                user_id=user_id,
                date=day,
                punch_in=timestamp,
                status=AttendanceStatus.PRESENT,
                total_break_seconds=0,
                total_lunch_seconds=0,
                total_tea_seconds=0,
                total_work_seconds=0,
            )
            db.add(record)
        else:
            if action == PunchAction.START_BREAK:
                error = _start_break(record, break_type, timestamp)
            elif action == PunchAction.END_BREAK:
                error = _end_break(record, timestamp)
            else:
                error = _punch_out(record, timestamp)
            if error:
                return PunchResult.failed(error)

        db.commit()
        db.refresh(record)
    except IntegrityError:
        db.rollback()
        logger.warning("Concurrent punch-in rejected: user_id=%s date=%s", user_id, day)
        return PunchResult.failed("Already punched in for this date.", ErrorCode.CONFLICT)
    except StaleDataError:
        db.rollback()
        logger.warning("Concurrent punch update rejected: user_id=%s date=%s action=%s", user_id, day, action.value)
        return PunchResult.failed(
            "Attendance was updated elsewhere. Please refresh and try again.",
            ErrorCode.CONFLICT,
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Punch error: user_id=%s date=%s action=%s", user_id, day, action.value)
        return PunchResult.failed("Failed to update attendance.", ErrorCode.INTERNAL)
    except Exception:
        db.rollback()
        logger.exception("Unexpected punch error: user_id=%s date=%s action=%s", user_id, day, action.value)
        return PunchResult.failed("Failed to update attendance.", ErrorCode.INTERNAL)

    logger.info("Punch %s: user_id=%s date=%s", action.value, user_id, day)
    log_audit(
        db=db,
        actor_id=user_id,
        action=f"ATTENDANCE_{action.value}",
        entity_type="attendance_records",
        entity_id=record.id,
        meta={
            "date": day,
            "at": timestamp,
            "break_type": break_type,
            "status": record.status,
            "total_work_seconds": record.total_work_seconds,
        },
    )
    return PunchResult(success=True, updated_state=build_status_view(record))


def month_range(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a calendar month (month is 1-12)."""
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def list_records(db: Session, user_id: int, start: date, end: date) -> List[AttendanceRecord]:
    """Records with start <= date <= end, oldest first."""
    return (
        db.query(AttendanceRecord)
        .filter(
            AttendanceRecord.user_id == user_id,
            AttendanceRecord.date >= start,
            AttendanceRecord.date <= end,
        )
        .order_by(AttendanceRecord.date.asc())
        .all()
    )


def get_monthly_attendance(db: Session, user_id: int, year: int, month: int) -> List[AttendanceRecord]:
    """All of the user's records in the calendar month, ordered by date ascending."""
    start, end = month_range(year, month)
    return list_records(db, user_id, start, end)


def week_boundaries(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the week containing `day`."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def week_number_in_month(day: date) -> int:
    """1-based week of the month, weeks starting on Monday."""
    offset = day.replace(day=1).weekday()
    return (day.day + offset + 6) // 7


def weekly_work_hours(records: Iterable[AttendanceRecord], reference_day: date) -> float:
    """Hours worked in the Monday-Sunday week containing reference_day, to one decimal."""
    start, end = week_boundaries(reference_day)
    total_seconds = sum(
        (record.total_work_seconds or 0)
        for record in records
        if start <= record.date <= end
    )
    # half-up, as shown on the dashboard
    return math.floor(total_seconds / SECONDS_PER_HOUR * 10 + 0.5) / 10


def get_weekly_summary(
    db: Session,
    user_id: int,
    reference_day: Optional[Union[date, datetime]] = None,
) -> WeeklySummary:
    reference_day = attendance_day(reference_day)
    start, end = week_boundaries(reference_day)
    hours = weekly_work_hours(list_records(db, user_id, start, end), reference_day)
    target = settings.WEEKLY_HOURS_TARGET
    return WeeklySummary(
        week_start=start,
        week_end=end,
        week_number=week_number_in_month(reference_day),
        hours=hours,
        target_hours=target,
        percent_completed=math.floor(min(hours / target, 1.0) * 100 + 0.5),
    )
