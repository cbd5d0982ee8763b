"""
Tests for the attendance punch cycle and time accounting
"""
from datetime import date, datetime

import pytest
from sqlalchemy.orm import Session

from workhub.core.security import hash_password
from workhub.models.attendance import AttendanceRecord, AttendanceStatus, BreakType
from workhub.models.user import Role, User
from workhub.services import attendance_service
from workhub.services.attendance_service import (
    PunchAction,
    PunchState,
    classify_work_status,
    derive_punch_state,
    get_monthly_attendance,
    get_punch_status,
    get_weekly_summary,
    month_range,
    perform_punch,
    week_boundaries,
    week_number_in_month,
    weekly_work_hours,
)
from workhub.services.results import ErrorCode
from workhub.utils.datetime_utils import local_tz, to_local

DAY = date(2024, 3, 12)  # a Tuesday


def at(hour, minute=0, second=0, day=DAY):
    """Local wall-clock moment on `day`"""
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=local_tz())


@pytest.fixture
def user(db: Session):
    user = User(
        name="Punch Tester",
        email="punch@opsbeetech.com",
        password_hash=hash_password("testpass123"),
        role=Role.EMPLOYEE.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def punch(db, user, action, when, break_type=None, day=DAY):
    return perform_punch(db, user.id, action, day=day, break_type=break_type, now=when)


def test_status_without_record_is_not_punched(db, user):
    view = get_punch_status(db, user.id, DAY)

    assert view.state == PunchState.NOT_PUNCHED
    assert view.total_break_seconds == 0
    assert view.total_lunch_seconds == 0
    assert view.total_tea_seconds == 0
    assert view.total_work_seconds == 0
    assert view.punch_in is None
    assert view.record_id is None


def test_full_day_with_tea_break(db, user):
    """09:00 in, 11:00-11:10 tea, 17:30 out: 8.5h span counted in full"""
    assert punch(db, user, PunchAction.IN, at(9)).success
    assert punch(db, user, PunchAction.START_BREAK, at(11), BreakType.TEA).success
    assert punch(db, user, PunchAction.END_BREAK, at(11, 10)).success
    result = punch(db, user, PunchAction.OUT, at(17, 30))

    assert result.success
    state = result.updated_state
    assert state.state == PunchState.PUNCHED_OUT
    assert state.total_break_seconds == 600
    assert state.total_tea_seconds == 600
    assert state.total_lunch_seconds == 0
    assert state.total_work_seconds == 30600

    record = db.query(AttendanceRecord).filter(AttendanceRecord.user_id == user.id).one()
    assert record.status == AttendanceStatus.PRESENT
    assert record.date == DAY


@pytest.mark.parametrize(
    "lunch_start, lunch_end, out",
    [
        (at(13), at(13, 30), at(18)),
        (at(12, 15), at(13, 5, 20), at(17, 45)),
        (at(14), at(14, 0, 1), at(14, 0, 2)),
    ],
)
def test_lunch_cycle_totals(db, user, lunch_start, lunch_end, out):
    punch_in = at(9, 10)
    assert punch(db, user, PunchAction.IN, punch_in).success
    assert punch(db, user, PunchAction.START_BREAK, lunch_start, BreakType.LUNCH).success
    assert punch(db, user, PunchAction.END_BREAK, lunch_end).success
    state = punch(db, user, PunchAction.OUT, out).updated_state

    lunch_seconds = int((lunch_end - lunch_start).total_seconds())
    assert state.total_lunch_seconds == lunch_seconds
    assert state.total_break_seconds == state.total_lunch_seconds
    assert state.total_tea_seconds == 0
    assert state.total_work_seconds == int((out - punch_in).total_seconds())


def test_punch_in_twice_rejected(db, user):
    assert punch(db, user, PunchAction.IN, at(9)).success
    result = punch(db, user, PunchAction.IN, at(9, 5))

    assert not result.success
    assert result.error == "Already punched in for this date."
    assert db.query(AttendanceRecord).count() == 1


def test_punch_in_creates_present_record_with_zero_totals(db, user):
    result = punch(db, user, PunchAction.IN, at(9))

    assert result.updated_state.state == PunchState.PUNCHED_IN
    record = db.query(AttendanceRecord).one()
    assert record.status == AttendanceStatus.PRESENT
    assert record.total_break_seconds == 0
    assert record.total_work_seconds == 0
    assert record.punch_out is None


def test_work_seconds_hidden_until_punch_out(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.START_BREAK, at(12), BreakType.LUNCH)

    view = get_punch_status(db, user.id, DAY)
    assert view.state == PunchState.ON_BREAK
    assert view.break_type == BreakType.LUNCH
    assert view.total_work_seconds == 0


def test_lunch_break_only_once_per_day(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.START_BREAK, at(13), BreakType.LUNCH)
    punch(db, user, PunchAction.END_BREAK, at(13, 30))

    result = punch(db, user, PunchAction.START_BREAK, at(15), BreakType.LUNCH)

    assert not result.success
    assert result.error == "Lunch break already taken."
    view = get_punch_status(db, user.id, DAY)
    assert view.state == PunchState.PUNCHED_IN
    assert view.total_lunch_seconds == 1800


def test_tea_break_only_once_per_day(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.START_BREAK, at(11), BreakType.TEA)
    punch(db, user, PunchAction.END_BREAK, at(11, 10))

    result = punch(db, user, PunchAction.START_BREAK, at(16), BreakType.TEA)

    assert not result.success
    assert result.error == "Tea break already taken."


def test_both_break_types_accumulate_separately(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.START_BREAK, at(11), BreakType.TEA)
    punch(db, user, PunchAction.END_BREAK, at(11, 10))
    punch(db, user, PunchAction.START_BREAK, at(13), BreakType.LUNCH)
    result = punch(db, user, PunchAction.END_BREAK, at(13, 45))

    state = result.updated_state
    assert state.total_tea_seconds == 600
    assert state.total_lunch_seconds == 2700
    assert state.total_break_seconds == 3300


@pytest.mark.parametrize(
    "action, break_type, expected",
    [
        (PunchAction.START_BREAK, BreakType.TEA, "Cannot start break."),
        (PunchAction.END_BREAK, None, "Not on break."),
        (PunchAction.OUT, None, "Cannot punch out."),
    ],
)
def test_actions_before_punch_in_rejected(db, user, action, break_type, expected):
    result = punch(db, user, action, at(10), break_type)

    assert not result.success
    assert result.error == expected
    assert result.error_code == ErrorCode.INVALID_STATE
    assert db.query(AttendanceRecord).count() == 0


def test_start_break_requires_type(db, user):
    punch(db, user, PunchAction.IN, at(9))
    result = punch(db, user, PunchAction.START_BREAK, at(10))

    assert not result.success
    assert result.error == "Break type required."


def test_already_on_break(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.START_BREAK, at(10), BreakType.TEA)
    result = punch(db, user, PunchAction.START_BREAK, at(10, 5), BreakType.LUNCH)

    assert not result.success
    assert result.error == "Already on break."


def test_actions_after_punch_out_rejected(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.OUT, at(17))

    assert punch(db, user, PunchAction.OUT, at(18)).error == "Cannot punch out."
    assert punch(db, user, PunchAction.START_BREAK, at(18), BreakType.TEA).error == "Cannot start break."
    assert punch(db, user, PunchAction.IN, at(18)).error == "Already punched in for this date."


def test_punch_out_closes_open_break(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.START_BREAK, at(13), BreakType.LUNCH)
    result = punch(db, user, PunchAction.OUT, at(13, 20))

    state = result.updated_state
    assert state.state == PunchState.PUNCHED_OUT
    assert state.break_start_time is None
    assert state.break_type is None
    assert state.total_lunch_seconds == 1200
    assert state.total_work_seconds == 4 * 3600 + 1200


def test_short_day_status(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.OUT, at(11))

    record = db.query(AttendanceRecord).one()
    assert record.status == AttendanceStatus.SHORT_DAY


def test_half_day_status(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.OUT, at(14))

    record = db.query(AttendanceRecord).one()
    assert record.status == AttendanceStatus.HALF_DAY


def test_invalid_action_and_break_type(db, user):
    assert perform_punch(db, user.id, "JUMP", day=DAY).error == "Invalid punch action."
    result = perform_punch(db, user.id, "START_BREAK", day=DAY, break_type="NAP")
    assert result.error == "Invalid break type."
    assert result.error_code == ErrorCode.INVALID_INPUT


def test_string_action_accepted(db, user):
    result = perform_punch(db, user.id, "IN", day=DAY, now=at(9))
    assert result.success
    assert result.updated_state.state == PunchState.PUNCHED_IN


def test_timestamp_uses_requested_day_with_current_time_of_day(db, user):
    other_day = date(2024, 3, 10)
    perform_punch(db, user.id, PunchAction.IN, day=other_day, now=at(9, 30))

    view = get_punch_status(db, user.id, other_day)
    assert view.state == PunchState.PUNCHED_IN
    punch_in_local = to_local(view.punch_in)
    assert punch_in_local.date() == other_day
    assert (punch_in_local.hour, punch_in_local.minute) == (9, 30)


def test_stale_record_update_rejected(db, user, monkeypatch):
    """A write based on an outdated version is refused and leaves the record unchanged"""
    punch(db, user, PunchAction.IN, at(9))
    real_get_record = attendance_service.get_record

    def get_record_then_concurrent_write(session, user_id, day):
        record = real_get_record(session, user_id, day)
        # another writer bumps the version after this read
        session.execute(
            AttendanceRecord.__table__.update()
            .where(AttendanceRecord.__table__.c.id == record.id)
            .values(version=record.version + 1)
        )
        return record

    monkeypatch.setattr(attendance_service, "get_record", get_record_then_concurrent_write)
    result = punch(db, user, PunchAction.START_BREAK, at(10), BreakType.TEA)

    assert not result.success
    assert result.error_code == ErrorCode.CONFLICT
    assert result.error == "Attendance was updated elsewhere. Please refresh and try again."

    monkeypatch.undo()
    db.expire_all()
    assert get_punch_status(db, user.id, DAY).state == PunchState.PUNCHED_IN


def test_duplicate_punch_in_race_rejected(db, user, monkeypatch):
    """Two INs that both saw no record: the unique (user, date) key stops the second"""
    assert punch(db, user, PunchAction.IN, at(9)).success
    monkeypatch.setattr(attendance_service, "get_record", lambda session, user_id, day: None)

    result = punch(db, user, PunchAction.IN, at(9, 1))

    assert not result.success
    assert result.error_code == ErrorCode.CONFLICT
    assert result.error == "Already punched in for this date."

    monkeypatch.undo()
    db.expire_all()
    assert db.query(AttendanceRecord).count() == 1
    view = get_punch_status(db, user.id, DAY)
    assert view.state == PunchState.PUNCHED_IN
    assert (to_local(view.punch_in).hour, to_local(view.punch_in).minute) == (9, 0)


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (int(6.5 * 3600), AttendanceStatus.PRESENT),
        (int(6.49 * 3600), AttendanceStatus.HALF_DAY),
        (int(4.5 * 3600), AttendanceStatus.HALF_DAY),
        (int(4.49 * 3600), AttendanceStatus.SHORT_DAY),
        (1, AttendanceStatus.SHORT_DAY),
        (0, AttendanceStatus.ABSENT),
    ],
)
def test_classify_work_status_thresholds(seconds, expected):
    assert classify_work_status(seconds) == expected


def test_derive_punch_state():
    assert derive_punch_state(None) == PunchState.NOT_PUNCHED
    assert derive_punch_state(AttendanceRecord(punch_in=at(9))) == PunchState.PUNCHED_IN
    assert derive_punch_state(
        AttendanceRecord(punch_in=at(9), break_start_time=at(10), break_type=BreakType.TEA)
    ) == PunchState.ON_BREAK
    assert derive_punch_state(AttendanceRecord(punch_in=at(9), punch_out=at(17))) == PunchState.PUNCHED_OUT


def test_monthly_attendance_ordered_by_date(db, user):
    for day in (date(2024, 3, 20), date(2024, 3, 5), date(2024, 4, 1), date(2024, 3, 12)):
        perform_punch(db, user.id, PunchAction.IN, day=day, now=at(9))

    records = get_monthly_attendance(db, user.id, 2024, 3)

    assert [r.date for r in records] == [date(2024, 3, 5), date(2024, 3, 12), date(2024, 3, 20)]


def test_monthly_attendance_other_user_excluded(db, user):
    other = User(name="Other", email="other@opsbeetech.com", password_hash=hash_password("x" * 8))
    db.add(other)
    db.commit()
    perform_punch(db, other.id, PunchAction.IN, day=DAY, now=at(9))

    assert get_monthly_attendance(db, user.id, 2024, 3) == []


def test_month_range():
    assert month_range(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_range(2023, 12) == (date(2023, 12, 1), date(2023, 12, 31))
    with pytest.raises(ValueError):
        month_range(2024, 0)
    with pytest.raises(ValueError):
        month_range(2024, 13)


def test_week_boundaries_monday_to_sunday():
    assert week_boundaries(date(2024, 3, 12)) == (date(2024, 3, 11), date(2024, 3, 17))
    assert week_boundaries(date(2024, 3, 11)) == (date(2024, 3, 11), date(2024, 3, 17))
    assert week_boundaries(date(2024, 3, 17)) == (date(2024, 3, 11), date(2024, 3, 17))


def test_week_number_in_month():
    # 1 March 2024 is a Friday
    assert week_number_in_month(date(2024, 3, 1)) == 1
    assert week_number_in_month(date(2024, 3, 3)) == 1
    assert week_number_in_month(date(2024, 3, 4)) == 2
    assert week_number_in_month(date(2024, 3, 31)) == 5
    # 1 April 2024 is a Monday
    assert week_number_in_month(date(2024, 4, 7)) == 1
    assert week_number_in_month(date(2024, 4, 8)) == 2


def test_weekly_work_hours_only_counts_the_week():
    records = [
        AttendanceRecord(date=date(2024, 3, 11), total_work_seconds=8 * 3600),
        AttendanceRecord(date=date(2024, 3, 12), total_work_seconds=7 * 3600 + 1800),
        AttendanceRecord(date=date(2024, 3, 10), total_work_seconds=9 * 3600),
        AttendanceRecord(date=date(2024, 3, 18), total_work_seconds=9 * 3600),
    ]
    assert weekly_work_hours(records, date(2024, 3, 13)) == 15.5


def test_weekly_work_hours_rounds_half_up():
    records = [AttendanceRecord(date=DAY, total_work_seconds=4500)]  # 1.25h
    assert weekly_work_hours(records, DAY) == 1.3


def test_weekly_summary(db, user):
    punch(db, user, PunchAction.IN, at(9))
    punch(db, user, PunchAction.OUT, at(17))
    monday = date(2024, 3, 11)
    perform_punch(db, user.id, PunchAction.IN, day=monday, now=at(9))
    perform_punch(db, user.id, PunchAction.OUT, day=monday, now=at(13))

    summary = get_weekly_summary(db, user.id, DAY)

    assert summary.week_start == monday
    assert summary.week_end == date(2024, 3, 17)
    assert summary.hours == 12.0
    assert summary.target_hours == 48
    assert summary.percent_completed == 25
    assert summary.week_number == 3
