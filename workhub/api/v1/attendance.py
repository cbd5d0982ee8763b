"""
Attendance endpoints: punch cycle and the caller's own history.
Every endpoint acts on the authenticated user's records only.
"""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from workhub.core.deps import get_db, get_current_user
from workhub.core.errors import status_for_error_code
from workhub.models.user import User
from workhub.schemas.attendance import (
    AttendanceRecordOut,
    MonthlyAttendanceResponse,
    PunchRequest,
    PunchResponse,
    PunchStatusOut,
    WeeklySummaryOut,
)
from workhub.services.attendance_service import (
    get_monthly_attendance,
    get_punch_status,
    get_weekly_summary,
    perform_punch,
)

router = APIRouter()
_log = logging.getLogger(__name__)


@router.get("/status", response_model=PunchStatusOut)
async def punch_status(
    day: Optional[date] = Query(None, alias="date", description="Attendance day (default today)"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Punch state and break/work totals for one day"""
    view = get_punch_status(db, current_user.id, day)
    return PunchStatusOut.model_validate(view)


@router.post("/punch", response_model=PunchResponse)
async def punch(
    payload: PunchRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Apply a punch action (IN, START_BREAK, END_BREAK, OUT).

    Returns the updated status. An action that is not allowed in the current
    state is rejected with 400 and changes nothing; a concurrent update of
    the same day is rejected with 409.
    """
    result = perform_punch(
        db,
        current_user.id,
        payload.action,
        day=payload.date,
        break_type=payload.break_type,
    )
    if not result.success:
        _log.info("Punch rejected: user_id=%s action=%s error=%s", current_user.id, payload.action.value, result.error)
        raise HTTPException(status_code=status_for_error_code(result.error_code), detail=result.error)
    return PunchResponse(success=True, updated_state=PunchStatusOut.model_validate(result.updated_state))


@router.get("/monthly", response_model=MonthlyAttendanceResponse)
async def monthly_attendance(
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12, description="Calendar month, 1-12"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    records = get_monthly_attendance(db, current_user.id, year, month)
    items = [AttendanceRecordOut.model_validate(r) for r in records]
    return MonthlyAttendanceResponse(year=year, month=month, items=items, total=len(items))


@router.get("/weekly-summary", response_model=WeeklySummaryOut)
async def weekly_summary(
    day: Optional[date] = Query(None, alias="date", description="Any day in the week (default today)"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Hours worked in the Monday-Sunday week against the weekly target"""
    return WeeklySummaryOut.model_validate(get_weekly_summary(db, current_user.id, day))
