"""
Time Tracking Router - daily check-in/out, breaks, overtime and month views
"""
from contextlib import contextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from timetracking.core.exceptions import ConstraintViolationError, InvalidStateError, NotFoundError
from timetracking.models.users import User
from timetracking.models.time_tracking import MonthlyTrackingData, TimeEntry
from timetracking.routers.auth import ensure_admin, get_current_user
from timetracking.schemas.time_tracking import CheckInIn, CheckOutResult, OvertimeApprovalIn, RealTimeStatus
from timetracking.services.repository import BeanieTrackingRepository
from timetracking.services.time_tracking_service import TimeTrackingService

router = APIRouter(prefix="/time-tracking", tags=["time-tracking"])


def get_time_tracking_service() -> TimeTrackingService:
    return TimeTrackingService(BeanieTrackingRepository())


@contextmanager
def _domain_errors():
    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except InvalidStateError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ConstraintViolationError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


# ==================== Day actions ====================

@router.post("/checkin", response_model=TimeEntry)
async def check_in(
    data: Optional[CheckInIn] = None,
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    """Record today's arrival"""
    with _domain_errors():
        return await service.check_in(str(current_user.id), note=data.note if data else None)


@router.post("/checkout", response_model=CheckOutResult)
async def check_out(
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    """Record today's departure"""
    with _domain_errors():
        return await service.check_out(str(current_user.id))


@router.post("/break/start", response_model=TimeEntry)
async def start_break(
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    with _domain_errors():
        return await service.start_break(str(current_user.id))


@router.post("/break/end", response_model=TimeEntry)
async def end_break(
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    with _domain_errors():
        return await service.end_break(str(current_user.id))


@router.post("/continue", response_model=TimeEntry)
async def continue_work(
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    """Reopen today's entry after a checkout; the time away counts as a break"""
    with _domain_errors():
        return await service.continue_work(str(current_user.id))


# ==================== Overtime ====================

@router.post("/overtime/request", response_model=TimeEntry)
async def request_overtime(
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    with _domain_errors():
        return await service.request_overtime(str(current_user.id))


@router.post("/overtime/start", response_model=TimeEntry)
async def start_overtime(
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    with _domain_errors():
        return await service.start_overtime(str(current_user.id))


@router.post("/overtime/{user_id}/approve", response_model=TimeEntry)
async def approve_overtime(
    user_id: str,
    data: Optional[OvertimeApprovalIn] = None,
    admin: User = Depends(ensure_admin),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    """Approve a pending overtime request (admin only)"""
    with _domain_errors():
        return await service.approve_overtime(
            user_id, day=data.date if data else None, approved_by=str(admin.id)
        )


# ==================== Reads ====================

@router.get("/status", response_model=RealTimeStatus)
async def get_status(
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    """Live view of today's entry; closes a stale open day as a side effect"""
    return await service.get_real_time_status(str(current_user.id))


@router.get("/current-month", response_model=MonthlyTrackingData)
async def get_current_month(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    return await service.get_monthly_tracking(str(current_user.id), month=month, year=year)


@router.get("/history", response_model=List[MonthlyTrackingData])
async def get_history(
    limit: int = Query(12, ge=1, le=120),
    current_user: User = Depends(get_current_user),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    return await service.get_tracking_history(str(current_user.id), limit=limit)


@router.get("/all-users", response_model=List[MonthlyTrackingData])
async def get_all_users(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    admin: User = Depends(ensure_admin),
    service: TimeTrackingService = Depends(get_time_tracking_service),
):
    """Every employee's month document (admin only)"""
    return await service.get_all_users_tracking(month=month, year=year)
