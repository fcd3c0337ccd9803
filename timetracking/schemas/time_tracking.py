from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from timetracking.models.time_tracking import TimeEntry


class CheckInIn(BaseModel):
    note: Optional[str] = None


class OvertimeApprovalIn(BaseModel):
    date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")  # defaults to today


class CheckOutResult(BaseModel):
    check_out: datetime
    net_hours: float
    has_reached_eight_hours: bool


class RealTimeStatus(BaseModel):
    entry: Optional[TimeEntry] = None
    current_time: datetime
    current_time_local: Optional[str] = None
    total_hours: float = 0.0
    break_hours: float = 0.0
    net_hours: float = 0.0
    is_working: bool = False
    is_paused: bool = False
    time_to_eight_hours: float  # minutes

    overtime_hours: float = 0.0
    overtime_requested: bool = False
    overtime_approved: bool = False
    overtime_started: bool = False
    can_request_overtime: bool = False
