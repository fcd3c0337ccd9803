from datetime import datetime
from typing import List, Literal, Optional

from beanie import Document
from pydantic import BaseModel, Field, field_validator, model_validator
from pymongo import ASCENDING, IndexModel

from timetracking.core.timezone_utils import ensure_utc, utc_now

EntryStatus = Literal["absent", "present", "partial", "in_progress", "completed", "late"]


class Break(BaseModel):
    start: datetime
    end: Optional[datetime] = None
    duration: float = 0.0  # minutes

    @field_validator("start", "end")
    @classmethod
    def _as_utc(cls, v):
        return ensure_utc(v)

    @model_validator(mode="after")
    def _check_order(self):
        if self.end is not None and self.end < self.start:
            raise ValueError("break end must not be before its start")
        return self

    @property
    def is_open(self) -> bool:
        return self.end is None


class TimeEntry(BaseModel):
    date: str  # Madagascar day, YYYY-MM-DD
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    breaks: List[Break] = Field(default_factory=list)

    # derived, only written by the hours calculator
    total_hours: float = 0.0
    break_hours: float = 0.0
    net_hours: float = 0.0
    overtime_hours: float = 0.0
    status: EntryStatus = "absent"

    notes: str = ""
    is_paused: bool = False
    last_resume_time: Optional[datetime] = None

    overtime_requested: bool = False
    overtime_approved: bool = False
    overtime_started: bool = False
    overtime_approved_by: Optional[str] = None

    @field_validator("check_in", "check_out", "last_resume_time")
    @classmethod
    def _as_utc(cls, v):
        return ensure_utc(v)

    @property
    def is_open(self) -> bool:
        """Checked in and not yet checked out."""
        return self.check_in is not None and self.check_out is None

    @property
    def current_break(self) -> Optional[Break]:
        if self.breaks and self.breaks[-1].is_open:
            return self.breaks[-1]
        return None


class MonthlyTrackingData(BaseModel):
    """
    Month document body: one per (user, month, year), embedding the day entries.

    Kept separate from the Beanie document so the engine can run against
    any store that hands back this shape.
    """
    user_id: str
    month: int = Field(ge=1, le=12)
    year: int
    entries: List[TimeEntry] = Field(default_factory=list)
    total_hours_month: float = 0.0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def find_entry(self, day: str) -> Optional[TimeEntry]:
        for entry in self.entries:
            if entry.date == day:
                return entry
        return None

    def get_or_add_entry(self, day: str) -> TimeEntry:
        entry = self.find_entry(day)
        if entry is None:
            entry = TimeEntry(date=day)
            self.entries.append(entry)
        return entry

    def open_entries(self) -> List[TimeEntry]:
        return [e for e in self.entries if e.is_open]


class MonthlyTracking(Document, MonthlyTrackingData):
    class Settings:
        name = "time_tracking"
        use_state_management = True
        indexes = [
            IndexModel(
                [("user_id", ASCENDING), ("month", ASCENDING), ("year", ASCENDING)],
                unique=True,
                name="user_month_year_unique",
            ),
        ]
