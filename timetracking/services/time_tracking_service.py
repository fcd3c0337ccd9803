"""
Time tracking service: the operations the request layer calls.

Every mutating call goes resolver -> calculator -> aggregator:
the month document is read, one day entry is changed in memory, the month
total is recomputed and the whole document is written back. This is a plain
read-modify-write; two writes for the same user landing in the same instant
race and the last one wins.
"""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from timetracking.core.exceptions import InvalidStateError, NotFoundError
from timetracking.core.timezone_utils import (
    ensure_utc, format_datetime_mada, mada_date_string, mada_month_key, utc_now,
)
from timetracking.models.time_tracking import MonthlyTrackingData, TimeEntry
from timetracking.schemas.time_tracking import CheckOutResult, RealTimeStatus
from timetracking.services.entry_resolver import EntryResolver
from timetracking.services.hours_calculator import (
    WORKDAY_HOURS, calculate_entry_hours, close_entry, end_break, has_reached_eight_hours,
    reopen_entry, start_break,
)
from timetracking.services.monthly_aggregator import commit_month
from timetracking.services.repository import TrackingRepository

logger = logging.getLogger(__name__)

EntryAction = Callable[[TimeEntry, datetime], None]


def _check_in_action(note: Optional[str]) -> EntryAction:
    def action(entry: TimeEntry, now: datetime) -> None:
        if entry.check_in is not None:
            if entry.is_open:
                raise InvalidStateError("Already checked in today")
            raise InvalidStateError("Already checked out today, continue the day instead")
        entry.check_in = now
        entry.status = "present"
        if note:
            entry.notes = note
    return action


def _request_overtime(entry: TimeEntry, now: datetime) -> None:
    if entry.overtime_requested:
        raise InvalidStateError("Overtime already requested for today")
    entry.overtime_requested = True


def _start_overtime(entry: TimeEntry, now: datetime) -> None:
    if not entry.overtime_approved:
        raise InvalidStateError("Overtime has not been approved")
    if entry.overtime_started:
        raise InvalidStateError("Overtime already started")
    if not entry.is_open:
        reopen_entry(entry, now)
    entry.overtime_started = True


class TimeTrackingService:
    def __init__(self, repository: TrackingRepository, clock: Callable[[], datetime] = utc_now):
        self._repository = repository
        self._resolver = EntryResolver(repository)
        self._clock = clock

    def _now(self, at: Optional[datetime]) -> datetime:
        return ensure_utc(at if at is not None else self._clock())

    def _settle(self, tracking: MonthlyTrackingData, now: datetime) -> bool:
        """Recalculate every open entry; True when one of them got auto-closed."""
        closed = False
        for entry in tracking.open_entries():
            decision = calculate_entry_hours(entry, now)
            if decision is not None:
                closed = True
                logger.info(
                    "Automatic checkout for user %s on %s: %s", tracking.user_id, entry.date, decision.reason
                )
        return closed

    async def _settle_and_commit(self, tracking: MonthlyTrackingData, now: datetime) -> None:
        if self._settle(tracking, now):
            await commit_month(self._repository, tracking, now)

    async def _settle_earlier_months(self, user_id: str, now: datetime) -> None:
        # an entry left open on the last day of a month lives in an earlier document
        current_month, current_year = mada_month_key(now)
        for tracking in await self._repository.list_for_user(user_id, 2):
            if (tracking.year, tracking.month) >= (current_year, current_month):
                continue
            if tracking.open_entries():
                await self._settle_and_commit(tracking, now)

    async def _mutate(self, user_id: str, at: Optional[datetime], action: EntryAction, create: bool = False) -> TimeEntry:
        now = self._now(at)
        await self._settle_earlier_months(user_id, now)
        if create:
            tracking, entry = await self._resolver.resolve(user_id, now)
        else:
            tracking, entry = await self._resolver.resolve_existing(user_id, now)

        settled = self._settle(tracking, now)
        try:
            action(entry, now)
        except InvalidStateError:
            if settled:
                await commit_month(self._repository, tracking, now)
            raise

        calculate_entry_hours(entry, now)
        await commit_month(self._repository, tracking, now)
        return entry

    # ---- mutating operations ----

    async def check_in(self, user_id: str, at: Optional[datetime] = None, note: Optional[str] = None) -> TimeEntry:
        """Open today's entry; a day that was already checked out is resumed with continue_work."""
        entry = await self._mutate(user_id, at, _check_in_action(note), create=True)
        logger.info("User %s checked in for %s", user_id, entry.date)
        return entry

    async def check_out(self, user_id: str, at: Optional[datetime] = None) -> CheckOutResult:
        entry = await self._mutate(user_id, at, close_entry)
        logger.info("User %s checked out for %s (%.2fh net)", user_id, entry.date, entry.net_hours)
        return CheckOutResult(
            check_out=entry.check_out,
            net_hours=entry.net_hours,
            has_reached_eight_hours=has_reached_eight_hours(entry),
        )

    async def start_break(self, user_id: str, at: Optional[datetime] = None) -> TimeEntry:
        return await self._mutate(user_id, at, start_break)

    async def end_break(self, user_id: str, at: Optional[datetime] = None) -> TimeEntry:
        return await self._mutate(user_id, at, end_break)

    async def continue_work(self, user_id: str, at: Optional[datetime] = None) -> TimeEntry:
        return await self._mutate(user_id, at, reopen_entry)

    async def request_overtime(self, user_id: str, at: Optional[datetime] = None) -> TimeEntry:
        entry = await self._mutate(user_id, at, _request_overtime)
        logger.info("User %s requested overtime for %s", user_id, entry.date)
        return entry

    async def start_overtime(self, user_id: str, at: Optional[datetime] = None) -> TimeEntry:
        return await self._mutate(user_id, at, _start_overtime)

    async def approve_overtime(
        self,
        user_id: str,
        day: Optional[str] = None,
        approved_by: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> TimeEntry:
        """Approve a pending overtime request for ``day`` (Madagascar YYYY-MM-DD, default today)."""
        now = self._now(at)
        day = day or mada_date_string(now)
        try:
            target = datetime.strptime(day, "%Y-%m-%d")
        except ValueError:
            raise InvalidStateError(f"{day} is not a calendar day") from None
        tracking = await self._repository.find(user_id, target.month, target.year)
        entry = tracking.find_entry(day) if tracking is not None else None
        if entry is None:
            raise NotFoundError(f"No time entry found for {day}")
        if not entry.overtime_requested:
            raise InvalidStateError("No overtime request to approve")
        if entry.overtime_approved:
            raise InvalidStateError("Overtime already approved")

        self._settle(tracking, now)
        entry.overtime_approved = True
        entry.overtime_approved_by = approved_by
        calculate_entry_hours(entry, now)
        await commit_month(self._repository, tracking, now)
        logger.info("Overtime for user %s on %s approved by %s", user_id, day, approved_by)
        return entry

    # ---- reads (may persist auto-checkout side effects) ----

    async def get_real_time_status(self, user_id: str, at: Optional[datetime] = None) -> RealTimeStatus:
        now = self._now(at)
        await self._settle_earlier_months(user_id, now)
        tracking = await self._resolver.find_month(user_id, now)
        entry = None
        if tracking is not None:
            await self._settle_and_commit(tracking, now)
            entry = tracking.find_entry(mada_date_string(now))

        if entry is None or entry.check_in is None:
            return RealTimeStatus(
                entry=None,
                current_time=now,
                current_time_local=format_datetime_mada(now),
                time_to_eight_hours=WORKDAY_HOURS * 60,
            )

        calculate_entry_hours(entry, now)
        return RealTimeStatus(
            entry=entry,
            current_time=now,
            current_time_local=format_datetime_mada(now),
            total_hours=entry.total_hours,
            break_hours=entry.break_hours,
            net_hours=entry.net_hours,
            is_working=entry.is_open,
            is_paused=entry.is_paused,
            time_to_eight_hours=max(0.0, (WORKDAY_HOURS - entry.net_hours) * 60),
            overtime_hours=entry.overtime_hours,
            overtime_requested=entry.overtime_requested,
            overtime_approved=entry.overtime_approved,
            overtime_started=entry.overtime_started,
            can_request_overtime=not entry.overtime_requested,
        )

    async def get_monthly_tracking(
        self,
        user_id: str,
        month: Optional[int] = None,
        year: Optional[int] = None,
        at: Optional[datetime] = None,
    ) -> MonthlyTrackingData:
        """Month document, or an unsaved empty one when the user has no record for it."""
        now = self._now(at)
        current_month, current_year = mada_month_key(now)
        month = month or current_month
        year = year or current_year

        tracking = await self._repository.find(user_id, month, year)
        if tracking is None:
            return MonthlyTrackingData(user_id=user_id, month=month, year=year)
        await self._settle_and_commit(tracking, now)
        return tracking

    async def get_tracking_history(
        self, user_id: str, limit: int = 12, at: Optional[datetime] = None
    ) -> List[MonthlyTrackingData]:
        now = self._now(at)
        history = await self._repository.list_for_user(user_id, limit)
        for tracking in history:
            await self._settle_and_commit(tracking, now)
        return history

    async def get_all_users_tracking(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
        at: Optional[datetime] = None,
    ) -> List[MonthlyTrackingData]:
        now = self._now(at)
        current_month, current_year = mada_month_key(now)
        trackings = await self._repository.list_for_month(month or current_month, year or current_year)
        for tracking in trackings:
            await self._settle_and_commit(tracking, now)
        return trackings
