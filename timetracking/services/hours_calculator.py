"""
Hours calculator for day entries.

``calculate_entry_hours`` is the only writer of the derived fields
(total/break/net/overtime hours and status). The break and continue helpers
mutate raw timestamps and then hand the entry back to it.
"""
from datetime import datetime
from typing import Optional

from timetracking.core.exceptions import InvalidStateError
from timetracking.models.time_tracking import Break, TimeEntry
from timetracking.services.auto_checkout import AutoCheckout, apply_auto_checkout, evaluate_auto_checkout

WORKDAY_HOURS = 8.0
HALF_DAY_HOURS = 4.0


def _hours_between(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds() / 3600)


def _minutes_between(start: datetime, end: datetime) -> float:
    return max(0.0, (end - start).total_seconds() / 60)


def _measure(entry: TimeEntry, now: datetime) -> None:
    end_time = entry.check_out or now
    entry.total_hours = _hours_between(entry.check_in, end_time)
    entry.break_hours = sum(_hours_between(b.start, b.end or now) for b in entry.breaks)


def calculate_entry_hours(entry: TimeEntry, now: datetime) -> Optional[AutoCheckout]:
    """
    Recompute the derived fields of ``entry`` as of ``now``.

    Runs the auto-checkout policy on open entries and returns the checkout it
    applied, if any. Never raises on a structurally valid entry.
    """
    if entry.check_in is None:
        entry.total_hours = 0.0
        entry.break_hours = 0.0
        entry.net_hours = 0.0
        entry.overtime_hours = 0.0
        return None

    _measure(entry, now)

    decision = None
    if entry.check_out is None:
        decision = evaluate_auto_checkout(entry, now)
        if decision is not None:
            apply_auto_checkout(entry, decision)
            _measure(entry, now)

    raw_net = max(0.0, entry.total_hours - entry.break_hours)
    if entry.overtime_started:
        entry.net_hours = WORKDAY_HOURS
        entry.overtime_hours = max(0.0, raw_net - WORKDAY_HOURS)
    else:
        entry.net_hours = min(WORKDAY_HOURS, raw_net)
        entry.overtime_hours = 0.0

    if entry.check_out is None:
        entry.status = "in_progress"
    elif entry.net_hours + entry.overtime_hours >= WORKDAY_HOURS:
        entry.status = "completed"
    elif entry.net_hours >= HALF_DAY_HOURS:
        entry.status = "partial"
    else:
        entry.status = "present"

    return decision


def has_reached_eight_hours(entry: TimeEntry) -> bool:
    return entry.net_hours + entry.overtime_hours >= WORKDAY_HOURS


def start_break(entry: TimeEntry, now: datetime) -> None:
    if not entry.is_open:
        raise InvalidStateError("No open check-in to pause")
    if entry.current_break is not None:
        raise InvalidStateError("A break is already in progress")
    entry.breaks.append(Break(start=now))
    entry.is_paused = True


def end_break(entry: TimeEntry, now: datetime) -> None:
    current = entry.current_break
    if current is None:
        raise InvalidStateError("No break in progress to resume from")
    current.end = max(now, current.start)
    current.duration = _minutes_between(current.start, current.end)
    entry.is_paused = False
    entry.last_resume_time = now


def reopen_entry(entry: TimeEntry, now: datetime) -> None:
    """
    Continue working after a checkout.

    The time away between the old checkout and ``now`` is kept as a break so
    it does not count toward the day's hours.
    """
    if entry.check_in is None or entry.check_out is None:
        raise InvalidStateError("Only a checked-out entry can be continued")
    gap = Break(start=entry.check_out, end=max(now, entry.check_out))
    gap.duration = _minutes_between(gap.start, gap.end)
    entry.breaks.append(gap)
    entry.check_out = None
    entry.is_paused = False


def close_entry(entry: TimeEntry, now: datetime) -> None:
    """Explicit checkout; a running break ends at the checkout instant."""
    if not entry.is_open:
        raise InvalidStateError("Entry is already checked out")
    checkout_at = max(now, entry.check_in)
    current = entry.current_break
    if current is not None:
        current.end = max(checkout_at, current.start)
        current.duration = _minutes_between(current.start, current.end)
    entry.check_out = checkout_at
    entry.is_paused = False
