"""
Auto-checkout policy: force-close entries left open across a day boundary.

Two triggers, checked in this order:

* the Madagascar calendar day has moved past the entry's own day; the entry
  is closed at 23:59:59.999 of its day so the hours stay on the day they
  were earned;
* the Madagascar clock reads hour 0; the entry is closed at ``now``.
"""
import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from timetracking.core.timezone_utils import end_of_mada_day, mada_date_string, to_mada
from timetracking.models.time_tracking import TimeEntry

logger = logging.getLogger(__name__)

REASON_NEW_DAY = "new_day"
REASON_MIDNIGHT = "midnight"


class AutoCheckout(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str
    checkout_at: datetime


def evaluate_auto_checkout(entry: TimeEntry, now: datetime) -> Optional[AutoCheckout]:
    """Return the checkout to apply, or None when the entry may stay open."""
    if not entry.is_open:
        return None

    entry_day = entry.date or mada_date_string(entry.check_in)
    # YYYY-MM-DD strings order chronologically
    if mada_date_string(now) > entry_day:
        return AutoCheckout(reason=REASON_NEW_DAY, checkout_at=end_of_mada_day(entry_day))
    if to_mada(now).hour == 0:
        return AutoCheckout(reason=REASON_MIDNIGHT, checkout_at=now)
    return None


def apply_auto_checkout(entry: TimeEntry, decision: AutoCheckout) -> None:
    """Close open breaks and the entry itself at the decided instant."""
    at = decision.checkout_at
    for br in entry.breaks:
        if br.end is None:
            br.end = max(at, br.start)
            br.duration = (br.end - br.start).total_seconds() / 60
    entry.check_out = at
    entry.is_paused = False
    logger.info("Auto-checkout of %s entry at %s (%s)", entry.date, at.isoformat(), decision.reason)
