import logging
from datetime import datetime
from typing import Optional, Tuple

from timetracking.core.exceptions import ConstraintViolationError, NotFoundError
from timetracking.core.timezone_utils import mada_date_string, mada_month_key
from timetracking.models.time_tracking import MonthlyTrackingData, TimeEntry
from timetracking.services.repository import TrackingRepository

logger = logging.getLogger(__name__)


class EntryResolver:
    """Maps (user, instant) to the month document and the day entry, in Madagascar time."""

    def __init__(self, repository: TrackingRepository):
        self._repository = repository

    async def find_month(self, user_id: str, at: datetime) -> Optional[MonthlyTrackingData]:
        month, year = mada_month_key(at)
        return await self._repository.find(user_id, month, year)

    async def get_or_create_month(self, user_id: str, at: datetime) -> MonthlyTrackingData:
        month, year = mada_month_key(at)
        tracking = await self._repository.find(user_id, month, year)
        if tracking is not None:
            return tracking
        try:
            return await self._repository.create(user_id, month, year)
        except ConstraintViolationError:
            # another request created the same month first
            logger.warning("Month %s/%s for user %s created concurrently, re-fetching", month, year, user_id)

        tracking = await self._repository.find(user_id, month, year)
        if tracking is not None:
            return tracking
        return await self._repository.create(user_id, month, year)

    async def resolve(self, user_id: str, at: datetime) -> Tuple[MonthlyTrackingData, TimeEntry]:
        """Find-or-create the month, then find-or-append the day's entry."""
        tracking = await self.get_or_create_month(user_id, at)
        entry = tracking.get_or_add_entry(mada_date_string(at))
        return tracking, entry

    async def resolve_existing(self, user_id: str, at: datetime) -> Tuple[MonthlyTrackingData, TimeEntry]:
        """Like resolve, but NotFoundError instead of creating anything."""
        tracking = await self.find_month(user_id, at)
        day = mada_date_string(at)
        if tracking is None:
            raise NotFoundError(f"No time tracking found for {day}")
        entry = tracking.find_entry(day)
        if entry is None or entry.check_in is None:
            raise NotFoundError(f"No check-in found for {day}")
        return tracking, entry
