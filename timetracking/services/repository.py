from typing import List, Optional

from pymongo.errors import DuplicateKeyError

from timetracking.core.exceptions import ConstraintViolationError
from timetracking.models.time_tracking import MonthlyTracking, MonthlyTrackingData


class TrackingRepository:
    """Storage for month documents. Every write replaces the whole document."""

    async def find(self, user_id: str, month: int, year: int) -> Optional[MonthlyTrackingData]:
        raise NotImplementedError

    async def create(self, user_id: str, month: int, year: int) -> MonthlyTrackingData:
        """Insert an empty month; raises ConstraintViolationError if the key exists."""
        raise NotImplementedError

    async def save(self, tracking: MonthlyTrackingData) -> None:
        raise NotImplementedError

    async def list_for_user(self, user_id: str, limit: int) -> List[MonthlyTrackingData]:
        raise NotImplementedError

    async def list_for_month(self, month: int, year: int) -> List[MonthlyTrackingData]:
        raise NotImplementedError


class BeanieTrackingRepository(TrackingRepository):
    async def find(self, user_id: str, month: int, year: int) -> Optional[MonthlyTracking]:
        return await MonthlyTracking.find_one(
            MonthlyTracking.user_id == user_id,
            MonthlyTracking.month == month,
            MonthlyTracking.year == year,
        )

    async def create(self, user_id: str, month: int, year: int) -> MonthlyTracking:
        tracking = MonthlyTracking(user_id=user_id, month=month, year=year, entries=[])
        try:
            await tracking.insert()
        except DuplicateKeyError as exc:
            raise ConstraintViolationError(
                f"Month tracking {month}/{year} already exists for user {user_id}"
            ) from exc
        return tracking

    async def save(self, tracking: MonthlyTracking) -> None:
        await tracking.save()

    async def list_for_user(self, user_id: str, limit: int) -> List[MonthlyTracking]:
        return await (
            MonthlyTracking.find(MonthlyTracking.user_id == user_id)
            .sort(-MonthlyTracking.year, -MonthlyTracking.month)
            .limit(limit)
            .to_list()
        )

    async def list_for_month(self, month: int, year: int) -> List[MonthlyTracking]:
        return await MonthlyTracking.find(
            MonthlyTracking.month == month,
            MonthlyTracking.year == year,
        ).to_list()
