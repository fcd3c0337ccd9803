from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from timetracking.core.exceptions import ConstraintViolationError
from timetracking.models.time_tracking import MonthlyTrackingData
from timetracking.services.repository import TrackingRepository
from timetracking.services.time_tracking_service import TimeTrackingService


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryTrackingRepository(TrackingRepository):
    """Stores copies so every read/write behaves like a document round trip."""

    def __init__(self):
        self._docs: Dict[Tuple[str, int, int], MonthlyTrackingData] = {}
        self.saves = 0
        # next N creates lose a race against a competing request
        self.lose_create_races = 0
        # next N creates fail without anything being stored
        self.failing_creates = 0

    async def find(self, user_id: str, month: int, year: int) -> Optional[MonthlyTrackingData]:
        doc = self._docs.get((user_id, month, year))
        return doc.model_copy(deep=True) if doc is not None else None

    async def create(self, user_id: str, month: int, year: int) -> MonthlyTrackingData:
        key = (user_id, month, year)
        if self.failing_creates:
            self.failing_creates -= 1
            raise ConstraintViolationError("duplicate key")
        if self.lose_create_races:
            self.lose_create_races -= 1
            self._docs[key] = MonthlyTrackingData(user_id=user_id, month=month, year=year)
            raise ConstraintViolationError("duplicate key")
        if key in self._docs:
            raise ConstraintViolationError("duplicate key")
        doc = MonthlyTrackingData(user_id=user_id, month=month, year=year)
        self._docs[key] = doc.model_copy(deep=True)
        return doc

    async def save(self, tracking: MonthlyTrackingData) -> None:
        self.saves += 1
        self._docs[(tracking.user_id, tracking.month, tracking.year)] = tracking.model_copy(deep=True)

    async def list_for_user(self, user_id: str, limit: int) -> List[MonthlyTrackingData]:
        docs = [d for (uid, _, _), d in self._docs.items() if uid == user_id]
        docs.sort(key=lambda d: (d.year, d.month), reverse=True)
        return [d.model_copy(deep=True) for d in docs[:limit]]

    async def list_for_month(self, month: int, year: int) -> List[MonthlyTrackingData]:
        return [
            d.model_copy(deep=True)
            for (_, m, y), d in self._docs.items()
            if m == month and y == year
        ]

    def stored(self, user_id: str, month: int, year: int) -> Optional[MonthlyTrackingData]:
        return self._docs.get((user_id, month, year))

    def count(self) -> int:
        return len(self._docs)


@pytest.fixture
def repo():
    return InMemoryTrackingRepository()


@pytest.fixture
def clock():
    return FakeClock(utc(2024, 3, 1, 6, 0))


@pytest.fixture
def service(repo, clock):
    return TimeTrackingService(repo, clock=clock)
