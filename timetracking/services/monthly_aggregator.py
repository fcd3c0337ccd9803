from datetime import datetime

from timetracking.models.time_tracking import MonthlyTrackingData
from timetracking.services.repository import TrackingRepository


def aggregate_month(tracking: MonthlyTrackingData) -> float:
    # TODO: confirm with payroll whether overtime_hours belongs in the month total
    tracking.total_hours_month = sum(e.net_hours for e in tracking.entries)
    return tracking.total_hours_month


async def commit_month(repository: TrackingRepository, tracking: MonthlyTrackingData, now: datetime) -> None:
    """Recompute the month total and write the whole document back."""
    aggregate_month(tracking)
    tracking.updated_at = now
    await repository.save(tracking)
