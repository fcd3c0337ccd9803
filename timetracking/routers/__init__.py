# timetracking/routers/__init__.py
from .time_tracking import router as time_tracking_router

__all__ = [
    "time_tracking_router",
]
