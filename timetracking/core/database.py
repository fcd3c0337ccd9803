import logging

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from timetracking.core.config import settings
from timetracking.models.users import User
from timetracking.models.time_tracking import MonthlyTracking

logger = logging.getLogger(__name__)


async def init_db():
    client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    db = client.get_default_database()

    # init_beanie also creates the unique (user_id, month, year) index
    await init_beanie(database=db, document_models=[User, MonthlyTracking])
    logger.info("Database initialized successfully")
