"""Status check service: records and lists client pings."""

from collections.abc import Callable
from datetime import datetime

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from stream11.models.base import utc_now
from stream11.models.status_check import StatusCheck
from stream11.repositories.status_check_repository import StatusCheckRepository

logger = structlog.get_logger(__name__)


class StatusService:
    """Service layer for the status check log."""

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = StatusCheckRepository(database)
        self.clock = clock

    async def record(self, client_name: str) -> StatusCheck:
        """Append a status check for ``client_name``."""
        check = await self.repository.insert(
            StatusCheck(client_name=client_name, timestamp=self.clock())
        )
        logger.debug("Status check recorded", client_name=client_name, check_id=check.id)
        return check

    async def list_checks(self, limit: int = 1000) -> list[StatusCheck]:
        """All recorded status checks, oldest first."""
        return await self.repository.list_all(limit=limit)
