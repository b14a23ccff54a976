"""Status check repository: an append-only log collection."""

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from stream11.models.status_check import StatusCheck


class StatusCheckRepository:
    """
    Repository for status check records.

    Records use a generated string ``id`` as their public identifier; the
    MongoDB ``_id`` is never exposed.
    """

    collection_name = "status_checks"

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[self.collection_name]

    async def insert(self, check: StatusCheck) -> StatusCheck:
        """Append a record."""
        await self._collection.insert_one(check.model_dump())
        return check

    async def list_all(self, limit: int = 1000) -> list[StatusCheck]:
        """Return records oldest first."""
        cursor = self._collection.find(
            {},
            projection={"_id": 0},
            sort=[("timestamp", 1)],
            limit=limit,
        )
        documents = await cursor.to_list(length=limit)
        return [StatusCheck.model_validate(doc) for doc in documents]
