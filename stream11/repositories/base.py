"""
Base repository pattern implementation for MongoDB with Motor.

Provides the CRUD operations and query patterns shared by the concrete
repositories.
"""

from datetime import datetime
from typing import Any, ClassVar, Generic, TypeVar

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from stream11.models.base import MongoBaseModel, utc_now

# Type variable for generic repository
ModelType = TypeVar("ModelType", bound=MongoBaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Subclasses declare the collection they own and the model its documents
    are validated into.

    Usage:
        class UserRepository(BaseRepository[User]):
            collection_name = "users"
            model_class = User

            async def find_by_twitch_id(self, twitch_id: str) -> User | None:
                return await self.find_one({"twitch_id": twitch_id})
    """

    collection_name: ClassVar[str]
    model_class: ClassVar[type[MongoBaseModel]]

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        """
        Initialize repository with database connection.

        Args:
            database: Motor database instance
        """
        self._database = database
        self._collection: AsyncIOMotorCollection = database[self.collection_name]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        """Get the Motor collection instance."""
        return self._collection

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """Get the Motor database instance."""
        return self._database

    # =========================================================================
    # Create Operations
    # =========================================================================

    async def insert(self, model: ModelType) -> ModelType:
        """
        Insert a model as a new document.

        Args:
            model: Fully built model instance

        Returns:
            The same model, with the id assigned by MongoDB
        """
        document = model.to_mongo()
        result = await self._collection.insert_one(document)
        model.id = result.inserted_id
        return model

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def get_by_id(self, id: str | ObjectId) -> ModelType | None:
        """
        Get a document by its ID.

        Args:
            id: Document ID (string or ObjectId)

        Returns:
            Model instance or None if not found
        """
        object_id = ObjectId(id) if isinstance(id, str) else id
        return await self.find_one({"_id": object_id})

    async def find_one(self, filter: dict[str, Any]) -> ModelType | None:
        """
        Find a single document matching the filter.

        Args:
            filter: MongoDB query filter

        Returns:
            Model instance or None if not found
        """
        document = await self._collection.find_one(filter)
        return self.model_class.from_mongo(document)

    async def find_many(
        self,
        filter: dict[str, Any] | None = None,
        *,
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[ModelType]:
        """
        Find multiple documents matching the filter.

        Args:
            filter: MongoDB query filter (default: all documents)
            skip: Number of documents to skip (for pagination)
            limit: Maximum number of documents to return
            sort: List of (field, direction) tuples for sorting

        Returns:
            List of model instances
        """
        cursor = self._collection.find(filter or {}, sort=sort, skip=skip, limit=limit)
        documents = await cursor.to_list(length=limit)
        return self.model_class.from_mongo_list(documents)

    async def count(self, filter: dict[str, Any] | None = None) -> int:
        """Count documents matching the filter."""
        return await self._collection.count_documents(filter or {})

    # =========================================================================
    # Update Operations
    # =========================================================================

    async def find_one_and_update(
        self,
        filter: dict[str, Any],
        update: dict[str, Any],
        *,
        upsert: bool = False,
        now: datetime | None = None,
    ) -> ModelType | None:
        """
        Atomically update one document and return it after the update.

        The whole update is applied to a single document in one server-side
        operation, so the filter doubles as a guard: when it no longer
        matches, nothing is written and None is returned.

        Args:
            filter: MongoDB query filter
            update: Update operators (e.g., {"$set": {...}, "$inc": {...}})
            upsert: Create the document if the filter matches nothing
            now: Timestamp written to updated_at

        Returns:
            Updated model instance or None if no document matched
        """
        update.setdefault("$set", {})["updated_at"] = now or utc_now()

        result = await self._collection.find_one_and_update(
            filter,
            update,
            upsert=upsert,
            return_document=ReturnDocument.AFTER,
        )
        return self.model_class.from_mongo(result)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(collection='{self.collection_name}')>"
