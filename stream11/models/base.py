"""
Base model classes for MongoDB document integration with Pydantic v2.

Provides foundational classes that handle:
- ObjectId serialization/deserialization
- Common fields (id, created_at, updated_at)
- Document conversion utilities
"""

from datetime import datetime, timezone
from typing import Any, Self

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from stream11.validators.custom_types import PyObjectId, UtcDatetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


class MongoBaseModel(BaseModel):
    """
    Base model for all MongoDB documents.

    Provides:
    - Automatic ObjectId handling with alias '_id'
    - JSON serialization with string IDs
    - Conversion to/from MongoDB documents

    Usage:
        class User(MongoBaseModel):
            twitch_id: str
            username: str
    """

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values for serialization
        use_enum_values=True,
        # Validate on assignment
        validate_assignment=True,
        # Allow arbitrary types (for ObjectId)
        arbitrary_types_allowed=True,
        # Strip whitespace from strings
        str_strip_whitespace=True,
    )

    # MongoDB document ID
    id: PyObjectId = Field(
        default_factory=ObjectId,
        alias="_id",
        description="MongoDB document ID",
    )

    @classmethod
    def from_mongo(cls, document: dict[str, Any] | None) -> Self | None:
        """
        Create model instance from MongoDB document.

        Args:
            document: Raw MongoDB document dict

        Returns:
            Model instance or None if document is None
        """
        if document is None:
            return None
        return cls.model_validate(document)

    @classmethod
    def from_mongo_list(cls, documents: list[dict[str, Any]]) -> list[Self]:
        """Create list of model instances from MongoDB documents."""
        return [cls.model_validate(doc) for doc in documents]

    def to_mongo(self, exclude_none: bool = False) -> dict[str, Any]:
        """
        Convert model to MongoDB document format.

        ObjectIds and datetimes are kept as native BSON types and the id is
        written under '_id'. Computed fields are derived on load and are not
        stored.
        """
        return self.model_dump(
            exclude_none=exclude_none,
            exclude=set(type(self).model_computed_fields),
            by_alias=True,
        )

    def to_json_dict(
        self,
        exclude_none: bool = False,
        exclude: set[str] | None = None,
    ) -> dict[str, Any]:
        """
        Convert model to JSON-serializable dictionary.

        ObjectIds are converted to strings for JSON compatibility.

        Args:
            exclude_none: Whether to exclude None values
            exclude: Field names to leave out of the result

        Returns:
            JSON-serializable dictionary
        """
        return self.model_dump(
            exclude_none=exclude_none,
            exclude=exclude,
            by_alias=False,
            mode="json",
        )


class TimestampedModel(MongoBaseModel):
    """
    Base model with timestamp tracking.

    Adds:
    - created_at: Set on document creation
    - updated_at: Refreshed by repositories on every write
    """

    created_at: UtcDatetime = Field(
        default_factory=utc_now,
        description="Document creation timestamp (UTC)",
    )
    updated_at: UtcDatetime = Field(
        default_factory=utc_now,
        description="Last update timestamp (UTC)",
    )


class EmbeddedModel(BaseModel):
    """
    Base model for embedded documents (subdocuments).

    Does not include _id field - used for nested objects within documents.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
    )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert embedded model to dictionary."""
        return self.model_dump(exclude_none=exclude_none)
