"""
Custom Pydantic types and validators for MongoDB integration.

Provides the PyObjectId type and a timezone-aware datetime type for
documents read back from MongoDB, which stores datetimes as naive UTC.
"""

from datetime import datetime, timezone
from typing import Annotated, Any

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import AfterValidator, GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import CoreSchema, PydanticCustomError, core_schema


class PyObjectId(ObjectId):
    """
    Custom ObjectId type for Pydantic v2 integration.

    Accepts ObjectId instances or valid hex strings. Python-mode dumps keep
    the ObjectId (so documents round-trip into MongoDB unchanged) while JSON
    dumps render it as a string.

    Usage:
        class MyModel(BaseModel):
            id: PyObjectId = Field(default_factory=ObjectId, alias="_id")
    """

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        _source_type: Any,
        _handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        """Define how Pydantic should validate this type."""
        return core_schema.union_schema(
            [
                core_schema.is_instance_schema(ObjectId),
                core_schema.no_info_plain_validator_function(cls.validate),
            ],
            serialization=core_schema.plain_serializer_function_ser_schema(
                cls.serialize,
                info_arg=False,
                when_used="json",
            ),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls,
        _core_schema: CoreSchema,
        handler: GetJsonSchemaHandler,
    ) -> JsonSchemaValue:
        """Define JSON schema representation."""
        return {
            "type": "string",
            "pattern": "^[0-9a-fA-F]{24}$",
            "description": "MongoDB ObjectId as 24-character hex string",
            "example": "507f1f77bcf86cd799439011",
        }

    @classmethod
    def validate(cls, value: Any) -> ObjectId:
        """Validate and convert value to ObjectId."""
        if isinstance(value, ObjectId):
            return value

        if isinstance(value, str):
            if not value:
                raise PydanticCustomError(
                    "objectid_empty",
                    "ObjectId cannot be empty string",
                )
            try:
                return ObjectId(value)
            except InvalidId as e:
                raise PydanticCustomError(
                    "objectid_invalid",
                    "Invalid ObjectId format: {value}",
                    {"value": value},
                ) from e

        raise PydanticCustomError(
            "objectid_type",
            "ObjectId must be ObjectId instance or 24-character hex string, got {type}",
            {"type": type(value).__name__},
        )

    @classmethod
    def serialize(cls, value: ObjectId) -> str:
        """Serialize ObjectId to string."""
        return str(value)


def parse_object_id(value: str | ObjectId) -> ObjectId | None:
    """
    Convert a path parameter to an ObjectId.

    Returns None for malformed ids so callers can report "not found"
    rather than a validation error.
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# MongoDB returns naive datetimes unless the client is tz-aware
UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
