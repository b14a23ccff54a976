"""
Custom validators and types for MongoDB integration with Pydantic.

This module provides custom types and validators for seamless integration
between MongoDB's BSON types and Pydantic models.
"""

from stream11.validators.custom_types import PyObjectId, UtcDatetime, ensure_utc, parse_object_id

__all__ = ["PyObjectId", "UtcDatetime", "ensure_utc", "parse_object_id"]
