"""
MongoDB index definitions for all collections.

Indexes are applied at application startup and by ``stream11 db init``.
"""

from dataclasses import dataclass
from typing import Any

from pymongo import ASCENDING, DESCENDING, IndexModel


@dataclass(frozen=True)
class IndexDefinition:
    """Index definition for a collection."""

    collection: str
    indexes: tuple[IndexModel, ...]


# =============================================================================
# Users Collection Indexes
# =============================================================================

USERS_INDEXES = IndexDefinition(
    collection="users",
    indexes=(
        # One document per Twitch account; also backs the upsert filter
        IndexModel(
            [("twitch_id", ASCENDING)],
            unique=True,
            name="idx_users_twitch_id_unique",
        ),
        # Points leaderboard
        IndexModel(
            [("total_points", DESCENDING)],
            name="idx_users_total_points",
        ),
    ),
)

# =============================================================================
# Predictions Collection Indexes
# =============================================================================

PREDICTIONS_INDEXES = IndexDefinition(
    collection="predictions",
    indexes=(
        # Listing by status, newest first
        IndexModel(
            [("status", ASCENDING), ("created_at", DESCENDING)],
            name="idx_predictions_status_created",
        ),
        # Newest first without a status filter
        IndexModel(
            [("created_at", DESCENDING)],
            name="idx_predictions_created",
        ),
    ),
)

# =============================================================================
# Status Checks Collection Indexes
# =============================================================================

STATUS_CHECKS_INDEXES = IndexDefinition(
    collection="status_checks",
    indexes=(
        IndexModel(
            [("timestamp", ASCENDING)],
            name="idx_status_checks_timestamp",
        ),
    ),
)

# =============================================================================
# All Index Definitions
# =============================================================================

ALL_INDEXES: tuple[IndexDefinition, ...] = (
    USERS_INDEXES,
    PREDICTIONS_INDEXES,
    STATUS_CHECKS_INDEXES,
)


async def ensure_indexes(db: Any) -> dict[str, list[str]]:
    """
    Create all indexes in the database.

    Creating an index that already exists with the same options is a no-op,
    so this is safe to run on every startup.

    Args:
        db: Motor database instance.

    Returns:
        Dictionary mapping collection names to created index names.
    """
    results: dict[str, list[str]] = {}

    for definition in ALL_INDEXES:
        collection = db[definition.collection]
        created_indexes = await collection.create_indexes(list(definition.indexes))
        results[definition.collection] = created_indexes

    return results
