"""
Repository layer for data access.

Provides abstraction over MongoDB collections with async operations
using Motor driver. Each repository handles CRUD operations and
queries for its respective domain model.
"""

from stream11.repositories.base import BaseRepository
from stream11.repositories.prediction_repository import PredictionRepository
from stream11.repositories.status_check_repository import StatusCheckRepository
from stream11.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PredictionRepository",
    "StatusCheckRepository",
]
