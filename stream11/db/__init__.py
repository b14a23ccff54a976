"""
Database connection and management module.

Provides async MongoDB connectivity through Motor driver.
"""

from stream11.db.connection import DatabaseConnection
from stream11.db.indexes import ALL_INDEXES, ensure_indexes

__all__ = [
    "ALL_INDEXES",
    "DatabaseConnection",
    "ensure_indexes",
]
