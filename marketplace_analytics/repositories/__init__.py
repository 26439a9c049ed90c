"""
Repository Layer

This module provides the read-only record access abstraction the
aggregation engine is built on, plus in-memory and SQLite implementations.
"""

from .base import BookingQuery, ListingQuery, RecordRepository, ReviewQuery, UserQuery
from .memory_repository import InMemoryRecordRepository
from .sqlite_repository import DatabaseConnection, SQLiteRecordRepository

__all__ = [
    "BookingQuery",
    "ListingQuery",
    "RecordRepository",
    "ReviewQuery",
    "UserQuery",
    "InMemoryRecordRepository",
    "DatabaseConnection",
    "SQLiteRecordRepository",
]
