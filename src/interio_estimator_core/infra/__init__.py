"""
Interio Estimator Infrastructure Module
Database connections and repositories
"""

from .db import Database, get_db, get_session, check_database_health
from .repository import GridRepository, OwnershipError, WindowSummaryRepository

__all__ = [
    "Database",
    "get_db",
    "get_session",
    "check_database_health",
    "GridRepository",
    "OwnershipError",
    "WindowSummaryRepository",
]
