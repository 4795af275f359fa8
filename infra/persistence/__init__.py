"""SQLite-backed persistence adapters for domain repository ports."""

from .sqlite_application_repository import SQLiteApplicationRepository

__all__ = ["SQLiteApplicationRepository"]
