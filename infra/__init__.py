"""Infrastructure adapters – concrete implementations of domain ports."""

from .browser import PlaywrightBrowserSession, PlaywrightSessionFactory
from .catalog import FileSystemCatalog
from .config import FileSystemConfigProvider
from .persistence import SQLiteApplicationRepository
from .runtime import StructuredLogger, SystemClock, UuidIdGenerator

__all__ = [
    "PlaywrightBrowserSession",
    "PlaywrightSessionFactory",
    "FileSystemCatalog",
    "FileSystemConfigProvider",
    "SQLiteApplicationRepository",
    "SystemClock",
    "UuidIdGenerator",
    "StructuredLogger",
]
