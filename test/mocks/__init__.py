"""
Reusable fakes and in-memory implementations for tests.
"""

from .fake_application_repository import InMemoryApplicationRepository
from .fake_browser_session import FakeBrowserSession, FakePage, FakeSessionFactory
from .fake_catalog import InMemoryCatalog
from .fake_runtime import (
    FixedClock,
    InMemoryLogger,
    MutableClock,
    SequentialIdGenerator,
)

__all__ = [
    "FakeBrowserSession",
    "FakePage",
    "FakeSessionFactory",
    "InMemoryApplicationRepository",
    "InMemoryCatalog",
    "FixedClock",
    "MutableClock",
    "SequentialIdGenerator",
    "InMemoryLogger",
]
