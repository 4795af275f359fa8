from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import Any, Protocol, Sequence, runtime_checkable

from domain.models import (
    Application,
    JobPosting,
    PageControl,
    UserProfile,
)


@runtime_checkable
class ApplicationRepositoryPort(Protocol):
    """Store and query application records."""

    @abstractmethod
    def add(self, application: Application) -> None:
        ...

    @abstractmethod
    def update(self, application: Application) -> None:
        ...

    @abstractmethod
    def get(self, application_id: str) -> Application | None:
        ...

    @abstractmethod
    def list_all(self) -> Sequence[Application]:
        ...

    @abstractmethod
    def list_for_user(self, user_id: str) -> Sequence[Application]:
        ...


@runtime_checkable
class JobPostingSourcePort(Protocol):
    """Read-only access to job postings owned by the listing service."""

    @abstractmethod
    def get_job(self, job_id: str) -> JobPosting | None:
        ...


@runtime_checkable
class ProfileSourcePort(Protocol):
    """Read-only access to user profiles owned by the profile service."""

    @abstractmethod
    def get_profile(self, user_id: str) -> UserProfile | None:
        ...


@runtime_checkable
class BrowserSessionPort(Protocol):
    """
    One live browser automation instance.

    Selectors are candidate locator rules (CSS, including ``:has-text()``).
    Implementations raise ``BrowserAutomationError`` (or ``NavigationError``
    for ``goto``) and never leak library-specific exceptions.
    """

    async def goto(self, url: str) -> None:
        ...

    async def wait_for_load(self) -> None:
        ...

    async def is_actionable(self, selector: str) -> bool:
        ...

    async def is_attached(self, selector: str) -> bool:
        ...

    async def click(self, selector: str) -> None:
        ...

    async def type_text(self, selector: str, value: str) -> None:
        ...

    async def set_file(self, selector: str, path: str) -> None:
        ...

    async def choose_option(self, selector: str, answer: str) -> None:
        ...

    async def check_radio(self, selector: str, answer: str) -> None:
        ...

    async def scan_controls(self) -> Sequence[PageControl]:
        ...

    async def current_url(self) -> str:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class SessionFactoryPort(Protocol):
    """Opens a fresh, exclusively-owned browser session."""

    async def open_session(self) -> BrowserSessionPort:
        ...


@runtime_checkable
class ClockPort(Protocol):
    """Time source for deterministic and easily testable code."""

    def now(self) -> datetime:
        ...


@runtime_checkable
class IdGeneratorPort(Protocol):
    def new_application_id(self) -> str:
        ...


@runtime_checkable
class LoggerPort(Protocol):
    """Structured, testable logging abstraction."""

    def info(self, message: str, **fields: Any) -> None:
        ...

    def warning(self, message: str, **fields: Any) -> None:
        ...

    def error(self, message: str, **fields: Any) -> None:
        ...


__all__ = [
    "ApplicationRepositoryPort",
    "JobPostingSourcePort",
    "ProfileSourcePort",
    "BrowserSessionPort",
    "SessionFactoryPort",
    "ClockPort",
    "IdGeneratorPort",
    "LoggerPort",
]
