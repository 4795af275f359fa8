"""Error taxonomy for the apply flow.

Automation failures are turned into human-readable strings inside the
apply flow; only request-level rejections (unknown ids, wrong state,
expired session) are raised to callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.models import ApplicationStatus


class ApplyError(Exception):
    """Base class for every error raised by this package."""


class BrowserAutomationError(ApplyError):
    """A browser primitive failed; wraps the underlying library error."""


class NavigationError(BrowserAutomationError):
    """The job page could not be reached."""


class ControlNotFoundError(ApplyError):
    """No candidate locator matched a required button."""

    def __init__(self, control: str) -> None:
        super().__init__(f"Could not find {control} button")
        self.control = control


class FieldNotFoundError(ApplyError):
    """A profile attribute has no matching control on the page."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Could not find field: {field_name}")
        self.field_name = field_name


class MissingRequiredAnswerError(ApplyError):
    def __init__(self, label: str) -> None:
        super().__init__(f"Missing required answer for: {label}")
        self.label = label


class SessionExpiredError(ApplyError):
    """The paused browser session is gone; the application cannot resume."""

    def __init__(self, application_id: str) -> None:
        super().__init__("Browser session expired. Please start a new application.")
        self.application_id = application_id


class InvalidTransitionError(ApplyError):
    def __init__(self, current: ApplicationStatus, target: ApplicationStatus) -> None:
        super().__init__(
            f"Invalid status transition: {current.value} -> {target.value}"
        )
        self.current = current
        self.target = target


class ApplicationNotFoundError(ApplyError):
    def __init__(self, application_id: str) -> None:
        super().__init__(f"Application not found: {application_id}")
        self.application_id = application_id


class JobNotFoundError(ApplyError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class ProfileNotFoundError(ApplyError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User profile not found: {user_id}")
        self.user_id = user_id


class ApplicationConflictError(ApplyError):
    """The requested operation does not fit the application's current status."""

    def __init__(self, application_id: str, message: str) -> None:
        super().__init__(message)
        self.application_id = application_id


__all__ = [
    "ApplyError",
    "BrowserAutomationError",
    "NavigationError",
    "ControlNotFoundError",
    "FieldNotFoundError",
    "MissingRequiredAnswerError",
    "SessionExpiredError",
    "InvalidTransitionError",
    "ApplicationNotFoundError",
    "JobNotFoundError",
    "ProfileNotFoundError",
    "ApplicationConflictError",
]
