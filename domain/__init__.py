"""
Domain layer package.

This package contains the apply lifecycle, its models and ports, and is
independent of any specific browser, storage engine or web framework.
"""

from .errors import (  # noqa: F401
    ApplicationConflictError,
    ApplicationNotFoundError,
    ApplyError,
    BrowserAutomationError,
    SessionExpiredError,
)
from .models import (  # noqa: F401
    Address,
    Application,
    ApplicationStatus,
    ApplicationStatusView,
    ApplyOutcome,
    ApplySettings,
    JobPosting,
    PageControl,
    Question,
    QuestionType,
    UserProfile,
)
from .ports import (  # noqa: F401
    ApplicationRepositoryPort,
    BrowserSessionPort,
    ClockPort,
    IdGeneratorPort,
    JobPostingSourcePort,
    LoggerPort,
    ProfileSourcePort,
    SessionFactoryPort,
)

__all__ = [
    # Errors
    "ApplyError",
    "BrowserAutomationError",
    "SessionExpiredError",
    "ApplicationNotFoundError",
    "ApplicationConflictError",
    # Models
    "Address",
    "UserProfile",
    "JobPosting",
    "Application",
    "ApplicationStatus",
    "ApplicationStatusView",
    "ApplyOutcome",
    "ApplySettings",
    "PageControl",
    "Question",
    "QuestionType",
    # Ports
    "ApplicationRepositoryPort",
    "JobPostingSourcePort",
    "ProfileSourcePort",
    "BrowserSessionPort",
    "SessionFactoryPort",
    "ClockPort",
    "IdGeneratorPort",
    "LoggerPort",
]
