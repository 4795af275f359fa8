from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from domain.errors import InvalidTransitionError


@dataclass(frozen=True)
class Address:
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class UserProfile:
    """Identity and contact data used to pre-fill application forms.

    Owned by an external profile service; this package never mutates it.
    """

    id: str
    full_name: str
    email: str
    phone: str | None = None
    address: Address | None = None
    resume_path: str | None = None

    def split_name(self) -> tuple[str, str]:
        parts = self.full_name.split()
        if not parts:
            return "", ""
        return parts[0], " ".join(parts[1:])


@dataclass(frozen=True)
class JobPosting:
    """Read-only reference to the posting being applied to."""

    id: str
    title: str
    url: str
    company: str = ""


class ApplicationStatus(str, Enum):
    """Lifecycle states of one apply attempt."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    SUBMITTED = "submitted"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES

    def can_transition_to(self, target: ApplicationStatus) -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_TERMINAL_STATUSES = frozenset(
    {
        ApplicationStatus.SUBMITTED,
        ApplicationStatus.FAILED,
        ApplicationStatus.CANCELLED,
        ApplicationStatus.TIMEOUT,
    }
)

_ALLOWED_TRANSITIONS: Mapping[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({ApplicationStatus.IN_PROGRESS}),
    ApplicationStatus.IN_PROGRESS: frozenset(
        {ApplicationStatus.PAUSED, ApplicationStatus.SUBMITTED, ApplicationStatus.FAILED}
    ),
    ApplicationStatus.PAUSED: frozenset(
        {
            ApplicationStatus.PAUSED,
            ApplicationStatus.SUBMITTED,
            ApplicationStatus.FAILED,
            ApplicationStatus.CANCELLED,
            ApplicationStatus.TIMEOUT,
        }
    ),
    ApplicationStatus.SUBMITTED: frozenset(),
    ApplicationStatus.FAILED: frozenset(),
    ApplicationStatus.CANCELLED: frozenset(),
    ApplicationStatus.TIMEOUT: frozenset(),
}


class QuestionType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"


@dataclass(frozen=True)
class Question:
    """A screening question that needs a human answer.

    ``id`` is stable for the lifetime of one rendered form page.
    ``selector`` is the locator used to fill the answer back in.
    """

    id: str
    type: QuestionType
    label: str
    required: bool
    selector: str
    options: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "label": self.label,
            "required": self.required,
            "selector": self.selector,
            "options": list(self.options),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Question:
        return cls(
            id=str(data["id"]),
            type=QuestionType(data["type"]),
            label=str(data.get("label", "")),
            required=bool(data.get("required", False)),
            selector=str(data.get("selector", "")),
            options=tuple(data.get("options") or ()),
        )


@dataclass(frozen=True)
class PageControl:
    """Raw description of one form control as scanned from a rendered page.

    The browser adapter produces these; ``QuestionDetector`` decides which
    of them become questions.
    """

    kind: str  # "textarea" | "select" | "radio"
    index: int
    selector: str
    element_id: str = ""
    name: str = ""
    label_text: str = ""
    aria_label: str = ""
    placeholder: str = ""
    group_label: str = ""
    option_label: str = ""
    options: Sequence[str] = field(default_factory=tuple)
    required_attr: bool = False
    aria_required: bool = False
    in_required_container: bool = False
    visible: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PageControl:
        return cls(
            kind=str(data.get("kind", "")),
            index=int(data.get("index", 0)),
            selector=str(data.get("selector", "")),
            element_id=str(data.get("element_id") or ""),
            name=str(data.get("name") or ""),
            label_text=str(data.get("label_text") or ""),
            aria_label=str(data.get("aria_label") or ""),
            placeholder=str(data.get("placeholder") or ""),
            group_label=str(data.get("group_label") or ""),
            option_label=str(data.get("option_label") or ""),
            options=tuple(str(o) for o in data.get("options") or ()),
            required_attr=bool(data.get("required_attr")),
            aria_required=bool(data.get("aria_required")),
            in_required_container=bool(data.get("in_required_container")),
            visible=bool(data.get("visible", True)),
        )


@dataclass(frozen=True)
class Application:
    """
    Persistent record of a single apply attempt.

    Status changes go through ``transition`` so that only edges of the
    lifecycle graph are ever taken.
    """

    id: str
    user_id: str
    job_id: str
    status: ApplicationStatus
    filled_fields: Sequence[str] = field(default_factory=tuple)
    custom_questions: Sequence[Question] = field(default_factory=tuple)
    user_answers: Mapping[str, str] = field(default_factory=dict)
    paused_at: datetime | None = None
    current_url: str | None = None
    error_log: Sequence[str] = field(default_factory=tuple)
    applied_at: datetime | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "filled_fields", tuple(self.filled_fields))
        object.__setattr__(self, "custom_questions", tuple(self.custom_questions))
        object.__setattr__(self, "error_log", tuple(self.error_log))
        object.__setattr__(self, "user_answers", MappingProxyType(dict(self.user_answers)))

    def transition(self, status: ApplicationStatus, **changes: Any) -> Application:
        if not self.status.can_transition_to(status):
            raise InvalidTransitionError(self.status, status)
        if status is not ApplicationStatus.PAUSED:
            changes.setdefault("custom_questions", ())
        return replace(self, status=status, **changes)


@dataclass(frozen=True)
class ApplySettings:
    """Tunables for the apply flow and the session registry (seconds)."""

    session_idle_timeout_seconds: float = 900.0
    reaper_interval_seconds: float = 60.0
    operation_timeout_seconds: float = 300.0
    step_timeout_seconds: float = 10.0
    navigation_timeout_seconds: float = 30.0
    page_settle_seconds: float = 2.0
    max_form_pages: int = 10
    headless: bool = True
    db_path: str = "applications.db"
    host: str = "127.0.0.1"
    port: int = 8080
    max_request_bytes: int = 10 * 1024 * 1024


@dataclass(frozen=True)
class ApplyOutcome:
    """Structured result of a start or resume call."""

    application_id: str
    status: ApplicationStatus
    message: str
    fields_filled: Sequence[str] = field(default_factory=tuple)
    errors: Sequence[str] = field(default_factory=tuple)
    questions: Sequence[Question] = field(default_factory=tuple)


@dataclass(frozen=True)
class ApplicationStatusView:
    status: ApplicationStatus
    paused_at: datetime | None
    has_active_session: bool
    questions: Sequence[Question] = field(default_factory=tuple)


__all__ = [
    "Address",
    "UserProfile",
    "JobPosting",
    "ApplicationStatus",
    "QuestionType",
    "Question",
    "PageControl",
    "Application",
    "ApplySettings",
    "ApplyOutcome",
    "ApplicationStatusView",
]
