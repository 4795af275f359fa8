from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Sequence

from domain.errors import ApplicationConflictError, ApplicationNotFoundError
from domain.models import Application, ApplicationStatus, ApplicationStatusView, ApplyOutcome
from domain.ports import ApplicationRepositoryPort
from domain.services import ApplyStateMachine, SessionRegistry


@dataclass(frozen=True)
class ApplicationSummaryView:
    application_id: str
    user_id: str
    job_id: str
    status: ApplicationStatus
    filled_fields: Sequence[str]
    errors: Sequence[str]
    pending_questions: int
    paused_at: datetime | None
    applied_at: datetime | None
    created_at: datetime | None


class ApplicationFacade:
    """
    UI-facing facade used by the HTTP API and the CLI.

    Owns the lifecycle of the session registry's reaper so that callers
    only deal with ``startup`` / ``shutdown``. Resumes are serialized per
    application: a second resume while one is running is rejected.
    """

    def __init__(
        self,
        *,
        state_machine: ApplyStateMachine,
        registry: SessionRegistry,
        application_repo: ApplicationRepositoryPort,
    ) -> None:
        self._state_machine = state_machine
        self._registry = registry
        self._application_repo = application_repo
        self._resuming: set[str] = set()

    async def startup(self) -> None:
        self._registry.start_reaper()

    async def shutdown(self) -> None:
        await self._registry.shutdown()

    async def start_apply(self, job_id: str, user_id: str) -> ApplyOutcome:
        return await self._state_machine.start_apply(job_id, user_id)

    async def resume_apply(self, application_id: str, answers: Mapping[str, str]) -> ApplyOutcome:
        if application_id in self._resuming:
            raise ApplicationConflictError(
                application_id,
                "A resume is already in progress for this application",
            )
        self._resuming.add(application_id)
        try:
            return await self._state_machine.resume_apply(application_id, answers)
        finally:
            self._resuming.discard(application_id)

    async def cancel_apply(self, application_id: str) -> ApplicationStatus:
        return await self._state_machine.cancel_apply(application_id)

    def get_status(self, application_id: str) -> ApplicationStatusView:
        return self._state_machine.get_application_status(application_id)

    def list_applications(self, user_id: str | None = None) -> Sequence[ApplicationSummaryView]:
        return [self._summary(a) for a in self._state_machine.list_applications(user_id)]

    def get_application(self, application_id: str) -> ApplicationSummaryView:
        application = self._application_repo.get(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return self._summary(application)

    def active_sessions(self) -> int:
        return self._registry.count()

    @staticmethod
    def _summary(application: Application) -> ApplicationSummaryView:
        return ApplicationSummaryView(
            application_id=application.id,
            user_id=application.user_id,
            job_id=application.job_id,
            status=application.status,
            filled_fields=tuple(application.filled_fields),
            errors=tuple(application.error_log),
            pending_questions=len(application.custom_questions),
            paused_at=application.paused_at,
            applied_at=application.applied_at,
            created_at=application.created_at,
        )
