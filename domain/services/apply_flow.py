"""Apply state machine: start, pause on custom questions, resume, cancel.

Lifecycle::

    pending -> in_progress -> paused | submitted | failed
    paused  -> paused | submitted | failed | cancelled | timeout

A run that pauses hands its browser session to the ``SessionRegistry``;
every other exit closes the session before returning. Automation failures
never escape as exceptions: they end up in ``errors`` / ``error_log`` and
the returned ``ApplyOutcome``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Sequence

from domain.errors import (
    ApplicationConflictError,
    ApplicationNotFoundError,
    BrowserAutomationError,
    ControlNotFoundError,
    FieldNotFoundError,
    JobNotFoundError,
    MissingRequiredAnswerError,
    NavigationError,
    ProfileNotFoundError,
    SessionExpiredError,
)
from domain.models import (
    Application,
    ApplicationStatus,
    ApplicationStatusView,
    ApplyOutcome,
    ApplySettings,
    JobPosting,
    Question,
    QuestionType,
    UserProfile,
)
from domain.ports import (
    ApplicationRepositoryPort,
    BrowserSessionPort,
    ClockPort,
    IdGeneratorPort,
    JobPostingSourcePort,
    LoggerPort,
    ProfileSourcePort,
    SessionFactoryPort,
)
from domain.services.filler import act_on_first_match, find_first_match
from domain.services.locators import (
    APPLY_BUTTON_CANDIDATES,
    CITY_CANDIDATES,
    CONTINUE_BUTTON_CANDIDATES,
    EMAIL_CANDIDATES,
    FIRST_NAME_CANDIDATES,
    LAST_NAME_CANDIDATES,
    PHONE_CANDIDATES,
    RESUME_UPLOAD_CANDIDATES,
    SUBMIT_BUTTON_CANDIDATES,
)
from domain.services.question_detector import QuestionDetector
from domain.services.session_registry import SessionRegistry

MSG_SUBMITTED = "Application submitted successfully"
MSG_FAILED = "Application failed"
MSG_FILL_ERRORS = "Some fields could not be filled"
MSG_MORE_QUESTIONS = "More questions found on next page"


@dataclass
class _Run:
    """Mutable bookkeeping for one start or resume call."""

    application: Application
    fields_filled: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _Step:
    status: ApplicationStatus
    questions: Sequence[Question] = ()
    message: str = ""
    current_url: str | None = None


class ApplyStateMachine:
    """Orchestrates one application from first page load to submit."""

    def __init__(
        self,
        *,
        application_repo: ApplicationRepositoryPort,
        job_source: JobPostingSourcePort,
        profile_source: ProfileSourcePort,
        session_factory: SessionFactoryPort,
        registry: SessionRegistry,
        clock: ClockPort,
        id_generator: IdGeneratorPort,
        logger: LoggerPort,
        settings: ApplySettings | None = None,
        detector: QuestionDetector | None = None,
    ) -> None:
        self._repo = application_repo
        self._job_source = job_source
        self._profile_source = profile_source
        self._session_factory = session_factory
        self._registry = registry
        self._clock = clock
        self._id_generator = id_generator
        self._logger = logger
        self._settings = settings or ApplySettings()
        self._detector = detector or QuestionDetector()

    # -- start --------------------------------------------------------------

    async def start_apply(self, job_id: str, user_id: str) -> ApplyOutcome:
        job = self._job_source.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        profile = self._profile_source.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        pending = Application(
            id=self._id_generator.new_application_id(),
            user_id=user_id,
            job_id=job_id,
            status=ApplicationStatus.PENDING,
            created_at=self._clock.now(),
        )
        run = _Run(application=pending.transition(ApplicationStatus.IN_PROGRESS))
        self._repo.add(run.application)
        app_id = run.application.id
        self._logger.info("apply_started", application_id=app_id, job_id=job_id, job_url=job.url)

        try:
            session = await asyncio.wait_for(
                self._session_factory.open_session(),
                timeout=self._settings.navigation_timeout_seconds,
            )
        except (BrowserAutomationError, asyncio.TimeoutError) as exc:
            run.errors.append(f"Could not start browser session: {_describe(exc)}")
            return self._finish(run, ApplicationStatus.FAILED)

        handed_over = False
        try:
            try:
                step = await asyncio.wait_for(
                    self._run_start(run, session, job, profile),
                    timeout=self._settings.operation_timeout_seconds,
                )
            except asyncio.TimeoutError:
                run.errors.append(self._timeout_message())
                step = _Step(ApplicationStatus.FAILED)
            except Exception as exc:
                self._logger.error("apply_run_failed", application_id=app_id, error=str(exc))
                run.errors.append(str(exc) or type(exc).__name__)
                step = _Step(ApplicationStatus.FAILED)

            if step.status is ApplicationStatus.PAUSED:
                outcome = await self._pause(run, session, step)
                handed_over = True
                return outcome
            return self._finish(run, step.status)
        finally:
            if not handed_over:
                await self._release(app_id, session)

    async def _run_start(
        self,
        run: _Run,
        session: BrowserSessionPort,
        job: JobPosting,
        profile: UserProfile,
    ) -> _Step:
        app_id = run.application.id
        try:
            await asyncio.wait_for(
                session.goto(job.url),
                timeout=self._settings.navigation_timeout_seconds,
            )
        except (NavigationError, asyncio.TimeoutError) as exc:
            message = f"Navigation failed: {_describe(exc)}"
            self._logger.error("navigation_failed", application_id=app_id, job_url=job.url, error=message)
            run.errors.append(message)
            return _Step(ApplicationStatus.FAILED)
        await self._settle(session)

        applied = await act_on_first_match(
            APPLY_BUTTON_CANDIDATES,
            session.is_actionable,
            session.click,
            step_timeout=self._settings.step_timeout_seconds,
            logger=self._logger,
        )
        if not applied.ok:
            self._logger.warning("apply_button_not_found", application_id=app_id)
            run.errors.append(str(ControlNotFoundError("Apply")))
            return _Step(ApplicationStatus.FAILED)
        self._logger.info("apply_button_clicked", application_id=app_id, selector=applied.matched)
        await self._settle(session)

        await self._fill_profile(run, session, profile)

        questions = await self._detect(run, session)
        if questions:
            return _Step(
                ApplicationStatus.PAUSED,
                questions=questions,
                message=f"Application paused - {len(questions)} custom questions need answers",
                current_url=await self._current_url(session),
            )
        return await self._submit(run, session)

    async def _fill_profile(
        self,
        run: _Run,
        session: BrowserSessionPort,
        profile: UserProfile,
    ) -> None:
        first_name, last_name = profile.split_name()
        city = profile.address.city if profile.address else ""
        text_fields: list[tuple[str, str | None, Sequence[str]]] = [
            ("firstName", first_name, FIRST_NAME_CANDIDATES),
            ("lastName", last_name, LAST_NAME_CANDIDATES),
            ("email", profile.email, EMAIL_CANDIDATES),
            ("phone", profile.phone, PHONE_CANDIDATES),
            ("city", city, CITY_CANDIDATES),
        ]
        for name, value, candidates in text_fields:
            if not value:
                continue
            await self._fill_one(
                run,
                name,
                candidates,
                session.is_actionable,
                _bind(session.type_text, value),
            )

        if profile.resume_path:
            # File inputs are usually hidden behind a styled button.
            await self._fill_one(
                run,
                "resume",
                RESUME_UPLOAD_CANDIDATES,
                session.is_attached,
                _bind(session.set_file, profile.resume_path),
            )

    async def _fill_one(
        self,
        run: _Run,
        name: str,
        candidates: Sequence[str],
        probe: Callable[[str], Awaitable[bool]],
        action: Callable[[str], Awaitable[None]],
    ) -> None:
        result = await act_on_first_match(
            candidates,
            probe,
            action,
            step_timeout=self._settings.step_timeout_seconds,
            logger=self._logger,
        )
        if result.ok:
            run.fields_filled.append(name)
            self._logger.info("field_filled", application_id=run.application.id, field=name, selector=result.matched)
        else:
            self._logger.info(
                "field_skipped",
                application_id=run.application.id,
                reason=str(FieldNotFoundError(name)),
            )

    async def _pause(self, run: _Run, session: BrowserSessionPort, step: _Step) -> ApplyOutcome:
        paused = run.application.transition(
            ApplicationStatus.PAUSED,
            filled_fields=(*run.application.filled_fields, *run.fields_filled),
            custom_questions=tuple(step.questions),
            paused_at=self._clock.now(),
            current_url=step.current_url,
            error_log=(*run.application.error_log, *run.errors),
        )
        self._repo.update(paused)
        await self._registry.store(paused.id, session)
        self._logger.info("apply_paused", application_id=paused.id, questions=len(step.questions))
        return ApplyOutcome(
            application_id=paused.id,
            status=ApplicationStatus.PAUSED,
            message=step.message,
            fields_filled=tuple(run.fields_filled),
            errors=tuple(run.errors),
            questions=tuple(step.questions),
        )

    # -- resume -------------------------------------------------------------

    async def resume_apply(
        self,
        application_id: str,
        answers: Mapping[str, str],
    ) -> ApplyOutcome:
        application = self._require(application_id)
        if application.status is ApplicationStatus.TIMEOUT:
            raise SessionExpiredError(application_id)
        if application.status is not ApplicationStatus.PAUSED:
            raise ApplicationConflictError(
                application_id,
                f"Application is not paused (current status: {application.status.value})",
            )

        session = self._registry.get(application_id)
        if session is None:
            self._logger.warning("session_expired", application_id=application_id)
            self._commit(application.transition(ApplicationStatus.TIMEOUT))
            raise SessionExpiredError(application_id)

        raw_answers = {str(k): str(v) for k, v in answers.items()}
        application = application.transition(
            ApplicationStatus.PAUSED,
            user_answers=raw_answers,
        )
        self._repo.update(application)
        self._logger.info("apply_resumed", application_id=application_id, answers=len(raw_answers))

        run = _Run(application=application)
        try:
            step = await asyncio.wait_for(
                self._run_resume(run, session, raw_answers),
                timeout=self._settings.operation_timeout_seconds,
            )
        except asyncio.TimeoutError:
            run.errors.append(self._timeout_message())
            step = _Step(ApplicationStatus.FAILED)
        except Exception as exc:
            self._logger.error("resume_run_failed", application_id=application_id, error=str(exc))
            run.errors.append(str(exc) or type(exc).__name__)
            step = _Step(ApplicationStatus.FAILED)

        if step.status is ApplicationStatus.PAUSED:
            return self._stay_paused(run, step)

        await self._registry.remove(application_id)
        return self._finish(run, step.status)

    async def _run_resume(
        self,
        run: _Run,
        session: BrowserSessionPort,
        answers: Mapping[str, str],
    ) -> _Step:
        questions = tuple(run.application.custom_questions)
        for question in questions:
            answer = answers.get(question.id)
            if answer is None or not answer.strip():
                if question.required:
                    run.errors.append(str(MissingRequiredAnswerError(question.label)))
                continue
            result = await act_on_first_match(
                [question.selector],
                session.is_actionable,
                self._answer_action(session, question, answer),
                step_timeout=self._settings.step_timeout_seconds,
                logger=self._logger,
            )
            if result.ok:
                run.fields_filled.append(question.label)
            else:
                run.errors.append(f"Failed to fill '{question.label}': {result.error}")

        if run.errors:
            return _Step(ApplicationStatus.PAUSED, questions=questions, message=MSG_FILL_ERRORS)

        await self._settle(session)
        for _ in range(self._settings.max_form_pages):
            has_continue = await find_first_match(
                CONTINUE_BUTTON_CANDIDATES,
                session.is_actionable,
                step_timeout=self._settings.step_timeout_seconds,
            )
            if has_continue is None:
                return await self._submit(run, session)

            clicked = await act_on_first_match(
                CONTINUE_BUTTON_CANDIDATES,
                session.is_actionable,
                session.click,
                step_timeout=self._settings.step_timeout_seconds,
                logger=self._logger,
            )
            if not clicked.ok:
                run.errors.append(str(ControlNotFoundError("Continue")))
                return await self._submit(run, session)
            self._logger.info("continue_clicked", application_id=run.application.id, selector=clicked.matched)
            await self._settle(session)

            new_questions = await self._detect(run, session)
            if new_questions:
                return _Step(
                    ApplicationStatus.PAUSED,
                    questions=new_questions,
                    message=MSG_MORE_QUESTIONS,
                    current_url=await self._current_url(session),
                )

        run.errors.append(f"Form still had a continue button after {self._settings.max_form_pages} pages")
        return _Step(ApplicationStatus.FAILED)

    def _stay_paused(self, run: _Run, step: _Step) -> ApplyOutcome:
        current = run.application
        new_page = step.message == MSG_MORE_QUESTIONS
        changes: dict[str, object] = {
            "filled_fields": (*current.filled_fields, *run.fields_filled),
            "custom_questions": tuple(step.questions),
            "error_log": (*current.error_log, *run.errors),
        }
        if new_page:
            changes["paused_at"] = self._clock.now()
            changes["current_url"] = step.current_url or current.current_url
        stored = self._commit(current.transition(ApplicationStatus.PAUSED, **changes))
        if stored.status is not ApplicationStatus.PAUSED:
            return self._outcome(stored, run)
        if new_page:
            self._registry.touch(stored.id)
        self._logger.info(
            "apply_still_paused",
            application_id=stored.id,
            questions=len(step.questions),
            errors=len(run.errors),
        )
        return ApplyOutcome(
            application_id=stored.id,
            status=ApplicationStatus.PAUSED,
            message=step.message,
            fields_filled=tuple(run.fields_filled),
            errors=tuple(run.errors),
            questions=tuple(step.questions),
        )

    @staticmethod
    def _answer_action(
        session: BrowserSessionPort,
        question: Question,
        answer: str,
    ) -> Callable[[str], Awaitable[None]]:
        if question.type is QuestionType.SELECT:
            return _bind(session.choose_option, answer)
        if question.type is QuestionType.RADIO:
            return _bind(session.check_radio, answer)
        return _bind(session.type_text, answer)

    # -- cancel / status / listing -----------------------------------------

    async def cancel_apply(self, application_id: str) -> ApplicationStatus:
        application = self._require(application_id)
        if application.status is not ApplicationStatus.PAUSED:
            raise ApplicationConflictError(
                application_id,
                f"Only paused applications can be cancelled (current status: {application.status.value})",
            )
        cancelled = application.transition(ApplicationStatus.CANCELLED)
        self._repo.update(cancelled)
        await self._registry.remove(application_id)
        self._logger.info("apply_cancelled", application_id=application_id)
        return cancelled.status

    def get_application_status(self, application_id: str) -> ApplicationStatusView:
        application = self._require(application_id)
        paused = application.status is ApplicationStatus.PAUSED
        return ApplicationStatusView(
            status=application.status,
            paused_at=application.paused_at,
            has_active_session=self._registry.get(application_id) is not None,
            questions=tuple(application.custom_questions) if paused else (),
        )

    def list_applications(self, user_id: str | None = None) -> Sequence[Application]:
        if user_id:
            return self._repo.list_for_user(user_id)
        return self._repo.list_all()

    # -- shared steps -------------------------------------------------------

    async def _submit(self, run: _Run, session: BrowserSessionPort) -> _Step:
        submitted = await act_on_first_match(
            SUBMIT_BUTTON_CANDIDATES,
            session.is_actionable,
            session.click,
            step_timeout=self._settings.step_timeout_seconds,
            logger=self._logger,
        )
        if not submitted.ok:
            self._logger.warning("submit_button_not_found", application_id=run.application.id)
            run.errors.append(str(ControlNotFoundError("Submit")))
            return _Step(ApplicationStatus.FAILED)
        self._logger.info("submit_clicked", application_id=run.application.id, selector=submitted.matched)
        await self._settle(session)
        return _Step(ApplicationStatus.SUBMITTED)

    async def _detect(self, run: _Run, session: BrowserSessionPort) -> list[Question]:
        try:
            controls = await asyncio.wait_for(
                session.scan_controls(),
                timeout=self._settings.step_timeout_seconds,
            )
        except (BrowserAutomationError, asyncio.TimeoutError) as exc:
            message = f"Question detection failed: {_describe(exc)}"
            self._logger.warning("question_detection_failed", application_id=run.application.id, error=message)
            run.errors.append(message)
            return []
        questions = self._detector.detect(controls)
        self._logger.info(
            "questions_detected",
            application_id=run.application.id,
            count=len(questions),
            labels=[q.label for q in questions],
        )
        return questions

    async def _settle(self, session: BrowserSessionPort) -> None:
        try:
            await asyncio.wait_for(
                session.wait_for_load(),
                timeout=self._settings.step_timeout_seconds,
            )
        except (BrowserAutomationError, asyncio.TimeoutError) as exc:
            self._logger.warning("page_settle_failed", error=_describe(exc))

    async def _current_url(self, session: BrowserSessionPort) -> str | None:
        try:
            return await asyncio.wait_for(
                session.current_url(),
                timeout=self._settings.step_timeout_seconds,
            )
        except (BrowserAutomationError, asyncio.TimeoutError):
            return None

    def _finish(self, run: _Run, status: ApplicationStatus) -> ApplyOutcome:
        current = run.application
        final = current.transition(
            status,
            filled_fields=(*current.filled_fields, *run.fields_filled),
            error_log=(*current.error_log, *run.errors),
            applied_at=self._clock.now() if status is ApplicationStatus.SUBMITTED else current.applied_at,
        )
        stored = self._commit(final)
        self._logger.info(
            "apply_finished",
            application_id=stored.id,
            status=stored.status.value,
            errors=len(run.errors),
        )
        return self._outcome(stored, run)

    def _outcome(self, stored: Application, run: _Run) -> ApplyOutcome:
        if stored.status is ApplicationStatus.SUBMITTED:
            message = MSG_SUBMITTED
        elif stored.status is ApplicationStatus.FAILED:
            message = MSG_FAILED
        else:
            message = f"Application {stored.status.value}"
        return ApplyOutcome(
            application_id=stored.id,
            status=stored.status,
            message=message,
            fields_filled=tuple(run.fields_filled),
            errors=tuple(run.errors),
        )

    def _commit(self, application: Application) -> Application:
        """Persist ``application`` unless the stored record already reached a terminal state."""
        stored = self._repo.get(application.id)
        if stored is not None and stored.status.is_terminal and stored.status is not application.status:
            self._logger.warning(
                "terminal_status_kept",
                application_id=application.id,
                stored=stored.status.value,
                attempted=application.status.value,
            )
            return stored
        self._repo.update(application)
        return application

    def _require(self, application_id: str) -> Application:
        application = self._repo.get(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    async def _release(self, application_id: str, session: BrowserSessionPort) -> None:
        try:
            await session.close()
        except Exception as exc:
            self._logger.warning("session_close_failed", application_id=application_id, error=str(exc))

    def _timeout_message(self) -> str:
        return f"Application timed out after {self._settings.operation_timeout_seconds:g}s"


def _bind(
    method: Callable[[str, str], Awaitable[None]],
    value: str,
) -> Callable[[str], Awaitable[None]]:
    async def action(selector: str) -> None:
        await method(selector, value)

    return action


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timed out"
    return str(exc) or type(exc).__name__
