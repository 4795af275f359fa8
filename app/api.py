"""FastAPI surface over ``ApplicationFacade``."""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.facade import ApplicationFacade, ApplicationSummaryView
from app.middleware import install_http_middleware
from domain.errors import (
    ApplicationConflictError,
    ApplicationNotFoundError,
    ApplyError,
    JobNotFoundError,
    ProfileNotFoundError,
    SessionExpiredError,
)
from domain.models import ApplyOutcome, ApplySettings, Question
from domain.ports import LoggerPort

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

_STATUS_BY_ERROR: tuple[tuple[type[ApplyError], int], ...] = (
    (ApplicationNotFoundError, 404),
    (JobNotFoundError, 404),
    (ProfileNotFoundError, 404),
    (ApplicationConflictError, 409),
    (SessionExpiredError, 410),
)


class ApplyRequest(BaseModel):
    job_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class ResumeRequest(BaseModel):
    answers: dict[str, str] = Field(default_factory=dict)


class QuestionModel(BaseModel):
    id: str
    type: str
    label: str
    required: bool
    options: list[str] = Field(default_factory=list)


class ApplyResponse(BaseModel):
    application_id: str
    status: str
    message: str
    fields_filled: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    questions: Optional[list[QuestionModel]] = None


class CancelResponse(BaseModel):
    status: str
    message: str


class StatusResponse(BaseModel):
    status: str
    paused_at: Optional[datetime] = None
    has_active_session: bool
    questions: list[QuestionModel] = Field(default_factory=list)


class ApplicationSummary(BaseModel):
    application_id: str
    user_id: str
    job_id: str
    status: str
    filled_fields: list[str]
    errors: list[str]
    pending_questions: int
    paused_at: Optional[datetime] = None
    applied_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class HealthResponse(BaseModel):
    status: str
    active_sessions: int


def create_app(
    facade: ApplicationFacade,
    logger: LoggerPort,
    *,
    max_request_bytes: int = ApplySettings.max_request_bytes,
) -> FastAPI:
    """Build the HTTP app; the registry reaper runs for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await facade.startup()
        logger.info("api_started")
        try:
            yield
        finally:
            await facade.shutdown()
            logger.info("api_stopped")

    app = FastAPI(title="Job Apply Service", lifespan=lifespan)
    install_http_middleware(app, logger, max_request_bytes=max_request_bytes)

    @app.exception_handler(ApplyError)
    async def _apply_error_handler(request: Request, exc: ApplyError) -> JSONResponse:
        status_code = _status_for(exc)
        logger.warning(
            "request_rejected",
            path=request.url.path,
            status_code=status_code,
            error=str(exc),
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", active_sessions=facade.active_sessions())

    @app.post("/api/v1/apply", response_model=ApplyResponse, response_model_exclude_none=True)
    async def start_apply(body: ApplyRequest) -> ApplyResponse:
        outcome = await facade.start_apply(body.job_id, body.user_id)
        return _apply_response(outcome)

    @app.post(
        "/api/v1/apply/{application_id}/resume",
        response_model=ApplyResponse,
        response_model_exclude_none=True,
    )
    async def resume_apply(application_id: str, body: ResumeRequest) -> ApplyResponse:
        _require_uuid(application_id)
        outcome = await facade.resume_apply(application_id, body.answers)
        return _apply_response(outcome)

    @app.delete("/api/v1/apply/{application_id}", response_model=CancelResponse)
    async def cancel_apply(application_id: str) -> CancelResponse:
        _require_uuid(application_id)
        status = await facade.cancel_apply(application_id)
        return CancelResponse(status=status.value, message="Application cancelled")

    @app.get("/api/v1/apply/{application_id}/status", response_model=StatusResponse)
    async def application_status(application_id: str) -> StatusResponse:
        _require_uuid(application_id)
        view = facade.get_status(application_id)
        return StatusResponse(
            status=view.status.value,
            paused_at=view.paused_at,
            has_active_session=view.has_active_session,
            questions=[_question_model(q) for q in view.questions],
        )

    @app.get("/api/v1/applications", response_model=list[ApplicationSummary])
    async def list_applications(user_id: Optional[str] = None) -> list[ApplicationSummary]:
        return [_summary_model(item) for item in facade.list_applications(user_id)]

    return app


def _status_for(exc: ApplyError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def _require_uuid(application_id: str) -> None:
    if not _UUID_PATTERN.match(application_id):
        raise HTTPException(status_code=400, detail="Invalid application ID format")


def _question_model(question: Question) -> QuestionModel:
    return QuestionModel(
        id=question.id,
        type=question.type.value,
        label=question.label,
        required=question.required,
        options=list(question.options),
    )


def _apply_response(outcome: ApplyOutcome) -> ApplyResponse:
    return ApplyResponse(
        application_id=outcome.application_id,
        status=outcome.status.value,
        message=outcome.message,
        fields_filled=list(outcome.fields_filled),
        errors=list(outcome.errors),
        questions=[_question_model(q) for q in outcome.questions] if outcome.questions else None,
    )


def _summary_model(view: ApplicationSummaryView) -> ApplicationSummary:
    return ApplicationSummary(
        application_id=view.application_id,
        user_id=view.user_id,
        job_id=view.job_id,
        status=view.status.value,
        filled_fields=list(view.filled_fields),
        errors=list(view.errors),
        pending_questions=view.pending_questions,
        paused_at=view.paused_at,
        applied_at=view.applied_at,
        created_at=view.created_at,
    )
