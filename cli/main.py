from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace
from datetime import timedelta, timezone
from typing import Sequence

from app.facade import ApplicationFacade, ApplicationSummaryView
from domain.errors import ApplicationNotFoundError
from domain.models import ApplySettings
from domain.services import ApplyStateMachine, QuestionDetector, SessionRegistry
from infra.browser import PlaywrightSessionFactory
from infra.catalog import FileSystemCatalog
from infra.config import FileSystemConfigProvider
from infra.persistence import SQLiteApplicationRepository
from infra.runtime import StructuredLogger, SystemClock, UuidIdGenerator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="job-apply-service")
    parser.add_argument("--config-dir", default="./config", help="Path to config folder")
    parser.add_argument("--db-path", default=None, help="Override db_path from config.json")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_p = sub.add_parser("serve", help="Run the HTTP API")
    serve_p.add_argument("--host", default=None)
    serve_p.add_argument("--port", type=int, default=None)
    serve_p.add_argument("--headless", action="store_true", default=None)
    serve_p.add_argument("--no-headless", dest="headless", action="store_false")

    sub.add_parser("validate-config", help="Check config.json, jobs.json and profiles.json")

    list_p = sub.add_parser("list-applications")
    list_p.add_argument("--user-id", default=None)

    show_p = sub.add_parser("show")
    show_p.add_argument("application_id")
    return parser


def build_facade(
    settings: ApplySettings,
    config_dir: str,
    logger: StructuredLogger,
) -> ApplicationFacade:
    """Wire the apply service from concrete adapters."""
    clock = SystemClock()
    application_repo = SQLiteApplicationRepository(db_path=settings.db_path)
    catalog = FileSystemCatalog(config_dir)
    registry = SessionRegistry(
        idle_timeout=timedelta(seconds=settings.session_idle_timeout_seconds),
        reap_interval=settings.reaper_interval_seconds,
        clock=clock,
        logger=logger.bind(component="session_registry"),
        application_repo=application_repo,
    )
    state_machine = ApplyStateMachine(
        application_repo=application_repo,
        job_source=catalog,
        profile_source=catalog,
        session_factory=PlaywrightSessionFactory(
            headless=settings.headless,
            navigation_timeout_seconds=settings.navigation_timeout_seconds,
            page_settle_seconds=settings.page_settle_seconds,
        ),
        registry=registry,
        clock=clock,
        id_generator=UuidIdGenerator(),
        logger=logger.bind(component="apply_flow"),
        settings=settings,
        detector=QuestionDetector(),
    )
    return ApplicationFacade(
        state_machine=state_machine,
        registry=registry,
        application_repo=application_repo,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config_provider = FileSystemConfigProvider(args.config_dir)
    logger = StructuredLogger()

    if args.command == "validate-config":
        return _print_validation(config_provider.validate())

    if args.command == "serve":
        errors = config_provider.validate()
        if errors:
            return _print_validation(errors)

    settings = config_provider.get_settings()
    overrides = {"db_path": args.db_path}
    if args.command == "serve":
        overrides.update(host=args.host, port=args.port, headless=args.headless)
    settings = _with_overrides(settings, overrides)
    facade = build_facade(settings, args.config_dir, logger)

    if args.command == "serve":
        return _serve(facade, settings, logger)

    if args.command == "list-applications":
        for view in facade.list_applications(args.user_id):
            print(_format_summary(view))
        return 0

    if args.command == "show":
        try:
            view = facade.get_application(args.application_id)
        except ApplicationNotFoundError as exc:
            print(str(exc))
            return 1
        print(_format_summary(view))
        for err in view.errors:
            print(f"  ! {err}")
        return 0

    raise SystemExit(f"Unsupported command: {args.command}")


def _serve(facade: ApplicationFacade, settings: ApplySettings, logger: StructuredLogger) -> int:
    import uvicorn

    from app.api import create_app

    api = create_app(facade, logger.bind(component="api"), max_request_bytes=settings.max_request_bytes)
    logger.info("api_serving", host=settings.host, port=settings.port, headless=settings.headless)
    config = uvicorn.Config(api, host=settings.host, port=settings.port, log_level="info")
    asyncio.run(uvicorn.Server(config).serve())
    return 0


def _print_validation(errors: list[str]) -> int:
    if errors:
        print("Config validation failed:")
        for err in errors:
            print(f"  - {err}")
        return 1
    print("Config OK")
    return 0


def _with_overrides(settings: ApplySettings, overrides: dict) -> ApplySettings:
    return replace(settings, **{k: v for k, v in overrides.items() if v is not None})


def _format_summary(view: ApplicationSummaryView) -> str:
    created = view.created_at.astimezone(timezone.utc).isoformat() if view.created_at else "-"
    applied = view.applied_at.astimezone(timezone.utc).isoformat() if view.applied_at else "-"
    return (
        f"{view.application_id} | {view.user_id} | {view.job_id} | {view.status.value} | "
        f"created {created} | applied {applied} | questions {view.pending_questions}"
    )


if __name__ == "__main__":
    raise SystemExit(main())
