from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from domain.models import Application, ApplicationStatus
from domain.services import SessionRegistry
from test.mocks import FakeBrowserSession, InMemoryApplicationRepository, InMemoryLogger, MutableClock

_IDLE = timedelta(minutes=15)


def _registry(
    repo: InMemoryApplicationRepository | None = None,
    reap_interval: float = 60.0,
) -> tuple[SessionRegistry, MutableClock, InMemoryLogger]:
    clock = MutableClock(datetime(2025, 6, 1, tzinfo=timezone.utc))
    logger = InMemoryLogger()
    registry = SessionRegistry(
        idle_timeout=_IDLE,
        reap_interval=reap_interval,
        clock=clock,
        logger=logger,
        application_repo=repo,
    )
    return registry, clock, logger


def test_store_then_get_returns_same_session() -> None:
    registry, _, _ = _registry()
    session = FakeBrowserSession()

    asyncio.run(registry.store("app-1", session))

    assert registry.get("app-1") is session
    assert registry.get("app-1") is session
    assert registry.count() == 1


def test_store_replaces_and_releases_previous_session() -> None:
    registry, _, logger = _registry()
    first, second = FakeBrowserSession(), FakeBrowserSession()

    async def scenario() -> None:
        await registry.store("app-1", first)
        await registry.store("app-1", second)

    asyncio.run(scenario())

    assert registry.get("app-1") is second
    assert registry.count() == 1
    assert first.closed
    assert not second.closed
    assert "session_replaced" in logger.messages("warning")


def test_remove_releases_session_and_forgets_it() -> None:
    registry, _, _ = _registry()
    session = FakeBrowserSession()

    async def scenario() -> tuple[bool, bool]:
        await registry.store("app-1", session)
        return await registry.remove("app-1"), await registry.remove("app-1")

    removed, removed_again = asyncio.run(scenario())

    assert removed is True
    assert removed_again is False
    assert registry.get("app-1") is None
    assert session.close_calls == 1


def test_release_failure_is_logged_not_raised() -> None:
    registry, _, logger = _registry()
    session = FakeBrowserSession(close_error=True)

    async def scenario() -> None:
        await registry.store("app-1", session)
        await registry.remove("app-1")

    asyncio.run(scenario())

    assert registry.count() == 0
    assert "session_close_failed" in logger.messages("warning")


def test_reaper_keeps_sessions_at_or_below_idle_timeout() -> None:
    registry, clock, _ = _registry()
    session = FakeBrowserSession()

    async def scenario() -> list[str]:
        await registry.store("app-1", session)
        clock.advance(minutes=15)
        return await registry.reap_expired()

    assert asyncio.run(scenario()) == []
    assert registry.get("app-1") is session
    assert not session.closed


def test_reaper_evicts_sessions_strictly_older_than_idle_timeout() -> None:
    repo = InMemoryApplicationRepository()
    repo.add(Application(id="app-old", user_id="U1", job_id="J1", status=ApplicationStatus.PAUSED))
    registry, clock, logger = _registry(repo)
    old, young = FakeBrowserSession(), FakeBrowserSession()

    async def scenario() -> list[str]:
        await registry.store("app-old", old)
        clock.advance(minutes=10)
        await registry.store("app-young", young)
        clock.advance(minutes=5, seconds=1)
        return await registry.reap_expired()

    evicted = asyncio.run(scenario())

    assert evicted == ["app-old"]
    assert old.closed
    assert registry.get("app-old") is None
    assert registry.get("app-young") is young
    assert repo.get("app-old").status is ApplicationStatus.TIMEOUT
    assert "session_reaped" in logger.messages("info")


def test_reaper_leaves_terminal_records_untouched() -> None:
    repo = InMemoryApplicationRepository()
    repo.add(Application(id="app-1", user_id="U1", job_id="J1", status=ApplicationStatus.SUBMITTED))
    registry, clock, _ = _registry(repo)

    async def scenario() -> None:
        await registry.store("app-1", FakeBrowserSession())
        clock.advance(minutes=16)
        await registry.reap_expired()

    asyncio.run(scenario())

    assert repo.get("app-1").status is ApplicationStatus.SUBMITTED


def test_touch_refreshes_idle_timestamp() -> None:
    registry, clock, _ = _registry()

    async def scenario() -> list[str]:
        await registry.store("app-1", FakeBrowserSession())
        clock.advance(minutes=10)
        assert registry.touch("app-1")
        clock.advance(minutes=10)
        return await registry.reap_expired()

    assert asyncio.run(scenario()) == []
    assert registry.touch("missing") is False


def test_background_reaper_runs_on_interval() -> None:
    registry, clock, _ = _registry(reap_interval=0.01)
    session = FakeBrowserSession()

    async def scenario() -> None:
        await registry.store("app-1", session)
        clock.advance(minutes=30)
        registry.start_reaper()
        for _ in range(100):
            if registry.count() == 0:
                break
            await asyncio.sleep(0.01)
        await registry.shutdown()

    asyncio.run(scenario())

    assert registry.count() == 0
    assert session.closed


def test_shutdown_releases_every_session_regardless_of_age() -> None:
    registry, _, logger = _registry()
    sessions = [FakeBrowserSession() for _ in range(3)]

    async def scenario() -> None:
        registry.start_reaper()
        for i, session in enumerate(sessions):
            await registry.store(f"app-{i}", session)
        await registry.shutdown()

    asyncio.run(scenario())

    assert registry.count() == 0
    assert all(s.close_calls == 1 for s in sessions)
    assert "session_registry_shutdown" in logger.messages("info")
