"""Registry of live browser sessions for paused applications.

A paused application keeps its browser open between HTTP requests. The
registry is the only place such sessions live: the apply flow hands a
session over at the pause point and takes it back on resume. One lock
guards the map; sessions are always closed outside of it.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from domain.errors import InvalidTransitionError
from domain.models import ApplicationStatus
from domain.ports import ApplicationRepositoryPort, BrowserSessionPort, ClockPort, LoggerPort


@dataclass
class _Entry:
    session: BrowserSessionPort
    stored_at: datetime


class SessionRegistry:
    def __init__(
        self,
        *,
        idle_timeout: timedelta,
        reap_interval: float,
        clock: ClockPort,
        logger: LoggerPort,
        application_repo: ApplicationRepositoryPort | None = None,
    ) -> None:
        self._idle_timeout = idle_timeout
        self._reap_interval = reap_interval
        self._clock = clock
        self._logger = logger
        self._application_repo = application_repo
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._reaper: asyncio.Task[None] | None = None

    # -- map operations -----------------------------------------------------

    async def store(self, application_id: str, session: BrowserSessionPort) -> None:
        """Register ``session``; an existing entry for the id is replaced and closed."""
        with self._lock:
            previous = self._entries.get(application_id)
            self._entries[application_id] = _Entry(session=session, stored_at=self._clock.now())
            total = len(self._entries)

        if previous is not None and previous.session is not session:
            self._logger.warning("session_replaced", application_id=application_id)
            await self._release(application_id, previous.session)
        self._logger.info("session_stored", application_id=application_id, active=total)

    def get(self, application_id: str) -> BrowserSessionPort | None:
        with self._lock:
            entry = self._entries.get(application_id)
        return entry.session if entry is not None else None

    def touch(self, application_id: str) -> bool:
        with self._lock:
            entry = self._entries.get(application_id)
            if entry is None:
                return False
            entry.stored_at = self._clock.now()
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    async def remove(self, application_id: str) -> bool:
        with self._lock:
            entry = self._entries.pop(application_id, None)
        if entry is None:
            return False
        self._logger.info("session_removed", application_id=application_id)
        await self._release(application_id, entry.session)
        return True

    # -- reaping ------------------------------------------------------------

    async def reap_expired(self) -> list[str]:
        now = self._clock.now()
        with self._lock:
            expired = [
                (app_id, entry)
                for app_id, entry in self._entries.items()
                if now - entry.stored_at > self._idle_timeout
            ]
            for app_id, _ in expired:
                del self._entries[app_id]
            remaining = len(self._entries)

        for app_id, entry in expired:
            self._logger.info(
                "session_reaped",
                application_id=app_id,
                age_seconds=(now - entry.stored_at).total_seconds(),
            )
            await self._release(app_id, entry.session)
            self._mark_timed_out(app_id)

        if expired:
            self._logger.info("sessions_reaped", count=len(expired), remaining=remaining)
        return [app_id for app_id, _ in expired]

    def start_reaper(self) -> None:
        if self._reaper is not None and not self._reaper.done():
            return
        self._reaper = asyncio.get_running_loop().create_task(self._reap_loop())

    async def _reap_loop(self) -> None:
        while True:
            await asyncio.sleep(self._reap_interval)
            try:
                await self.reap_expired()
            except Exception as exc:
                self._logger.error("session_reaper_failed", error=str(exc))

    async def shutdown(self) -> None:
        """Stop the reaper and close every registered session regardless of age."""
        if self._reaper is not None:
            self._reaper.cancel()
            try:
                await self._reaper
            except asyncio.CancelledError:
                pass
            self._reaper = None

        with self._lock:
            entries = list(self._entries.items())
            self._entries.clear()

        self._logger.info("session_registry_shutdown", closing=len(entries))
        for app_id, entry in entries:
            await self._release(app_id, entry.session)

    # -- helpers ------------------------------------------------------------

    async def _release(self, application_id: str, session: BrowserSessionPort) -> None:
        try:
            await session.close()
        except Exception as exc:
            self._logger.warning(
                "session_close_failed",
                application_id=application_id,
                error=str(exc),
            )

    def _mark_timed_out(self, application_id: str) -> None:
        if self._application_repo is None:
            return
        application = self._application_repo.get(application_id)
        if application is None:
            return
        try:
            timed_out = application.transition(ApplicationStatus.TIMEOUT)
        except InvalidTransitionError:
            return
        self._application_repo.update(timed_out)
