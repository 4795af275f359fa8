"""Ordered-candidate "locate, then act" primitive used for every form interaction.

Candidates are tried strictly in list order; earlier entries must be the
more specific rules. There is no scoring: the first rule whose probe
passes is acted on, and the caller decides whether a miss is fatal.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from domain.errors import BrowserAutomationError
from domain.ports import LoggerPort

Probe = Callable[[str], Awaitable[bool]]
Action = Callable[[str], Awaitable[None]]

NO_MATCHING_CONTROL = "no matching control"


@dataclass(frozen=True)
class FillResult:
    matched: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.matched is not None


async def find_first_match(
    candidates: Sequence[str],
    probe: Probe,
    *,
    step_timeout: float,
) -> str | None:
    for rule in candidates:
        if await _probe(probe, rule, step_timeout):
            return rule
    return None


async def act_on_first_match(
    candidates: Sequence[str],
    probe: Probe,
    action: Action,
    *,
    step_timeout: float,
    logger: LoggerPort | None = None,
) -> FillResult:
    for rule in candidates:
        if not await _probe(probe, rule, step_timeout):
            continue
        try:
            await asyncio.wait_for(action(rule), timeout=step_timeout)
        except (BrowserAutomationError, asyncio.TimeoutError) as exc:
            # Visible but not usable (detached mid-action, disabled, frozen).
            if logger is not None:
                logger.warning("candidate_action_failed", selector=rule, error=str(exc) or type(exc).__name__)
            continue
        return FillResult(matched=rule)
    return FillResult(error=NO_MATCHING_CONTROL)


async def _probe(probe: Probe, rule: str, step_timeout: float) -> bool:
    try:
        return await asyncio.wait_for(probe(rule), timeout=step_timeout)
    except (BrowserAutomationError, asyncio.TimeoutError):
        return False
