from __future__ import annotations

from datetime import datetime, timezone


class SystemClock:
    """Wall clock in UTC; drives paused_at stamps and session idle checks."""

    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)
