from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import Any, Mapping, TextIO


class StructuredLogger:
    """Writes one JSON object per event; ``bind`` adds fields to every line."""

    def __init__(
        self,
        *,
        stream: TextIO | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self._stream = stream
        self._context = dict(context or {})

    def bind(self, **fields: Any) -> StructuredLogger:
        return StructuredLogger(stream=self._stream, context={**self._context, **fields})

    def info(self, message: str, **fields: Any) -> None:
        self._emit("info", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit("warning", message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit("error", message, fields)

    def _emit(self, level: str, message: str, fields: dict[str, Any]) -> None:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "message": message,
            "fields": {**self._context, **fields},
        }
        print(json.dumps(payload, sort_keys=True, default=str), file=self._stream or sys.stdout, flush=True)
