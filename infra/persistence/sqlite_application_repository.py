from __future__ import annotations

import json
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Sequence

from domain.models import Application, ApplicationStatus, Question


class SQLiteApplicationRepository:
    """
    SQLite-backed implementation of ``ApplicationRepositoryPort``.

    List-valued fields are stored as JSON text columns. The connection is
    shared between the event loop and the API test client's thread, so
    every statement runs under one lock.
    """

    _SCHEMA_SQL = """\
    CREATE TABLE IF NOT EXISTS applications (
        id               TEXT PRIMARY KEY,
        user_id          TEXT NOT NULL,
        job_id           TEXT NOT NULL,
        status           TEXT NOT NULL,
        filled_fields    TEXT NOT NULL DEFAULT '[]',
        custom_questions TEXT NOT NULL DEFAULT '[]',
        user_answers     TEXT NOT NULL DEFAULT '{}',
        paused_at        TEXT,
        current_url      TEXT,
        error_log        TEXT NOT NULL DEFAULT '[]',
        applied_at       TEXT,
        created_at       TEXT
    );
    CREATE INDEX IF NOT EXISTS idx_applications_user ON applications (user_id);
    """

    _COLUMNS = (
        "id, user_id, job_id, status, filled_fields, custom_questions, "
        "user_answers, paused_at, current_url, error_log, applied_at, created_at"
    )

    def __init__(self, db_path: str = ":memory:") -> None:
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(self._SCHEMA_SQL)

    def add(self, application: Application) -> None:
        with self._lock:
            self._conn.execute(
                f"INSERT INTO applications ({self._COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._application_to_row(application),
            )
            self._conn.commit()

    def update(self, application: Application) -> None:
        row = self._application_to_row(application)
        with self._lock:
            self._conn.execute(
                "UPDATE applications SET "
                "user_id=?, job_id=?, status=?, filled_fields=?, custom_questions=?, "
                "user_answers=?, paused_at=?, current_url=?, error_log=?, applied_at=?, created_at=? "
                "WHERE id=?",
                (*row[1:], row[0]),
            )
            self._conn.commit()

    def get(self, application_id: str) -> Application | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {self._COLUMNS} FROM applications WHERE id = ?",
                (application_id,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_application(row)

    def list_all(self) -> Sequence[Application]:
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {self._COLUMNS} FROM applications ORDER BY created_at DESC, rowid DESC",
            ).fetchall()
        return [self._row_to_application(r) for r in rows]

    def list_for_user(self, user_id: str) -> Sequence[Application]:
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {self._COLUMNS} FROM applications WHERE user_id = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_application(r) for r in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # -- helpers ------------------------------------------------------------

    @staticmethod
    def _application_to_row(a: Application) -> tuple[str | None, ...]:
        return (
            a.id,
            a.user_id,
            a.job_id,
            a.status.value,
            json.dumps(list(a.filled_fields)),
            json.dumps([q.to_dict() for q in a.custom_questions]),
            json.dumps(dict(a.user_answers), sort_keys=True),
            _timestamp(a.paused_at),
            a.current_url,
            json.dumps(list(a.error_log)),
            _timestamp(a.applied_at),
            _timestamp(a.created_at),
        )

    @staticmethod
    def _row_to_application(row: tuple[object, ...]) -> Application:
        return Application(
            id=str(row[0]),
            user_id=str(row[1]),
            job_id=str(row[2]),
            status=ApplicationStatus(row[3]),
            filled_fields=tuple(json.loads(str(row[4]))),
            custom_questions=tuple(Question.from_dict(q) for q in json.loads(str(row[5]))),
            user_answers=json.loads(str(row[6])),
            paused_at=_parse_timestamp(row[7]),
            current_url=str(row[8]) if row[8] else None,
            error_log=tuple(json.loads(str(row[9]))),
            applied_at=_parse_timestamp(row[10]),
            created_at=_parse_timestamp(row[11]),
        )


def _timestamp(dt: datetime | None) -> str | None:
    """Serialize as ISO-8601; naive values are taken to be UTC."""
    if dt is None:
        return None
    return (dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)).isoformat()


def _parse_timestamp(value: object) -> datetime | None:
    if not value:
        return None
    dt = datetime.fromisoformat(str(value))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
