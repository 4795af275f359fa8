from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from domain.models import Address, JobPosting, UserProfile


class FileSystemCatalog:
    """
    Read-only job posting and profile source backed by JSON files.

    ``jobs.json`` and ``profiles.json`` each hold a list of objects and are
    re-read on every lookup. Relative ``resume_path`` values resolve against
    the catalog directory.
    """

    def __init__(self, config_dir: str) -> None:
        self._config_dir = Path(config_dir)

    def get_job(self, job_id: str) -> JobPosting | None:
        entry = self._find("jobs.json", job_id)
        if entry is None:
            return None
        return JobPosting(
            id=str(entry["id"]),
            title=str(entry.get("title", "")),
            url=str(entry["url"]),
            company=str(entry.get("company", "")),
        )

    def get_profile(self, user_id: str) -> UserProfile | None:
        entry = self._find("profiles.json", user_id)
        if entry is None:
            return None
        address = entry.get("address")
        resume_path = entry.get("resume_path")
        return UserProfile(
            id=str(entry["id"]),
            full_name=str(entry.get("full_name", "")),
            email=str(entry.get("email", "")),
            phone=entry.get("phone"),
            address=Address(
                street=str(address.get("street", "")),
                city=str(address.get("city", "")),
                state=str(address.get("state", "")),
                zip_code=str(address.get("zip_code", address.get("zip", ""))),
            )
            if isinstance(address, dict)
            else None,
            resume_path=self._resolve(str(resume_path)) if resume_path else None,
        )

    def _find(self, filename: str, entry_id: str) -> dict[str, Any] | None:
        path = self._config_dir / filename
        if not path.is_file():
            return None
        for entry in json.loads(path.read_text(encoding="utf-8")):
            if str(entry.get("id")) == entry_id:
                return entry
        return None

    def _resolve(self, value: str) -> str:
        path = Path(value)
        if path.is_absolute():
            return value
        return str(self._config_dir / path)
