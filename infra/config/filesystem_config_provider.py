from __future__ import annotations

import json
import re
from dataclasses import fields
from pathlib import Path

from domain.models import ApplySettings

CONFIG_FILENAME = "config.json"

_POSITIVE_SECONDS_KEYS = (
    "session_idle_timeout_seconds",
    "reaper_interval_seconds",
    "operation_timeout_seconds",
    "step_timeout_seconds",
    "navigation_timeout_seconds",
)
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class FileSystemConfigProvider:
    """Reads config.json, jobs.json and profiles.json from a config directory.

    Every public method re-reads from disk so that edits
    to the JSON files take effect without restarting the app.
    A missing config.json means "all defaults".
    """

    def __init__(self, config_dir: str) -> None:
        self._config_dir = Path(config_dir)

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def get_settings(self) -> ApplySettings:
        data = self._read_config()
        known = {f.name for f in fields(ApplySettings)}
        values = {k: v for k, v in data.items() if k in known}
        if "db_path" in values:
            values["db_path"] = self._resolve(str(values["db_path"]))
        return ApplySettings(**values)

    def validate(self) -> list[str]:
        errors: list[str] = []
        path = self._config_dir / CONFIG_FILENAME
        data: dict = {}
        if path.is_file():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as exc:
                errors.append(f"Cannot read {path}: {exc}")
                data = {}
            if not isinstance(data, dict):
                errors.append(f"{path.name} must contain a JSON object.")
                data = {}

        errors.extend(self._validate_settings(data))
        errors.extend(self._validate_catalog_file("jobs.json", ("id", "title", "url")))
        errors.extend(self._validate_catalog_file("profiles.json", ("id", "full_name", "email")))
        return errors

    @staticmethod
    def _validate_settings(data: dict) -> list[str]:
        errors: list[str] = []
        known = {f.name for f in fields(ApplySettings)}
        for key in sorted(set(data) - known):
            errors.append(f"config.json: unknown key '{key}'.")

        for key in _POSITIVE_SECONDS_KEYS:
            value = data.get(key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(f"{key} must be a positive number of seconds.")

        settle = data.get("page_settle_seconds")
        if settle is not None and (isinstance(settle, bool) or not isinstance(settle, (int, float)) or settle < 0):
            errors.append("page_settle_seconds must be zero or a positive number.")

        pages = data.get("max_form_pages")
        if pages is not None and (isinstance(pages, bool) or not isinstance(pages, int) or pages < 1):
            errors.append("max_form_pages must be an integer of at least 1.")

        headless = data.get("headless")
        if headless is not None and not isinstance(headless, bool):
            errors.append("headless must be a boolean (true/false), not a string.")

        max_bytes = data.get("max_request_bytes")
        if max_bytes is not None and (isinstance(max_bytes, bool) or not isinstance(max_bytes, int) or max_bytes < 1):
            errors.append("max_request_bytes must be a positive integer.")

        port = data.get("port")
        if port is not None and (isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536):
            errors.append("port must be an integer between 1 and 65535.")

        for key in ("db_path", "host"):
            value = data.get(key)
            if value is not None and (not isinstance(value, str) or not value.strip()):
                errors.append(f"{key} must be a non-empty string.")

        idle = data.get("session_idle_timeout_seconds", ApplySettings.session_idle_timeout_seconds)
        interval = data.get("reaper_interval_seconds", ApplySettings.reaper_interval_seconds)
        if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (idle, interval)) and interval > idle:
            errors.append("reaper_interval_seconds should not exceed session_idle_timeout_seconds.")

        return errors

    def _validate_catalog_file(self, filename: str, required_keys: tuple[str, ...]) -> list[str]:
        path = self._config_dir / filename
        if not path.is_file():
            return [f"Missing file: {path}"]
        try:
            entries = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            return [f"Cannot read {path}: {exc}"]
        if not isinstance(entries, list):
            return [f"{filename} must contain a JSON list."]

        errors: list[str] = []
        seen: set[str] = set()
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict):
                errors.append(f"{filename}[{position}] must be an object.")
                continue
            missing = [k for k in required_keys if not entry.get(k)]
            if missing:
                errors.append(f"{filename}[{position}] missing keys: {', '.join(missing)}")
                continue
            entry_id = str(entry["id"])
            if entry_id in seen:
                errors.append(f"{filename}: duplicate id '{entry_id}'.")
            seen.add(entry_id)
            if "email" in entry and not _EMAIL_PATTERN.match(str(entry["email"])):
                errors.append(f"{filename}: email '{entry['email']}' is not a valid email address.")
            if "url" in entry and not str(entry["url"]).startswith(("http://", "https://")):
                errors.append(f"{filename}: url for '{entry_id}' must start with http:// or https://.")
        return errors

    # -- internal helpers ---------------------------------------------------

    def _read_config(self) -> dict:
        path = self._config_dir / CONFIG_FILENAME
        if not path.is_file():
            return {}
        return json.loads(path.read_text(encoding="utf-8"))

    def _resolve(self, value: str) -> str:
        if value == ":memory:" or Path(value).is_absolute():
            return value
        return str(self._config_dir / value)
