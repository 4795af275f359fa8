from __future__ import annotations

import json
import pathlib

import pytest


@pytest.fixture()
def config_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """A config folder with a valid config.json, jobs.json and profiles.json."""
    (tmp_path / "config.json").write_text(json.dumps({"db_path": "applications.db", "headless": True}))
    (tmp_path / "jobs.json").write_text(json.dumps([
        {"id": "J1", "title": "Backend Engineer", "url": "https://jobs.example.test/J1", "company": "Example Corp"},
    ]))
    (tmp_path / "profiles.json").write_text(json.dumps([
        {"id": "U1", "full_name": "Ada Lovelace", "email": "ada@example.com", "phone": "+1 555 0100"},
    ]))
    return tmp_path
