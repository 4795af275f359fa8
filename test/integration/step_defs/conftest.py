"""Shared fixtures and context for BDD step definitions."""
from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from domain.models import ApplyOutcome
from test.fixtures import form_page, sample_job, sample_profile, scripted_session, textarea_control
from test.fixtures.harness import ApplyHarness, build_harness
from test.mocks import FakeBrowserSession, FakePage


@dataclass
class ApplyContext:
    """Holds mutable state shared across BDD steps."""

    job_id: str = "J1"
    user_id: str = "U1"
    full_name: str = "Ada Lovelace"
    pages: list[FakePage] = field(default_factory=list)
    session: FakeBrowserSession | None = None
    harness: ApplyHarness | None = None
    outcome: ApplyOutcome | None = None
    application_id: str | None = None
    error: Exception | None = None

    def ensure_harness(self) -> ApplyHarness:
        if self.harness is None:
            self.session = self.session or scripted_session(*(self.pages or [form_page()]))
            self.harness = build_harness(
                self.session,
                jobs=[sample_job(self.job_id)],
                profiles=[sample_profile(self.user_id, full_name=self.full_name)],
            )
        return self.harness


@pytest.fixture()
def ctx() -> ApplyContext:
    return ApplyContext()


def question_page(label: str, *, next_button: bool = False, url: str | None = None) -> FakePage:
    kwargs = {"url": url} if url else {}
    return form_page(
        [textarea_control(0, label, required=True)],
        submit=not next_button,
        next_button=next_button,
        **kwargs,
    )
