"""Test fixtures: sample records and scripted form pages."""

from __future__ import annotations

from typing import Iterable, Sequence

from domain.models import Address, JobPosting, PageControl, UserProfile
from test.mocks import FakeBrowserSession, FakePage

APPLY_BUTTON = 'button:has-text("Apply now")'
SUBMIT_BUTTON = 'button:has-text("Submit application")'
NEXT_BUTTON = 'button:has-text("Next")'
FIRST_NAME_INPUT = 'input[name*="firstName"]'
LAST_NAME_INPUT = 'input[name*="lastName"]'
EMAIL_INPUT = 'input[type="email"]'
PHONE_INPUT = 'input[type="tel"]'
CITY_INPUT = 'input[name*="city"]'
RESUME_INPUT = 'input[type="file"][name*="resume"]'


def sample_profile(
    user_id: str = "U1",
    *,
    full_name: str = "Ada Lovelace",
    email: str = "ada@example.com",
    phone: str | None = "+1 555 0100",
    city: str | None = None,
    resume_path: str | None = None,
) -> UserProfile:
    return UserProfile(
        id=user_id,
        full_name=full_name,
        email=email,
        phone=phone,
        address=Address(city=city) if city else None,
        resume_path=resume_path,
    )


def sample_job(job_id: str = "J1") -> JobPosting:
    return JobPosting(
        id=job_id,
        title="Backend Engineer",
        url=f"https://jobs.example.test/{job_id}",
        company="Example Corp",
    )


def textarea_control(index: int, label: str, *, required: bool = False, visible: bool = True) -> PageControl:
    return PageControl(
        kind="textarea",
        index=index,
        selector=f"textarea >> nth={index}",
        label_text=label,
        required_attr=required,
        visible=visible,
    )


def select_control(
    index: int,
    label: str,
    options: Sequence[str],
    *,
    required: bool = False,
) -> PageControl:
    return PageControl(
        kind="select",
        index=index,
        selector=f"select >> nth={index}",
        label_text=label,
        options=tuple(options),
        aria_required=required,
    )


def radio_controls(
    name: str,
    group_label: str,
    options: Iterable[str],
    *,
    start_index: int = 0,
    required: bool = False,
) -> list[PageControl]:
    return [
        PageControl(
            kind="radio",
            index=start_index + offset,
            selector=f'input[type="radio"][name="{name}"]',
            name=name,
            group_label=group_label,
            option_label=option,
            in_required_container=required,
        )
        for offset, option in enumerate(options)
    ]


def landing_page() -> FakePage:
    return FakePage(
        url="https://jobs.example.test/posting",
        actionable={APPLY_BUTTON},
        advance_on={APPLY_BUTTON},
    )


def form_page(
    controls: Sequence[PageControl] = (),
    *,
    url: str = "https://jobs.example.test/apply",
    profile_fields: Iterable[str] = (FIRST_NAME_INPUT, EMAIL_INPUT, PHONE_INPUT),
    resume_input: bool = False,
    submit: bool = True,
    next_button: bool = False,
) -> FakePage:
    """A rendered form page; question controls are fillable, options come from the controls."""
    actionable = set(profile_fields)
    options: dict[str, list[str]] = {}
    for control in controls:
        actionable.add(control.selector)
        if control.kind == "select":
            options[control.selector] = list(control.options)
        elif control.kind == "radio":
            options.setdefault(control.selector, []).append(control.option_label)

    page = FakePage(
        url=url,
        actionable=actionable,
        attached={RESUME_INPUT} if resume_input else set(),
        controls=list(controls),
        options=options,
    )
    if submit:
        page.actionable.add(SUBMIT_BUTTON)
        page.submit_on.add(SUBMIT_BUTTON)
    if next_button:
        page.actionable.add(NEXT_BUTTON)
        page.advance_on.add(NEXT_BUTTON)
    return page


def scripted_session(*pages: FakePage) -> FakeBrowserSession:
    return FakeBrowserSession(pages=[landing_page(), *pages])
