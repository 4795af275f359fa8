"""Candidate locator tables, most specific first."""

from __future__ import annotations

APPLY_BUTTON_CANDIDATES: tuple[str, ...] = (
    'button:has-text("Apply now")',
    'button:has-text("Apply")',
    'a:has-text("Apply now")',
    'a:has-text("Apply")',
    'button[id*="apply"]',
    'a[id*="apply"]',
    ".jobsearch-IndeedApplyButton",
    ".ia-IndeedApplyButton",
)

SUBMIT_BUTTON_CANDIDATES: tuple[str, ...] = (
    'button:has-text("Submit application")',
    'button[type="submit"]:has-text("Submit")',
    'button:has-text("Submit")',
    'input[type="submit"][value*="Submit"]',
    'button[id*="submit"]',
    'button[class*="submit"]',
    'button[type="submit"]',
    'input[type="submit"]',
)

CONTINUE_BUTTON_CANDIDATES: tuple[str, ...] = (
    'button:has-text("Save and continue")',
    'button:has-text("Save & continue")',
    'button:has-text("Next")',
    'button:has-text("Continue")',
    'input[type="button"][value*="Next"]',
    'input[type="submit"][value*="Next"]',
    'input[type="button"][value*="Continue"]',
    'input[type="submit"][value*="Continue"]',
    'button[id*="next"]',
    'button[id*="continue"]',
)

FIRST_NAME_CANDIDATES: tuple[str, ...] = (
    'input[name*="firstName"]',
    'input[id*="firstName"]',
    'input[name*="first-name"]',
    'input[id*="first-name"]',
    'input[name*="first_name"]',
    'input[id*="first_name"]',
)

LAST_NAME_CANDIDATES: tuple[str, ...] = (
    'input[name*="lastName"]',
    'input[id*="lastName"]',
    'input[name*="last-name"]',
    'input[id*="last-name"]',
    'input[name*="last_name"]',
    'input[id*="last_name"]',
)

EMAIL_CANDIDATES: tuple[str, ...] = (
    'input[type="email"]',
    'input[name*="email"]',
    'input[id*="email"]',
)

PHONE_CANDIDATES: tuple[str, ...] = (
    'input[type="tel"]',
    'input[name*="phone"]',
    'input[id*="phone"]',
)

CITY_CANDIDATES: tuple[str, ...] = (
    'input[name*="city"]',
    'input[id*="city"]',
    'input[name*="location"]',
)

RESUME_UPLOAD_CANDIDATES: tuple[str, ...] = (
    'input[type="file"][name*="resume"]',
    'input[type="file"][id*="resume"]',
    'input[type="file"][name*="cv"]',
    'input[type="file"][id*="cv"]',
    'input[type="file"]',
)
