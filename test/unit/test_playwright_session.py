"""Unit tests for PlaywrightBrowserSession.

Uses a lightweight fake page object to avoid requiring a real browser.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from domain.errors import BrowserAutomationError, NavigationError
from infra.browser.playwright_session import PlaywrightBrowserSession


class _FakeLocator:
    def __init__(
        self,
        count: int = 1,
        *,
        visible: bool = True,
        enabled: bool = True,
        options: list[list[str]] | None = None,
        radio: tuple[str, str] = ("", ""),
        fail: bool = False,
    ) -> None:
        self._count = count
        self._visible = visible
        self._enabled = enabled
        self._options = options or []
        self._radio = radio
        self._fail = fail
        self.children: list[_FakeLocator] = []
        self.clicked = False
        self.checked = False
        self.filled_value: str | None = None
        self.selected_value: str | None = None
        self.uploaded_path: str | None = None

    async def count(self) -> int:
        return len(self.children) if self.children else self._count

    @property
    def first(self) -> "_FakeLocator":
        return self

    def nth(self, index: int) -> "_FakeLocator":
        return self.children[index]

    async def is_visible(self) -> bool:
        return self._visible

    async def is_enabled(self) -> bool:
        return self._enabled

    async def click(self) -> None:
        if self._fail:
            raise RuntimeError("Timeout 30000ms exceeded")
        self.clicked = True

    async def fill(self, value: str) -> None:
        self.filled_value = value

    async def select_option(self, value: str) -> None:
        self.selected_value = value

    async def set_input_files(self, path: str) -> None:
        self.uploaded_path = path

    async def check(self) -> None:
        self.checked = True

    async def evaluate(self, script: str) -> Any:
        if "options" in script:
            return self._options
        return list(self._radio)


class _FakePage:
    def __init__(self) -> None:
        self.url = "https://jobs.example.test/apply"
        self.locators: dict[str, _FakeLocator] = {}
        self.goto_error: Exception | None = None
        self.scan_result: list[dict[str, Any]] = []
        self.closed = False

    def locator(self, selector: str) -> _FakeLocator:
        return self.locators.get(selector, _FakeLocator(count=0))

    async def goto(self, url: str, **kwargs: Any) -> None:
        if self.goto_error:
            raise self.goto_error
        self.url = url

    async def wait_for_load_state(self, state: str, **kwargs: Any) -> None:
        return None

    async def evaluate(self, script: str) -> Any:
        return self.scan_result

    async def close(self) -> None:
        self.closed = True


def _session(page: _FakePage) -> PlaywrightBrowserSession:
    session = PlaywrightBrowserSession(page_settle_seconds=0)
    session._page = page
    return session


def test_probes_distinguish_actionable_from_attached() -> None:
    page = _FakePage()
    page.locators["#apply"] = _FakeLocator()
    page.locators["#disabled"] = _FakeLocator(enabled=False)
    page.locators["#file"] = _FakeLocator(visible=False)
    session = _session(page)

    assert asyncio.run(session.is_actionable("#apply")) is True
    assert asyncio.run(session.is_actionable("#disabled")) is False
    assert asyncio.run(session.is_actionable("#file")) is False
    assert asyncio.run(session.is_attached("#file")) is True
    assert asyncio.run(session.is_actionable("#missing")) is False


def test_actions_drive_the_first_matching_element() -> None:
    page = _FakePage()
    button, field, upload = _FakeLocator(), _FakeLocator(), _FakeLocator()
    page.locators.update({"#go": button, "#name": field, "#cv": upload})
    session = _session(page)

    asyncio.run(session.click("#go"))
    asyncio.run(session.type_text("#name", "Ada"))
    asyncio.run(session.set_file("#cv", "/docs/cv.pdf"))

    assert button.clicked
    assert field.filled_value == "Ada"
    assert upload.uploaded_path == "/docs/cv.pdf"


def test_playwright_errors_are_wrapped() -> None:
    page = _FakePage()
    page.locators["#go"] = _FakeLocator(fail=True)
    session = _session(page)

    with pytest.raises(BrowserAutomationError, match="Timeout 30000ms exceeded"):
        asyncio.run(session.click("#go"))


def test_goto_failure_raises_navigation_error() -> None:
    page = _FakePage()
    page.goto_error = RuntimeError("net::ERR_NAME_NOT_RESOLVED")
    session = _session(page)

    with pytest.raises(NavigationError):
        asyncio.run(session.goto("https://nowhere.test"))


def test_choose_option_matches_text_or_value_substring() -> None:
    page = _FakePage()
    select = _FakeLocator(options=[["", "Select..."], ["junior", "0-2 years"], ["mid", "3-5 years"]])
    page.locators["select >> nth=0"] = select
    session = _session(page)

    asyncio.run(session.choose_option("select >> nth=0", "3-5"))
    assert select.selected_value == "mid"

    with pytest.raises(BrowserAutomationError):
        asyncio.run(session.choose_option("select >> nth=0", "twenty"))


def test_check_radio_picks_first_member_matching_label_or_value() -> None:
    page = _FakePage()
    group = _FakeLocator()
    yes, no = _FakeLocator(radio=("y", "Yes")), _FakeLocator(radio=("n", "No"))
    group.children = [yes, no]
    page.locators['input[type="radio"][name="sponsorship"]'] = group
    session = _session(page)

    asyncio.run(session.check_radio('input[type="radio"][name="sponsorship"]', "no"))

    assert no.checked and not yes.checked


def test_scan_controls_builds_page_controls() -> None:
    page = _FakePage()
    page.scan_result = [
        {"kind": "textarea", "index": 0, "selector": "textarea >> nth=0", "label_text": "Why?", "required_attr": True, "visible": True},
        {"kind": "select", "index": 0, "selector": "select >> nth=0", "options": ["Select...", "A"], "visible": False},
    ]
    session = _session(page)

    controls = asyncio.run(session.scan_controls())

    assert [(c.kind, c.label_text, c.required_attr, c.visible) for c in controls] == [
        ("textarea", "Why?", True, True),
        ("select", "", False, False),
    ]
    assert controls[1].options == ("Select...", "A")


def test_unlaunched_session_raises_automation_error() -> None:
    session = PlaywrightBrowserSession()
    with pytest.raises(BrowserAutomationError):
        asyncio.run(session.click("#go"))


def test_close_is_idempotent() -> None:
    page = _FakePage()
    session = _session(page)

    asyncio.run(session.close())
    asyncio.run(session.close())

    assert page.closed
    with pytest.raises(BrowserAutomationError):
        asyncio.run(session.current_url())


class _FakeClosable:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.closed = False

    async def close(self) -> None:
        self.closed = True
        if self._error:
            raise self._error

    async def stop(self) -> None:
        await self.close()


def test_close_tears_down_browser_and_driver_when_page_close_fails() -> None:
    page = _FakePage()

    async def crashed_close() -> None:
        raise RuntimeError("Target closed")

    page.close = crashed_close  # type: ignore[method-assign]
    browser, driver = _FakeClosable(), _FakeClosable()
    session = _session(page)
    session._browser = browser
    session._playwright = driver

    with pytest.raises(BrowserAutomationError, match="page close failed: Target closed"):
        asyncio.run(session.close())

    assert browser.closed
    assert driver.closed
    asyncio.run(session.close())
