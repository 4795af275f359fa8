from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Sequence, TypeVar

from domain.errors import BrowserAutomationError, NavigationError
from domain.models import PageControl

T = TypeVar("T")

# Collects every textarea, select and radio input in document order. Indices
# are per kind so they line up with the ``<kind> >> nth=<i>`` selectors.
_SCAN_CONTROLS_JS = """
() => {
  const visible = (el) => {
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden') return false;
    const rect = el.getBoundingClientRect();
    return rect.width > 0 && rect.height > 0;
  };
  const labelFor = (el) => {
    if (el.id) {
      const byFor = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
      if (byFor) return byFor.innerText;
    }
    const wrapping = el.closest('label');
    return wrapping ? wrapping.innerText : '';
  };
  const groupLabelFor = (el) => {
    const fieldset = el.closest('fieldset');
    if (fieldset) {
      const legend = fieldset.querySelector('legend');
      if (legend) return legend.innerText;
    }
    const group = el.closest('[role="radiogroup"]');
    if (group) return group.getAttribute('aria-label') || '';
    return '';
  };
  const common = (el, kind, index, selector) => ({
    kind,
    index,
    selector,
    element_id: el.id || '',
    name: el.getAttribute('name') || '',
    aria_label: el.getAttribute('aria-label') || '',
    placeholder: el.getAttribute('placeholder') || '',
    required_attr: el.required === true,
    aria_required: el.getAttribute('aria-required') === 'true',
    in_required_container: el.closest('.required') !== null,
    visible: visible(el),
  });
  const controls = [];
  document.querySelectorAll('textarea').forEach((el, i) => {
    controls.push({...common(el, 'textarea', i, `textarea >> nth=${i}`), label_text: labelFor(el)});
  });
  document.querySelectorAll('select').forEach((el, i) => {
    controls.push({
      ...common(el, 'select', i, `select >> nth=${i}`),
      label_text: labelFor(el),
      options: Array.from(el.options).map((o) => o.text),
    });
  });
  document.querySelectorAll('input[type="radio"]').forEach((el, i) => {
    const name = el.getAttribute('name') || '';
    controls.push({
      ...common(el, 'radio', i, `input[type="radio"][name="${name}"]`),
      group_label: groupLabelFor(el),
      option_label: labelFor(el) || el.value || '',
    });
  });
  return controls;
}
"""

_OPTIONS_JS = "el => Array.from(el.options).map(o => [o.value, o.text])"
_RADIO_TEXT_JS = """
el => {
  const label = el.id ? document.querySelector(`label[for="${CSS.escape(el.id)}"]`) : null;
  const wrapping = el.closest('label');
  return [el.value || '', (label || wrapping || {innerText: ''}).innerText || ''];
}
"""


class PlaywrightBrowserSession:
    """
    Playwright-backed implementation of BrowserSessionPort.

    Requires ``playwright`` to be installed and browsers set up via
    ``playwright install chromium``.

    Each session owns its own Playwright driver, browser and page, so
    closing one never affects another. Every Playwright failure is
    re-raised as ``BrowserAutomationError``.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        navigation_timeout_seconds: float = 30.0,
        page_settle_seconds: float = 2.0,
    ) -> None:
        self._headless = headless
        self._navigation_timeout_ms = navigation_timeout_seconds * 1000
        self._page_settle_seconds = page_settle_seconds
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Any = None

    async def launch(self) -> None:
        from playwright.async_api import async_playwright

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self._headless)
            self._page = await self._browser.new_page()
        except Exception as exc:
            await self.close()
            raise BrowserAutomationError(f"browser launch failed: {exc}") from exc

    async def close(self) -> None:
        page, browser, driver = self._page, self._browser, self._playwright
        self._page = self._browser = self._playwright = None
        failures: list[str] = []
        for what, closer in (
            ("page close", page.close if page else None),
            ("browser close", browser.close if browser else None),
            ("driver stop", driver.stop if driver else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as exc:
                failures.append(f"{what} failed: {exc}")
        if failures:
            raise BrowserAutomationError("; ".join(failures))

    def _ensure_page(self) -> Any:
        if self._page is None:
            raise BrowserAutomationError("Browser not launched. Call launch() first.")
        return self._page

    async def _guard(self, what: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except BrowserAutomationError:
            raise
        except Exception as exc:
            raise BrowserAutomationError(f"{what} failed: {exc}") from exc

    # -- navigation ---------------------------------------------------------

    async def goto(self, url: str) -> None:
        page = self._ensure_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self._navigation_timeout_ms)
        except Exception as exc:
            raise NavigationError(f"{url}: {exc}") from exc

    async def wait_for_load(self) -> None:
        page = self._ensure_page()
        await self._guard(
            "wait_for_load",
            page.wait_for_load_state("domcontentloaded", timeout=self._navigation_timeout_ms),
        )
        await asyncio.sleep(self._page_settle_seconds)

    async def current_url(self) -> str:
        return str(self._ensure_page().url)

    # -- probes -------------------------------------------------------------

    async def is_actionable(self, selector: str) -> bool:
        locator = self._ensure_page().locator(selector)
        if await self._guard("count", locator.count()) == 0:
            return False
        first = locator.first
        return bool(
            await self._guard("is_visible", first.is_visible())
            and await self._guard("is_enabled", first.is_enabled())
        )

    async def is_attached(self, selector: str) -> bool:
        locator = self._ensure_page().locator(selector)
        return await self._guard("count", locator.count()) > 0

    # -- actions ------------------------------------------------------------

    async def click(self, selector: str) -> None:
        await self._guard(f"click {selector}", self._ensure_page().locator(selector).first.click())

    async def type_text(self, selector: str, value: str) -> None:
        await self._guard(f"fill {selector}", self._ensure_page().locator(selector).first.fill(value))

    async def set_file(self, selector: str, path: str) -> None:
        await self._guard(
            f"upload {selector}",
            self._ensure_page().locator(selector).first.set_input_files(path),
        )

    async def choose_option(self, selector: str, answer: str) -> None:
        select = self._ensure_page().locator(selector).first
        options = await self._guard("read options", select.evaluate(_OPTIONS_JS))
        value = _first_containing(((str(v), str(t)) for v, t in options), answer)
        if value is None:
            raise BrowserAutomationError(f"no option matching '{answer}' in {selector}")
        await self._guard(f"select {selector}", select.select_option(value=value))

    async def check_radio(self, selector: str, answer: str) -> None:
        radios = self._ensure_page().locator(selector)
        total = await self._guard("count", radios.count())
        for i in range(total):
            radio = radios.nth(i)
            value, text = await self._guard("read radio", radio.evaluate(_RADIO_TEXT_JS))
            if _first_containing([(str(value), str(text))], answer) is not None:
                await self._guard(f"check {selector}", radio.check())
                return
        raise BrowserAutomationError(f"no radio option matching '{answer}' in {selector}")

    # -- scanning -----------------------------------------------------------

    async def scan_controls(self) -> Sequence[PageControl]:
        raw = await self._guard("scan controls", self._ensure_page().evaluate(_SCAN_CONTROLS_JS))
        return [PageControl.from_dict(item) for item in raw or []]


class PlaywrightSessionFactory:
    """Launches a fresh ``PlaywrightBrowserSession`` per application."""

    def __init__(
        self,
        *,
        headless: bool = True,
        navigation_timeout_seconds: float = 30.0,
        page_settle_seconds: float = 2.0,
    ) -> None:
        self._headless = headless
        self._navigation_timeout_seconds = navigation_timeout_seconds
        self._page_settle_seconds = page_settle_seconds

    async def open_session(self) -> PlaywrightBrowserSession:
        session = PlaywrightBrowserSession(
            headless=self._headless,
            navigation_timeout_seconds=self._navigation_timeout_seconds,
            page_settle_seconds=self._page_settle_seconds,
        )
        await session.launch()
        return session


def _first_containing(pairs: Any, answer: str) -> str | None:
    """Return the value of the first (value, text) pair containing ``answer``."""
    needle = answer.strip().lower()
    for value, text in pairs:
        if needle in text.strip().lower() or needle in value.strip().lower():
            return value
    return None
