"""Playwright browser session implementation."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from playwright.async_api import (
    Browser,
    BrowserContext,
    ConsoleMessage,
    Page,
    Playwright,
    Request,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from page_audit.browser.base import BrowserSession, IdlePolicy
from page_audit.browser.playwright.config import PlaywrightConfig
from page_audit.errors import NavigationFailed, NavigationTimeout
from page_audit.models.events import ConsoleEvent, ObservedRequest, Severity

log = logging.getLogger(__name__)

CONSOLE_SEVERITY: dict[str, Severity] = {
    "error": "error",
    "assert": "warning",
    "warning": "warning",
}


def _seconds_to_ms(seconds: float) -> float:
    return seconds * 1000


class PlaywrightBrowserSession(BrowserSession):
    """Headless Chromium session driven through Playwright."""

    def __init__(self, config: PlaywrightConfig) -> None:
        super().__init__()
        self.config = config
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: PlaywrightConfig
    ) -> AsyncGenerator["PlaywrightBrowserSession", None]:
        """Create an opened session that is closed when the context exits."""
        session = cls(config)
        try:
            await session.open()
            yield session
        finally:
            await session.close()

    @property
    def page(self) -> Page:
        """The page under test."""
        if self._page is None:
            raise RuntimeError("Browser session is not open")
        return self._page

    async def open(self) -> None:
        """Launch Chromium, create a context and page, attach listeners."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=list(self.config.launch_args),
        )
        self._context = await self._browser.new_context(
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            }
        )
        self._page = await self._context.new_page()

        self._page.on("console", self._on_console)
        self._page.on("pageerror", self._on_page_error)
        self._page.on("request", self._on_request)
        self._page.on("requestfailed", self._on_request_failed)
        log.info("Browser session opened (headless=%s)", self.config.headless)

    async def _navigate(self, url: str, policy: IdlePolicy) -> int | None:
        try:
            response = await self.page.goto(
                url,
                wait_until="networkidle",
                timeout=_seconds_to_ms(policy.timeout),
            )
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(
                f"{url} did not reach network idle within {policy.timeout:.1f}s"
            ) from exc
        except PlaywrightError as exc:
            raise NavigationFailed(
                f"Navigation to {url} failed: {exc.message}"
            ) from exc

        await self.page.wait_for_timeout(_seconds_to_ms(policy.quiet_period))
        return response.status if response is not None else None

    async def interact(
        self, max_clicks: int, click_timeout: float, after_click: float
    ) -> int:
        """Click the first buttons on the page to surface runtime errors."""
        if max_clicks <= 0:
            return 0

        buttons = await self.page.locator("button").all()
        clicked = 0
        for button in buttons[:max_clicks]:
            try:
                await button.click(timeout=_seconds_to_ms(click_timeout))
            except PlaywrightError as exc:
                log.debug("Skipping button that could not be clicked: %s", exc)
                continue
            clicked += 1
            await self.page.wait_for_timeout(_seconds_to_ms(after_click))

        log.info("Clicked %d of %d button(s)", clicked, len(buttons))
        return clicked

    async def screenshot(self, path: Path) -> None:
        """Capture a full-page screenshot."""
        path.parent.mkdir(parents=True, exist_ok=True)
        await self.page.screenshot(path=str(path), full_page=True)
        log.info("Screenshot saved to %s", path)

    async def _close(self) -> None:
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None

    def _on_console(self, message: ConsoleMessage) -> None:
        location = message.location
        where = None
        if location and location.get("url"):
            where = f"{location['url']}:{location.get('lineNumber', '?')}"
        self._emit(
            "console",
            ConsoleEvent(
                severity=CONSOLE_SEVERITY.get(message.type, "info"),
                text=message.text,
                timestamp=time.time(),
                location=where,
            ),
        )

    def _on_page_error(self, error: PlaywrightError) -> None:
        self._emit(
            "pageerror",
            ConsoleEvent(severity="error", text=error.message, timestamp=time.time()),
        )

    def _on_request(self, request: Request) -> None:
        self._emit(
            "request",
            ObservedRequest(
                url=request.url,
                resource_kind=request.resource_type,
                timestamp=time.time(),
            ),
        )

    def _on_request_failed(self, request: Request) -> None:
        self._emit(
            "requestfailed",
            ObservedRequest(
                url=request.url,
                resource_kind=request.resource_type,
                timestamp=time.time(),
                failure=request.failure or "unknown error",
            ),
        )
