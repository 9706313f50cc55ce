"""Abstract base class for scripted browser sessions."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from page_audit.models.events import ConsoleEvent, ObservedRequest

log = logging.getLogger(__name__)

type EventKind = Literal["console", "pageerror", "request", "requestfailed"]
type EventHandler = Callable[[Any], None]

EVENT_KINDS: tuple[EventKind, ...] = (
    "console",
    "pageerror",
    "request",
    "requestfailed",
)


@dataclass(frozen=True, kw_only=True)
class IdlePolicy:
    """When a navigation counts as settled.

    The page must reach network idle within ``timeout`` seconds; the session
    then keeps listening for ``quiet_period`` seconds so late events are
    still captured.
    """

    timeout: float = 60.0
    quiet_period: float = 5.0


@dataclass(frozen=True, kw_only=True)
class NavigationResult:
    """Outcome of a settled navigation."""

    url: str
    status: int | None
    duration: float


class BrowserSession(ABC):
    """A browser context and page driven by a capability provider.

    Handlers must be subscribed before the first navigation so that no event
    is lost between attaching a listener and the page starting to load.
    Handlers run on the event loop and must only append to their owner's
    buffer.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[EventHandler]] = {
            kind: [] for kind in EVENT_KINDS
        }
        self._navigated = False
        self._closed = False

    def subscribe(self, kind: EventKind, handler: EventHandler) -> None:
        """Register ``handler`` for events of ``kind``.

        ``console`` and ``pageerror`` handlers receive ``ConsoleEvent``
        values, ``request`` and ``requestfailed`` handlers receive
        ``ObservedRequest`` values.

        Raises:
            RuntimeError: If navigation already started
            ValueError: If ``kind`` is unknown

        """
        if self._navigated:
            raise RuntimeError("Subscriptions must be registered before navigation")
        if kind not in self._handlers:
            raise ValueError(f"Unknown event kind: {kind}")
        self._handlers[kind].append(handler)

    async def navigate(self, url: str, policy: IdlePolicy) -> NavigationResult:
        """Navigate to ``url`` and suspend until ``policy`` is satisfied.

        Raises:
            NavigationTimeout: If the page does not reach network idle in time
            NavigationFailed: If the page cannot be loaded at all

        """
        self._navigated = True
        log.info("Navigating to %s", url)
        started = asyncio.get_running_loop().time()
        status = await self._navigate(url, policy)
        duration = asyncio.get_running_loop().time() - started
        log.info("Navigation to %s settled in %.1fs (status=%s)", url, duration, status)
        return NavigationResult(url=url, status=status, duration=duration)

    async def close(self) -> None:
        """Release browser resources; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        await self._close()
        log.info("Browser session closed")

    def _emit(self, kind: EventKind, event: ConsoleEvent | ObservedRequest) -> None:
        for handler in self._handlers[kind]:
            handler(event)

    @abstractmethod
    async def open(self) -> None:
        """Open the browser, context and page and attach event listeners."""

    @abstractmethod
    async def _navigate(self, url: str, policy: IdlePolicy) -> int | None:
        """Perform the navigation and return the HTTP status, if any."""

    @abstractmethod
    async def interact(
        self, max_clicks: int, click_timeout: float, after_click: float
    ) -> int:
        """Click up to ``max_clicks`` buttons and return how many were clicked.

        Failed clicks are skipped; they never abort the session.
        """

    @abstractmethod
    async def screenshot(self, path: Path) -> None:
        """Capture the current page to ``path``."""

    @abstractmethod
    async def _close(self) -> None:
        """Release provider resources."""
