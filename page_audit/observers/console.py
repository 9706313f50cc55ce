"""Record console output and uncaught page errors."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from page_audit.models.events import ConsoleEvent

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ConsoleSummary:
    """Errors and warnings seen during a browser session, in arrival order."""

    error_count: int = 0
    warning_count: int = 0
    errors: Sequence[str] = field(default_factory=tuple)
    warnings: Sequence[str] = field(default_factory=tuple)

    @property
    def clean(self) -> bool:
        """Whether no errors and no warnings were seen."""
        return self.error_count == 0 and self.warning_count == 0

    @classmethod
    def empty(cls) -> "ConsoleSummary":
        """Summary for runs that skip the console check."""
        return cls()


def summarize_events(events: Sequence[ConsoleEvent]) -> ConsoleSummary:
    """Count and collect errors and warnings; info messages are ignored."""
    errors = tuple(_describe(e) for e in events if e.severity == "error")
    warnings = tuple(_describe(e) for e in events if e.severity == "warning")
    return ConsoleSummary(
        error_count=len(errors),
        warning_count=len(warnings),
        errors=errors,
        warnings=warnings,
    )


def _describe(event: ConsoleEvent) -> str:
    if event.location:
        return f"{event.text} (at {event.location})"
    return event.text


class ConsoleObserver:
    """Append-only log of console events.

    The observer only reports; turning errors into a failure is left to
    the policy evaluation.
    """

    def __init__(self) -> None:
        self._events: list[ConsoleEvent] = []
        self._frozen = False

    @property
    def events(self) -> Sequence[ConsoleEvent]:
        """Events recorded so far, in arrival order."""
        return tuple(self._events)

    def record(self, event: ConsoleEvent) -> None:
        """Append a console event."""
        if self._frozen:
            log.debug("Ignoring console event after navigation settled: %s", event.text)
            return
        self._events.append(event)
        if event.severity == "error":
            log.info("Console error: %s", event.text)
        elif event.severity == "warning":
            log.info("Console warning: %s", event.text)

    def freeze(self) -> None:
        """Close the log; later events are dropped."""
        self._frozen = True

    def summarize(self) -> ConsoleSummary:
        """Summarize the frozen log."""
        if not self._frozen:
            raise RuntimeError("Console log must be frozen before summarizing")
        return summarize_events(self._events)
