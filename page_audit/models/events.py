"""Events captured from a browser session."""

from dataclasses import dataclass
from typing import Literal

type Severity = Literal["error", "warning", "info"]


@dataclass(frozen=True, kw_only=True)
class ObservedRequest:
    """A resource request issued by the page.

    ``failure`` is set only for requests reported through the
    ``requestfailed`` subscription.
    """

    url: str
    resource_kind: str
    timestamp: float
    failure: str | None = None


@dataclass(frozen=True, kw_only=True)
class ConsoleEvent:
    """A console message or uncaught page error."""

    severity: Severity
    text: str
    timestamp: float
    location: str | None = None
