"""Abstract base class for page-quality audit engines."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, kw_only=True)
class AuditEngine(ABC):
    """Audits a page through an already running browser host.

    The engine does not own the browser host; it only attaches to it over
    the remote-debugging port.
    """

    @abstractmethod
    async def audit(
        self,
        url: str,
        port: int,
        categories: Sequence[str],
    ) -> Mapping[str, Any]:
        """Audit ``url`` and return the engine's raw JSON report.

        Args:
            url: Page to audit
            port: Remote-debugging port of the browser host
            categories: Audit categories to run (e.g., "performance")

        Returns:
            The report as produced by the engine, with ``categories`` and
            ``audits`` sections

        """
