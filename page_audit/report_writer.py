"""Persist audit artifacts to the output directory."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from page_audit.models.report import AuditReport

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ReportWriter:
    """Writes artifacts to fixed paths; re-running overwrites them."""

    report_path: Path
    screenshot_path: Path

    def prepare(self) -> None:
        """Create the output directories."""
        self.report_path.parent.mkdir(parents=True, exist_ok=True)
        self.screenshot_path.parent.mkdir(parents=True, exist_ok=True)

    def write_report(self, report: AuditReport) -> Path:
        """Write the raw engine report as JSON and return its path."""
        self.prepare()
        self.report_path.write_text(json.dumps(report.raw, indent=2), encoding="utf-8")
        log.info("Audit report saved to %s", self.report_path)
        return self.report_path
