"""Combine observations and audit scores into a verdict."""

import logging

from page_audit.config import Thresholds
from page_audit.models.report import AuditReport
from page_audit.models.verdict import Verdict, VerdictState
from page_audit.observers.console import ConsoleSummary
from page_audit.observers.network import NetworkSummary

log = logging.getLogger(__name__)

MAX_LISTED_ERRORS = 5
DESCRIPTION_PREVIEW_CHARS = 80


def _percent(score: float) -> int:
    return round(score * 100)


def _preview(text: str, limit: int = DESCRIPTION_PREVIEW_CHARS) -> str:
    text = text.strip()
    return text if len(text) <= limit else f"{text[:limit]}..."


class PolicyEvaluator:
    """Applies pass/fail thresholds in a single pass.

    Every check runs even after the first failure so that all reasons are
    reported together. Audit findings below a perfect score are surfaced as
    diagnostics and only block when an audit threshold is configured.
    """

    def evaluate(
        self,
        network_summary: NetworkSummary,
        console_summary: ConsoleSummary,
        audit_report: AuditReport,
        thresholds: Thresholds,
    ) -> Verdict:
        """Evaluate the frozen inputs and return the verdict."""
        state: VerdictState = "pending"
        reasons: list[str] = []
        diagnostics: list[str] = []

        if network_summary.violations:
            reasons.append(
                "Lazy-loaded bundles fetched on initial page load: "
                + ", ".join(sorted(network_summary.violations))
            )
            state = "failed"

        for request in network_summary.failed_requests:
            diagnostics.append(f"Failed request {request.url}: {request.failure}")

        if console_summary.error_count > 0:
            listed = "; ".join(console_summary.errors[:MAX_LISTED_ERRORS])
            reasons.append(
                f"{console_summary.error_count} console error(s) detected: {listed}"
            )
            state = "failed"

        if console_summary.warning_count > 0:
            diagnostics.append(
                f"{console_summary.warning_count} console warning(s) (non-fatal)"
            )

        for category_id, minimum in thresholds.categories.items():
            category = audit_report.categories.get(category_id)
            if category is None:
                if audit_report.categories:
                    diagnostics.append(f"Category {category_id} missing from report")
                continue
            if category.score is None:
                diagnostics.append(f"Category {category.title} has no score")
                continue
            if category.score < minimum:
                reasons.append(
                    f"{category.title} score {_percent(category.score)} "
                    f"is below threshold {_percent(minimum)}"
                )
                state = "failed"

        for audit_id, minimum in thresholds.audits.items():
            audit = audit_report.audits.get(audit_id)
            if audit is None or audit.score is None:
                continue
            if audit.score < minimum:
                reasons.append(
                    f"Audit {audit.title} score {_percent(audit.score)} "
                    f"is below threshold {_percent(minimum)}"
                )
                state = "failed"

        for audit in audit_report.audits.values():
            if audit.is_opportunity and audit.savings_ms > 0:
                diagnostics.append(
                    f"Opportunity: {audit.title} "
                    f"(potential savings {round(audit.savings_ms)}ms)"
                )

        for audit in audit_report.audits.values():
            if (
                audit.score is not None
                and audit.score < 1
                and audit.score_display_mode != "informative"
            ):
                description = _preview(audit.description) or "No description"
                diagnostics.append(
                    f"{audit.title} ({_percent(audit.score)}%): {description}"
                )

        if state == "pending":
            state = "passed"

        log.debug("Policy evaluated: %s (%d reason(s))", state, len(reasons))
        return Verdict(
            state=state,
            reasons=tuple(reasons),
            diagnostics=tuple(diagnostics),
        )
