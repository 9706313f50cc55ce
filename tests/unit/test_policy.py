"""Tests for the policy evaluator."""

import pytest

from page_audit.config import Thresholds
from page_audit.models.report import AuditReport
from page_audit.observers.console import ConsoleSummary
from page_audit.observers.network import NetworkSummary
from page_audit.policy import PolicyEvaluator
from page_audit.testing.factories import ObservedRequestFactory
from page_audit.testing.lighthouse.payloads import audit, lighthouse_result

CLEAN_SCORES = {
    "performance": 0.95,
    "accessibility": 0.98,
    "best-practices": 1.0,
    "seo": 0.92,
}


@pytest.fixture
def evaluator() -> PolicyEvaluator:
    """Create evaluator."""
    return PolicyEvaluator()


@pytest.fixture
def thresholds() -> Thresholds:
    """Default thresholds."""
    return Thresholds()


@pytest.fixture
def clean_report() -> AuditReport:
    """Report with all categories above their thresholds."""
    return AuditReport.from_engine_output(lighthouse_result(scores=CLEAN_SCORES))


def test_scenario_warnings_only_passes(
    evaluator: PolicyEvaluator, thresholds: Thresholds, clean_report: AuditReport
) -> None:
    """Warnings alone do not fail the run."""
    console = ConsoleSummary(
        error_count=0, warning_count=2, warnings=("deprecated API", "slow frame")
    )

    verdict = evaluator.evaluate(
        NetworkSummary.empty(), console, clean_report, thresholds
    )

    assert verdict.passed
    assert verdict.state == "passed"
    assert verdict.reasons == ()
    assert verdict.exit_code == 0
    assert "2 console warning(s) (non-fatal)" in verdict.diagnostics


def test_scenario_console_error_fails_with_single_reason(
    evaluator: PolicyEvaluator, thresholds: Thresholds, clean_report: AuditReport
) -> None:
    """One console error fails with exactly one console reason."""
    console = ConsoleSummary(error_count=1, errors=("Uncaught TypeError: boom",))

    verdict = evaluator.evaluate(
        NetworkSummary.empty(), console, clean_report, thresholds
    )

    assert verdict.state == "failed"
    assert verdict.exit_code == 1
    assert len(verdict.reasons) == 1
    assert "console error" in verdict.reasons[0]
    assert "Uncaught TypeError: boom" in verdict.reasons[0]


def test_scenario_lazy_bundle_violation_fails(
    evaluator: PolicyEvaluator, thresholds: Thresholds, clean_report: AuditReport
) -> None:
    """A lazy bundle loaded on initial page load fails the run."""
    network = NetworkSummary(
        violations=frozenset({"vendor-charts"}),
        script_urls=("/assets/vendor-charts.abc123.js",),
    )

    verdict = evaluator.evaluate(
        network, ConsoleSummary.empty(), clean_report, thresholds
    )

    assert verdict.state == "failed"
    assert verdict.reasons == (
        "Lazy-loaded bundles fetched on initial page load: vendor-charts",
    )


def test_category_below_threshold_fails(
    evaluator: PolicyEvaluator, thresholds: Thresholds
) -> None:
    """Category scores below their minimum fail the run."""
    report = AuditReport.from_engine_output(
        lighthouse_result(scores={**CLEAN_SCORES, "performance": 0.79})
    )

    verdict = evaluator.evaluate(
        NetworkSummary.empty(), ConsoleSummary.empty(), report, thresholds
    )

    assert verdict.state == "failed"
    assert verdict.reasons == ("Performance score 79 is below threshold 80",)


def test_score_equal_to_threshold_passes(
    evaluator: PolicyEvaluator, thresholds: Thresholds
) -> None:
    """Comparison is strict on the 0-1 scale."""
    report = AuditReport.from_engine_output(
        lighthouse_result(scores={**CLEAN_SCORES, "performance": 0.8})
    )

    verdict = evaluator.evaluate(
        NetworkSummary.empty(), ConsoleSummary.empty(), report, thresholds
    )

    assert verdict.passed


def test_all_reasons_reported_in_order(
    evaluator: PolicyEvaluator, thresholds: Thresholds
) -> None:
    """Evaluation continues after the first failure."""
    network = NetworkSummary(violations=frozenset({"vendor-markdown", "vendor-charts"}))
    console = ConsoleSummary(error_count=2, errors=("a", "b"))
    report = AuditReport.from_engine_output(
        lighthouse_result(scores={**CLEAN_SCORES, "seo": 0.5, "accessibility": 0.6})
    )

    verdict = evaluator.evaluate(network, console, report, thresholds)

    assert verdict.reasons == (
        "Lazy-loaded bundles fetched on initial page load: "
        "vendor-charts, vendor-markdown",
        "2 console error(s) detected: a; b",
        "Accessibility score 60 is below threshold 90",
        "Seo score 50 is below threshold 90",
    )


def test_evaluation_is_pure(evaluator: PolicyEvaluator, thresholds: Thresholds) -> None:
    """Same inputs always produce the same verdict."""
    network = NetworkSummary(violations=frozenset({"vendor-charts", "vendor-supabase"}))
    console = ConsoleSummary(error_count=1, errors=("x",), warning_count=1)
    report = AuditReport.from_engine_output(
        lighthouse_result(
            scores={**CLEAN_SCORES, "performance": 0.5},
            audits={
                "unused-javascript": audit(score=0.4),
                "render-blocking-resources": audit(
                    audit_id="render-blocking-resources",
                    title="Eliminate render-blocking resources",
                    score=0.5,
                ),
            },
        )
    )

    first = evaluator.evaluate(network, console, report, thresholds)
    second = evaluator.evaluate(network, console, report, thresholds)

    assert first == second


@pytest.mark.parametrize("score", [0.0, 0.5, 0.8, 0.85, 1.0])
def test_raising_threshold_never_turns_failure_into_pass(
    evaluator: PolicyEvaluator, score: float
) -> None:
    """Category comparison is monotonic in the threshold."""
    report = AuditReport.from_engine_output(
        lighthouse_result(scores={"performance": score})
    )
    verdicts = [
        evaluator.evaluate(
            NetworkSummary.empty(),
            ConsoleSummary.empty(),
            report,
            Thresholds(categories={"performance": minimum}),
        )
        for minimum in (0.0, 0.25, 0.5, 0.75, 0.8, 0.9, 1.0)
    ]

    states = [v.state for v in verdicts]
    first_failure = states.index("failed") if "failed" in states else len(states)
    assert all(state == "failed" for state in states[first_failure:])


def test_audits_below_one_are_diagnostics_only(
    evaluator: PolicyEvaluator, thresholds: Thresholds
) -> None:
    """Non-informative audits under a perfect score are surfaced, not blocking."""
    report = AuditReport.from_engine_output(
        lighthouse_result(
            scores=CLEAN_SCORES,
            audits={
                "unused-javascript": audit(score=0.42),
                "diagnostics": audit(
                    audit_id="diagnostics",
                    title="Diagnostics",
                    score=0.0,
                    score_display_mode="informative",
                ),
                "is-on-https": audit(
                    audit_id="is-on-https", title="Uses HTTPS", score=None
                ),
            },
        )
    )

    verdict = evaluator.evaluate(
        NetworkSummary.empty(), ConsoleSummary.empty(), report, thresholds
    )

    assert verdict.passed
    assert verdict.diagnostics == (
        "Reduce unused JavaScript (42%): Reduce unused JavaScript and defer "
        "loading scripts.",
    )


def test_opportunities_are_listed_with_savings(
    evaluator: PolicyEvaluator, thresholds: Thresholds
) -> None:
    """Opportunities with positive savings are reported as diagnostics."""
    report = AuditReport.from_engine_output(
        lighthouse_result(
            scores=CLEAN_SCORES,
            audits={
                "unused-javascript": audit(
                    score=1.0, numeric_value=450.4, details_type="opportunity"
                ),
                "offscreen-images": audit(
                    audit_id="offscreen-images",
                    title="Defer offscreen images",
                    score=1.0,
                    numeric_value=0,
                    details_type="opportunity",
                ),
            },
        )
    )

    verdict = evaluator.evaluate(
        NetworkSummary.empty(), ConsoleSummary.empty(), report, thresholds
    )

    assert verdict.passed
    assert verdict.diagnostics == (
        "Opportunity: Reduce unused JavaScript (potential savings 450ms)",
    )


def test_audit_thresholds_block_when_configured(
    evaluator: PolicyEvaluator,
) -> None:
    """Audit-level thresholds turn diagnostics into failures."""
    report = AuditReport.from_engine_output(
        lighthouse_result(
            scores=CLEAN_SCORES, audits={"unused-javascript": audit(score=0.42)}
        )
    )

    verdict = evaluator.evaluate(
        NetworkSummary.empty(),
        ConsoleSummary.empty(),
        report,
        Thresholds(audits={"unused-javascript": 0.9}),
    )

    assert verdict.state == "failed"
    assert verdict.reasons == (
        "Audit Reduce unused JavaScript score 42 is below threshold 90",
    )


def test_null_and_missing_categories_are_diagnostics(
    evaluator: PolicyEvaluator, thresholds: Thresholds
) -> None:
    """Inapplicable or absent categories never fail the run."""
    report = AuditReport.from_engine_output(
        lighthouse_result(scores={"performance": None, "accessibility": 1.0})
    )

    verdict = evaluator.evaluate(
        NetworkSummary.empty(), ConsoleSummary.empty(), report, thresholds
    )

    assert verdict.passed
    assert "Category Performance has no score" in verdict.diagnostics
    assert "Category seo missing from report" in verdict.diagnostics


def test_empty_report_skips_category_checks(
    evaluator: PolicyEvaluator, thresholds: Thresholds
) -> None:
    """Runs without an audit do not report missing categories."""
    verdict = evaluator.evaluate(
        NetworkSummary.empty(), ConsoleSummary.empty(), AuditReport.empty(), thresholds
    )

    assert verdict.passed
    assert verdict.diagnostics == ()


def test_failed_requests_are_diagnostics(
    evaluator: PolicyEvaluator, thresholds: Thresholds
) -> None:
    """Failed requests are visible but do not fail the run."""
    failed = ObservedRequestFactory.build(
        url="http://localhost:4173/api/data", failure="net::ERR_ABORTED"
    )
    network = NetworkSummary(failed_requests=(failed,))

    verdict = evaluator.evaluate(
        network, ConsoleSummary.empty(), AuditReport.empty(), thresholds
    )

    assert verdict.passed
    assert verdict.diagnostics == (
        "Failed request http://localhost:4173/api/data: net::ERR_ABORTED",
    )
