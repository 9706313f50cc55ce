"""CLI entry point for the page audit harness."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Collection
from functools import partial
from typing import Any

from pydantic import ValidationError

from page_audit.config import HarnessSettings, Thresholds
from page_audit.errors import HarnessError
from page_audit.harness import ALL_CHECKS, AuditHarness, Check, HarnessResult
from page_audit.models.verdict import ExitCode
from page_audit.providers.loading import (
    BROWSER_GROUP,
    ENGINE_GROUP,
    ProviderNotFoundError,
    load_provider_manifest,
)

STATUS_SYMBOLS = {
    "passed": "✅",
    "warning": "⚠️",
    "failed": "❌",
    "error": "❗",
}

CHECK_CHOICES: dict[str, frozenset[Check]] = {
    "all": ALL_CHECKS,
    "network": frozenset({"network"}),
    "console": frozenset({"console"}),
    "lighthouse": frozenset({"lighthouse"}),
}


def score_symbol(score: float | None, thresholds: Thresholds) -> str:
    """Pick the presentation symbol for a 0-1 score."""
    if score is None or score < thresholds.poor:
        return STATUS_SYMBOLS["failed"]
    if score >= thresholds.excellent:
        return STATUS_SYMBOLS["passed"]
    return STATUS_SYMBOLS["warning"]


def display_score(score: float | None) -> str:
    """Format a 0-1 score on the 0-100 presentation scale."""
    return "n/a" if score is None else str(round(score * 100))


def log_results_summary(
    log: logging.Logger, result: HarnessResult, thresholds: Thresholds
) -> None:
    """Log a formatted summary of the audit results and the verdict."""
    if result.report.categories:
        log.info("=" * 60)
        log.info("Audit Scores:")
        log.info("=" * 60)
        for category in result.report.categories.values():
            log.info(
                "%s %s: %s",
                score_symbol(category.score, thresholds),
                category.title,
                display_score(category.score),
            )

    if result.network.script_urls:
        log.info("=" * 60)
        log.info(
            "Network Analysis: %d script(s) loaded", len(result.network.script_urls)
        )
        log.info("=" * 60)
        for name in sorted(result.network.loaded_bundle_names):
            log.info("  %s", name)

    log.info("=" * 60)
    log.info(
        "Console: %d error(s), %d warning(s)",
        result.console.error_count,
        result.console.warning_count,
    )
    for index, text in enumerate(result.console.errors, start=1):
        log.info("  %d. %s", index, text)

    if result.verdict.diagnostics:
        log.info("=" * 60)
        log.info("Diagnostics:")
        log.info("=" * 60)
        for diagnostic in result.verdict.diagnostics:
            log.info("%s %s", STATUS_SYMBOLS["warning"], diagnostic)

    log.info("=" * 60)
    log.info(
        "%s Verdict: %s",
        STATUS_SYMBOLS[result.verdict.state],
        result.verdict.state.upper(),
    )
    for reason in result.verdict.reasons:
        log.info("  Reason: %s", reason)


def format_output(result: HarnessResult) -> dict[str, Any]:
    """Format harness results for JSON output."""
    return {
        "status": result.verdict.state,
        "reasons": list(result.verdict.reasons),
        "diagnostics": list(result.verdict.diagnostics),
        "scores": {
            key: category.score for key, category in result.report.categories.items()
        },
        "network": {
            "scripts": len(result.network.script_urls),
            "violations": sorted(result.network.violations),
        },
        "console": {
            "errors": result.console.error_count,
            "warnings": result.console.warning_count,
        },
        "report_path": str(result.report_path) if result.report_path else None,
        "screenshot_path": (
            str(result.screenshot_path) if result.screenshot_path else None
        ),
    }


def internal_error_code(settings: HarnessSettings) -> int:
    """Exit code used when the harness itself fails."""
    if settings.distinct_internal_exit_code:
        return ExitCode.INTERNAL_ERROR
    return ExitCode.FAILED


async def run(settings: HarnessSettings, checks: Collection[Check] = ALL_CHECKS) -> int:
    """Run the harness and return exit code."""
    log = logging.getLogger("page_audit")

    try:
        log.info("Loading browser provider: %s", settings.browser_provider)
        browser_manifest = load_provider_manifest(
            BROWSER_GROUP, settings.browser_provider
        )
        browser_config = browser_manifest.config_cls(**settings.browser_config)

        log.info("Loading audit engine: %s", settings.audit_engine)
        engine_manifest = load_provider_manifest(ENGINE_GROUP, settings.audit_engine)
        engine_config = engine_manifest.config_cls(**settings.engine_config)

        async with engine_manifest.factory(engine_config) as engine:
            harness = AuditHarness.from_settings(
                settings,
                browser_factory=partial(browser_manifest.factory, browser_config),
                engine=engine,
            )
            result = await harness.run(checks)
    except (HarnessError, ProviderNotFoundError, ValidationError) as exc:
        log.error(
            "%s Harness failed: %s: %s",
            STATUS_SYMBOLS["error"],
            type(exc).__name__,
            exc,
        )
        print(
            json.dumps(
                {"status": "error", "error": type(exc).__name__, "message": str(exc)},
                indent=2,
            )
        )
        return internal_error_code(settings)

    log_results_summary(log, result, settings.thresholds)
    print(json.dumps(format_output(result), indent=2))

    return result.verdict.exit_code


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Audit a built web application served by its preview server"
    )
    parser.add_argument(
        "check",
        nargs="?",
        default="all",
        choices=sorted(CHECK_CHOICES),
        help="Checks to run (default: all)",
    )
    args = parser.parse_args()

    try:
        settings = HarnessSettings()
    except ValidationError as exc:
        logging.basicConfig(level=logging.INFO, stream=sys.stderr)
        logging.getLogger("page_audit").error("Invalid configuration: %s", exc)
        sys.exit(ExitCode.FAILED)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(run(settings, CHECK_CHOICES[args.check]))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
