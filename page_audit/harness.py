"""Harness orchestrating server, browser observation, audit and policy."""

import logging
from collections.abc import Callable, Collection
from contextlib import AbstractAsyncContextManager, AsyncExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from page_audit.audit import EngineHost, QualityAuditRunner
from page_audit.browser.base import BrowserSession, IdlePolicy
from page_audit.config import HarnessSettings
from page_audit.engines.base import AuditEngine
from page_audit.models.report import AuditReport
from page_audit.models.verdict import Verdict
from page_audit.observers.console import ConsoleObserver, ConsoleSummary
from page_audit.observers.network import NetworkObserver, NetworkSummary
from page_audit.policy import PolicyEvaluator
from page_audit.report_writer import ReportWriter
from page_audit.server import ServerLauncher

log = logging.getLogger(__name__)

type Check = Literal["network", "console", "lighthouse"]
type BrowserFactory = Callable[[], AbstractAsyncContextManager[BrowserSession]]

ALL_CHECKS: frozenset[Check] = frozenset({"network", "console", "lighthouse"})


@dataclass(frozen=True, kw_only=True)
class HarnessResult:
    """Everything a harness run produced."""

    verdict: Verdict
    network: NetworkSummary
    console: ConsoleSummary
    report: AuditReport
    report_path: Path | None = None
    screenshot_path: Path | None = None


@dataclass(frozen=True, kw_only=True)
class Observation:
    """Frozen output of the browser session."""

    network: NetworkSummary
    console: ConsoleSummary
    screenshot_path: Path | None


@dataclass(frozen=True, kw_only=True)
class AuditHarness:
    """Runs one self-contained audit.

    Every spawned process is registered on a single exit stack, so the
    server, the audit engine host and the browser session are released on
    success, on timeouts and on unexpected errors alike.
    """

    settings: HarnessSettings
    browser_factory: BrowserFactory
    server_launcher: ServerLauncher
    audit_runner: QualityAuditRunner
    report_writer: ReportWriter
    evaluator: PolicyEvaluator = field(default_factory=PolicyEvaluator)

    @classmethod
    def from_settings(
        cls,
        settings: HarnessSettings,
        browser_factory: BrowserFactory,
        engine: AuditEngine,
    ) -> "AuditHarness":
        """Wire the harness components from configuration."""
        return cls(
            settings=settings,
            browser_factory=browser_factory,
            server_launcher=ServerLauncher(
                settle_delay=settings.timeouts.server_ready,
                failure_pattern=settings.server.failure_pattern,
            ),
            audit_runner=QualityAuditRunner(
                engine=engine,
                chrome_path=settings.chrome.path,
                chrome_flags=settings.chrome.flags,
                debugging_port=settings.chrome.debugging_port,
                startup_timeout=settings.timeouts.chrome_launch,
                audit_timeout=settings.timeouts.audit_run,
            ),
            report_writer=ReportWriter(
                report_path=settings.report_path,
                screenshot_path=settings.screenshot_path,
            ),
        )

    async def run(self, checks: Collection[Check] = ALL_CHECKS) -> HarnessResult:
        """Run the selected checks and evaluate the verdict.

        Raises:
            HarnessError: If a process or the engine fails; no verdict is
                produced in that case

        """
        settings = self.settings
        log.info("Running checks: %s", ", ".join(sorted(checks)))

        async with AsyncExitStack() as stack:
            await stack.enter_async_context(
                self.server_launcher.launched(
                    settings.server.command,
                    settings.server.readiness_pattern,
                    settings.timeouts.server_startup,
                    settings.timeouts.server_startup_max,
                )
            )

            host: EngineHost | None = None
            if "lighthouse" in checks:
                host = await stack.enter_async_context(self.audit_runner.launch())

            observation = Observation(
                network=NetworkSummary.empty(),
                console=ConsoleSummary.empty(),
                screenshot_path=None,
            )
            if "network" in checks or "console" in checks:
                observation = await self._observe(checks)

            report = AuditReport.empty()
            if host is not None:
                report = await host.audit(
                    settings.route_url("/"), settings.lighthouse.categories
                )

        verdict = self.evaluator.evaluate(
            observation.network, observation.console, report, settings.thresholds
        )

        report_path = None
        if "lighthouse" in checks:
            report_path = self.report_writer.write_report(report)

        return HarnessResult(
            verdict=verdict,
            network=observation.network,
            console=observation.console,
            report=report,
            report_path=report_path,
            screenshot_path=observation.screenshot_path,
        )

    async def _observe(self, checks: Collection[Check]) -> Observation:
        """Drive the browser and freeze both observers.

        The network log is frozen as soon as the first route settles, so only
        the initial page load counts towards lazy-loading violations. Later
        routes and clicks only feed the console log.
        """
        settings = self.settings
        timeouts = settings.timeouts
        network_observer = NetworkObserver(origin=settings.server.base_url)
        console_observer = ConsoleObserver()
        first_route, *other_routes = settings.test_routes or ("/",)

        async with self.browser_factory() as session:
            session.subscribe("request", network_observer.record)
            session.subscribe("requestfailed", network_observer.record_failure)
            session.subscribe("console", console_observer.record)
            session.subscribe("pageerror", console_observer.record)

            await session.navigate(
                settings.route_url(first_route),
                IdlePolicy(
                    timeout=timeouts.page_navigation,
                    quiet_period=timeouts.network_idle,
                ),
            )
            network_observer.freeze()

            screenshot_path = self.report_writer.screenshot_path
            await session.screenshot(screenshot_path)

            if "console" in checks:
                await session.interact(
                    settings.interaction.max_buttons_to_click,
                    timeouts.click,
                    timeouts.after_click,
                )
                for route in other_routes:
                    await session.navigate(
                        settings.route_url(route),
                        IdlePolicy(
                            timeout=timeouts.page_navigation,
                            quiet_period=timeouts.between_routes,
                        ),
                    )
            console_observer.freeze()

        network = NetworkSummary.empty()
        if "network" in checks:
            network = network_observer.classify(settings.expected_absent_bundles)
            log.info("Observed %d script request(s)", len(network.script_urls))

        console = ConsoleSummary.empty()
        if "console" in checks:
            console = console_observer.summarize()

        return Observation(
            network=network, console=console, screenshot_path=screenshot_path
        )
