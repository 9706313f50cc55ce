"""Run a page-quality audit against its own browser host."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp

from page_audit.engines.base import AuditEngine
from page_audit.errors import AuditEngineUnavailable, AuditRunFailed
from page_audit.models.report import AuditReport
from page_audit.process import ProcessHandle, spawn

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class EngineHost:
    """A running browser host the audit engine can attach to."""

    handle: ProcessHandle = field(repr=False)
    port: int
    engine: AuditEngine
    audit_timeout: float

    async def audit(self, target_url: str, categories: Sequence[str]) -> AuditReport:
        """Audit ``target_url`` and return the parsed report.

        Raises:
            AuditRunFailed: If the engine errors, times out or returns an
                unusable report

        """
        log.info("Auditing %s (categories=%s)", target_url, ", ".join(categories))
        try:
            async with asyncio.timeout(self.audit_timeout):
                data = await self.engine.audit(target_url, self.port, categories)
            report = AuditReport.from_engine_output(data)
        except TimeoutError as exc:
            raise AuditRunFailed(
                f"Audit of {target_url} did not finish within {self.audit_timeout:.0f}s"
            ) from exc
        except Exception as exc:
            raise AuditRunFailed(f"Audit of {target_url} failed: {exc}") from exc

        log.info("Audit completed with %d category score(s)", len(report.categories))
        return report


@dataclass(frozen=True, kw_only=True)
class QualityAuditRunner:
    """Launches a dedicated browser host and drives the audit engine on it.

    The host is independent of the scripted browser session: it exists only
    to expose a remote-debugging port to the engine.
    """

    engine: AuditEngine
    chrome_path: str
    chrome_flags: Sequence[str] = ()
    debugging_port: int = 9222
    startup_timeout: float = 3.0
    audit_timeout: float = 300.0
    poll_interval: float = 0.25

    @property
    def devtools_url(self) -> str:
        """DevTools version endpoint of the host."""
        return f"http://127.0.0.1:{self.debugging_port}/json/version"

    async def run(self, target_url: str, categories: Sequence[str]) -> AuditReport:
        """Launch the host, audit ``target_url`` and terminate the host."""
        async with self.launch() as host:
            return await host.audit(target_url, categories)

    @asynccontextmanager
    async def launch(self) -> AsyncGenerator[EngineHost, None]:
        """Start the browser host and terminate it when the context exits.

        Raises:
            AuditEngineUnavailable: If the host cannot be started or its
                debugging endpoint is not reachable within the startup window

        """
        log.info(
            "Starting audit engine host %s on port %d",
            self.chrome_path,
            self.debugging_port,
        )
        try:
            handle = await spawn(
                self.chrome_path,
                *self.chrome_flags,
                f"--remote-debugging-port={self.debugging_port}",
                name="audit-engine-host",
            )
        except OSError as exc:
            raise AuditEngineUnavailable(
                f"Cannot start audit engine host {self.chrome_path}: {exc}"
            ) from exc

        async with handle:
            await self._wait_for_devtools(handle)
            handle.mark_ready()
            yield EngineHost(
                handle=handle,
                port=self.debugging_port,
                engine=self.engine,
                audit_timeout=self.audit_timeout,
            )

    async def _wait_for_devtools(self, handle: ProcessHandle) -> None:
        """Poll the DevTools endpoint until it answers or the window closes."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.startup_timeout
        timeout = aiohttp.ClientTimeout(total=max(self.poll_interval, 1.0))

        async with aiohttp.ClientSession(timeout=timeout) as session:
            while True:
                if handle.returncode is not None:
                    raise AuditEngineUnavailable(
                        f"Audit engine host exited with {handle.returncode} "
                        "before its debugging port opened"
                    )

                try:
                    async with session.get(self.devtools_url) as response:
                        if response.status == 200:
                            version = await response.json()
                            log.info(
                                "Audit engine host ready: %s",
                                version.get("Browser", "unknown browser"),
                            )
                            return
                except (aiohttp.ClientError, TimeoutError) as exc:
                    log.debug("DevTools endpoint not reachable yet: %s", exc)

                if loop.time() >= deadline:
                    raise AuditEngineUnavailable(
                        f"Audit engine host not reachable on port "
                        f"{self.debugging_port} within {self.startup_timeout:.1f}s"
                    )

                await asyncio.sleep(self.poll_interval)
