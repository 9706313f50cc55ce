"""Lighthouse audit engine implementation."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from page_audit.engines.base import AuditEngine
from page_audit.engines.lighthouse.config import LighthouseConfig
from page_audit.process import spawn

log = logging.getLogger(__name__)

LOG_LEVEL_FLAGS: Mapping[str, Sequence[str]] = {
    "silent": ("--quiet",),
    "error": ("--quiet",),
    "info": (),
    "verbose": ("--verbose",),
}

STDERR_TAIL_CHARS = 2000


@dataclass(frozen=True, kw_only=True)
class LighthouseEngine(AuditEngine):
    """Runs the Lighthouse CLI against a browser host on a debugging port."""

    config: LighthouseConfig

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: LighthouseConfig
    ) -> AsyncGenerator["LighthouseEngine", None]:
        """Create the engine."""
        yield cls(config=config)

    def build_command(
        self, url: str, port: int, categories: Sequence[str]
    ) -> Sequence[str]:
        """Build the Lighthouse command line."""
        command = [
            *self.config.command,
            url,
            f"--port={port}",
            "--output=json",
            "--output-path=stdout",
            *LOG_LEVEL_FLAGS[self.config.log_level],
        ]
        if categories:
            command.append(f"--only-categories={','.join(categories)}")
        if self.config.preset:
            command.append(f"--preset={self.config.preset}")
        command.extend(self.config.extra_flags)
        return command

    async def audit(
        self,
        url: str,
        port: int,
        categories: Sequence[str],
    ) -> Mapping[str, Any]:
        """Run Lighthouse and parse the JSON report from its stdout."""
        command = self.build_command(url, port, categories)
        log.info("Running Lighthouse: %s", " ".join(command))

        handle = await spawn(
            *command,
            name="lighthouse",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        async with handle:
            stdout, stderr = await handle.process.communicate()

        if handle.returncode != 0:
            tail = stderr.decode(errors="replace").strip()[-STDERR_TAIL_CHARS:]
            raise RuntimeError(f"Lighthouse exited with {handle.returncode}: {tail}")

        report = json.loads(stdout)
        if not isinstance(report, dict):
            raise ValueError("Lighthouse returned no report")

        if runtime_error := report.get("runtimeError"):
            raise RuntimeError(
                f"Lighthouse runtime error {runtime_error.get('code')}: "
                f"{runtime_error.get('message')}"
            )

        return report
