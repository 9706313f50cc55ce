"""Handles for spawned processes, terminated as a whole process group."""

import asyncio
import logging
import os
import signal
import subprocess
import sys
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any, Literal, Self

log = logging.getLogger(__name__)

type ProcessState = Literal["starting", "ready", "terminated"]

DEFAULT_TERMINATE_GRACE = 5.0


@dataclass(kw_only=True)
class ProcessHandle:
    """An externally spawned process owned by exactly one launcher.

    The process runs in its own process group so that ``terminate`` also
    reaches any children it spawned (``npm run preview`` starts the actual
    server as a child, for example).
    """

    name: str
    process: asyncio.subprocess.Process = field(repr=False)
    state: ProcessState = "starting"
    output_task: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def pid(self) -> int:
        """Process id of the group leader."""
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        """Exit status of the group leader, None while it is running."""
        return self.process.returncode

    @property
    def stdout(self) -> asyncio.StreamReader | None:
        """Output stream, if it was captured."""
        return self.process.stdout

    def mark_ready(self) -> None:
        """Record that the process signalled readiness."""
        if self.state != "starting":
            raise RuntimeError(f"Cannot mark {self.name} ready from state {self.state}")
        self.state = "ready"

    async def terminate(self, grace: float = DEFAULT_TERMINATE_GRACE) -> None:
        """Terminate the process group, escalating to SIGKILL after ``grace``.

        Safe to call more than once and on processes that already exited.
        """
        if self.state == "terminated":
            return

        log.info("Terminating %s (pid=%d)", self.name, self.pid)
        try:
            self._signal_group(force=False)
            try:
                await asyncio.wait_for(self.process.wait(), timeout=grace)
            except TimeoutError:
                log.warning(
                    "%s did not exit within %.1fs, killing process group",
                    self.name,
                    grace,
                )
                self._signal_group(force=True)
                await self.process.wait()
        except asyncio.CancelledError:
            self._signal_group(force=True)
            raise
        finally:
            self.state = "terminated"
            if self.output_task is not None and not self.output_task.done():
                self.output_task.cancel()

    def _signal_group(self, *, force: bool) -> None:
        if sys.platform == "win32":
            if self.process.returncode is None:
                self.process.kill()
            return
        try:
            os.killpg(self.pid, signal.SIGKILL if force else signal.SIGTERM)
        except (ProcessLookupError, PermissionError):
            pass

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.terminate()


async def spawn(
    *argv: str,
    name: str,
    stdout: int = asyncio.subprocess.DEVNULL,
    stderr: int = asyncio.subprocess.DEVNULL,
    env: dict[str, str] | None = None,
) -> ProcessHandle:
    """Start ``argv`` detached in a new process group.

    Raises:
        FileNotFoundError: If the executable does not exist
        PermissionError: If the executable cannot be run

    """
    kwargs: dict[str, Any] = {}
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True

    process = await asyncio.create_subprocess_exec(
        *argv,
        stdout=stdout,
        stderr=stderr,
        env=env,
        **kwargs,
    )
    log.debug("Spawned %s (pid=%d): %s", name, process.pid, " ".join(argv))
    return ProcessHandle(name=name, process=process)
