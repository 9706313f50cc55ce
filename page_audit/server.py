"""Launch the preview server and wait until it is ready to serve."""

import asyncio
import logging
import re
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum

from page_audit.errors import ServerStartFailed, ServerStartTimeout
from page_audit.process import ProcessHandle, spawn

log = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096
MAX_BUFFERED_OUTPUT = 64 * 1024
OUTPUT_TAIL_CHARS = 500
FAILURE_PATTERN = r"(?i)\berror\b"


class Readiness(Enum):
    """How the readiness race was won."""

    MATCHED = "matched"
    SOFT_TIMEOUT = "soft-timeout"


class _OutputWatch:
    """Consumes server output and records readiness or failure markers."""

    def __init__(
        self, pattern: re.Pattern[str], failure_pattern: re.Pattern[str]
    ) -> None:
        self.pattern = pattern
        self.failure_pattern = failure_pattern
        self.matched = asyncio.Event()
        self.output_seen = False
        self.failure_seen = False
        self.closed = False
        self.tail = ""
        self._buffer = ""

    async def consume(self, stream: asyncio.StreamReader) -> None:
        """Read the stream until EOF; keeps draining after a match."""
        while chunk := await stream.read(READ_CHUNK_SIZE):
            self.output_seen = True
            text = chunk.decode(errors="replace")
            self.tail = (self.tail + text)[-OUTPUT_TAIL_CHARS:]
            for line in text.splitlines():
                if line.strip():
                    log.debug("server: %s", line)

            if self.matched.is_set():
                continue
            self._buffer = (self._buffer + text)[-MAX_BUFFERED_OUTPUT:]
            if self.pattern.search(self._buffer):
                self.matched.set()
                self._buffer = ""
            elif self.failure_pattern.search(self._buffer):
                self.failure_seen = True
        self.closed = True

    async def wait_matched(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for the pattern."""
        if self.matched.is_set():
            return True
        if timeout <= 0:
            return False
        try:
            await asyncio.wait_for(self.matched.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True


@dataclass(frozen=True, kw_only=True)
class ServerLauncher:
    """Starts a server process and resolves once it reports readiness."""

    settle_delay: float = 3.0
    failure_pattern: str = FAILURE_PATTERN

    async def launch(
        self,
        command: Sequence[str],
        readiness_pattern: str,
        readiness_timeout: float,
        hard_timeout: float,
    ) -> ProcessHandle:
        """Start ``command`` and wait until it is ready.

        Readiness is a single race with three exits: the pattern shows up in
        the output (ready), ``readiness_timeout`` elapses (ready anyway), or
        ``hard_timeout`` elapses without any output (failure). A server that
        reports an error or exits before the pattern shows up is never assumed
        ready: it gets until ``hard_timeout`` to print the pattern and fails
        otherwise.

        Args:
            command: Command line to run
            readiness_pattern: Regular expression searched in the output
            readiness_timeout: Seconds after which the server is assumed ready
            hard_timeout: Seconds after which silence is a startup failure

        Returns:
            Handle of the running server in ready state

        Raises:
            ServerStartFailed: If the command cannot be executed
            ServerStartTimeout: If the server fails or stays silent until the
                hard deadline

        """
        log.info("Starting server: %s", " ".join(command))
        try:
            handle = await spawn(
                *command,
                name="server",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as exc:
            raise ServerStartFailed(
                f"Cannot start server {command[0]}: {exc}"
            ) from exc

        try:
            readiness = await self._await_readiness(
                handle, re.compile(readiness_pattern), readiness_timeout, hard_timeout
            )
            handle.mark_ready()
            log.info(
                "Server ready (%s), settling for %.1fs",
                readiness.value,
                self.settle_delay,
            )
            await asyncio.sleep(self.settle_delay)
        except BaseException:
            await handle.terminate()
            raise

        return handle

    @asynccontextmanager
    async def launched(
        self,
        command: Sequence[str],
        readiness_pattern: str,
        readiness_timeout: float,
        hard_timeout: float,
    ) -> AsyncGenerator[ProcessHandle, None]:
        """Launch the server and terminate it when the context exits."""
        handle = await self.launch(
            command, readiness_pattern, readiness_timeout, hard_timeout
        )
        async with handle:
            yield handle

    async def _await_readiness(
        self,
        handle: ProcessHandle,
        pattern: re.Pattern[str],
        readiness_timeout: float,
        hard_timeout: float,
    ) -> Readiness:
        if handle.stdout is None:
            raise RuntimeError("Server output is not captured")

        watch = _OutputWatch(pattern, re.compile(self.failure_pattern))
        handle.output_task = asyncio.create_task(watch.consume(handle.stdout))
        started = asyncio.get_running_loop().time()

        if await watch.wait_matched(min(readiness_timeout, hard_timeout)):
            return Readiness.MATCHED

        if hard_timeout <= readiness_timeout:
            if not watch.output_seen:
                raise ServerStartTimeout(
                    f"Server produced no output within {hard_timeout:.1f}s"
                )
            if await watch.wait_matched(readiness_timeout - hard_timeout):
                return Readiness.MATCHED
        elif watch.failure_seen and not self._exited(handle, watch):
            elapsed = asyncio.get_running_loop().time() - started
            if await watch.wait_matched(hard_timeout - elapsed):
                return Readiness.MATCHED

        if watch.failure_seen or self._exited(handle, watch):
            raise ServerStartTimeout(
                f"Server failed before becoming ready "
                f"(exit code {handle.returncode}): {watch.tail.strip()!r}"
            )

        log.warning(
            "Readiness pattern %r not seen within %.1fs, assuming server is ready",
            pattern.pattern,
            readiness_timeout,
        )
        return Readiness.SOFT_TIMEOUT

    @staticmethod
    def _exited(handle: ProcessHandle, watch: _OutputWatch) -> bool:
        return handle.returncode is not None or watch.closed
