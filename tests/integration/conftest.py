"""Fixtures for integration tests running real processes."""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest

type WaitGoneFn = Callable[[int], Awaitable[bool]]


def process_alive(pid: int) -> bool:
    """Whether ``pid`` exists and is not a zombie."""
    try:
        stat = Path(f"/proc/{pid}/stat").read_text(encoding="utf-8")
    except FileNotFoundError:
        return False
    state = stat.rsplit(")", 1)[1].split()[0]
    return state != "Z"


@pytest.fixture
def wait_gone() -> WaitGoneFn:
    """Poll until a process has exited, giving up after two seconds."""

    async def wait(pid: int) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + 2.0
        while process_alive(pid):
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(0.05)
        return True

    return wait
