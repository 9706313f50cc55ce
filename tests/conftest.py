"""Shared fixtures."""

from collections.abc import Generator
from typing import Any

import pytest
from aioresponses import aioresponses as aioresponses_cls

from page_audit.process import ProcessHandle, spawn


@pytest.fixture
def aioresponses() -> Generator[aioresponses_cls, None, None]:
    """Intercept aiohttp requests."""
    with aioresponses_cls() as mocked:
        yield mocked


@pytest.fixture
def spawned(monkeypatch: pytest.MonkeyPatch) -> list[ProcessHandle]:
    """Collect the handle of every process the server and audit runner spawn."""
    handles: list[ProcessHandle] = []

    async def tracking_spawn(*argv: str, **kwargs: Any) -> ProcessHandle:
        handle = await spawn(*argv, **kwargs)
        handles.append(handle)
        return handle

    monkeypatch.setattr("page_audit.server.spawn", tracking_spawn)
    monkeypatch.setattr("page_audit.audit.spawn", tracking_spawn)
    return handles
