"""Configuration for the Lighthouse audit engine."""

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, Field


class LighthouseConfig(BaseModel):
    """Configuration for the Lighthouse audit engine."""

    command: Sequence[str] = Field(default_factory=lambda: ["lighthouse"])
    log_level: Literal["silent", "error", "info", "verbose"] = "error"
    preset: Literal["desktop", "perf", "experimental"] | None = "desktop"
    extra_flags: Sequence[str] = Field(default_factory=list)
