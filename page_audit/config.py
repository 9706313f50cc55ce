"""Harness configuration resolved from environment variables and .env files.

Every option has a default; override it with ``PAGE_AUDIT_<SECTION>__<NAME>``,
e.g. ``PAGE_AUDIT_SERVER__PORT=5173`` or
``PAGE_AUDIT_THRESHOLDS__CATEGORIES='{"performance": 0.7}'``.
"""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from page_audit.models.base import Model

type Score = Annotated[float, Field(ge=0, le=1)]
type Seconds = Annotated[float, Field(gt=0)]
type Port = Annotated[int, Field(gt=0, lt=65536)]


def _default_chrome_path() -> str:
    """Chromium installed by ``playwright install chromium``."""
    return str(
        Path.home() / ".cache/ms-playwright/chromium-1208/chrome-linux/chrome"
    )


class ServerSettings(Model):
    """Preview server hosting the built application."""

    protocol: Literal["http", "https"] = "http"
    host: str = "localhost"
    port: Port = 4173
    command: Sequence[str] = ("npm", "run", "preview")
    readiness_pattern: str = r"Local:|http://localhost:"
    failure_pattern: str = r"(?i)\berror\b"

    @property
    def base_url(self) -> str:
        """Root URL of the application under test."""
        return f"{self.protocol}://{self.host}:{self.port}"


class ChromeSettings(Model):
    """Browser host launched for the audit engine."""

    path: str = Field(default_factory=_default_chrome_path)
    debugging_port: Port = 9222
    flags: Sequence[str] = (
        "--headless",
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-gpu",
        "--disable-dev-shm-usage",
    )


class TimeoutSettings(Model):
    """Stage timeouts in seconds."""

    server_startup: Seconds = 8.0
    server_startup_max: Seconds = 30.0
    server_ready: Seconds = 3.0
    page_navigation: Seconds = 60.0
    network_idle: Seconds = 5.0
    between_routes: Seconds = 2.0
    click: Seconds = 2.0
    after_click: Seconds = 0.5
    chrome_launch: Seconds = 3.0
    audit_run: Seconds = 300.0


class InteractionSettings(Model):
    """Interaction used to surface runtime errors after navigation."""

    max_buttons_to_click: int = Field(default=3, ge=0)


class LighthouseSettings(Model):
    """Audit categories and artifact locations."""

    categories: Sequence[str] = (
        "performance",
        "accessibility",
        "best-practices",
        "seo",
    )
    output_dir: Path = Path(".lighthouseci")
    output_filename: str = "lighthouse-report.json"
    screenshot_filename: str = "screenshot.png"


class Thresholds(Model):
    """Score thresholds on the 0-1 scale.

    ``categories`` and ``audits`` are blocking minimums; ``excellent`` and
    ``poor`` only drive how scores are presented.
    """

    excellent: Score = 0.9
    poor: Score = 0.5
    categories: Mapping[str, Score] = Field(
        default_factory=lambda: {
            "performance": 0.8,
            "accessibility": 0.9,
            "best-practices": 0.9,
            "seo": 0.9,
        }
    )
    audits: Mapping[str, Score] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_band_order(self) -> "Thresholds":
        if self.poor > self.excellent:
            raise ValueError(
                f"poor threshold {self.poor} is above excellent threshold "
                f"{self.excellent}"
            )
        return self


class HarnessSettings(BaseSettings):
    """Complete harness configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PAGE_AUDIT_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    chrome: ChromeSettings = Field(default_factory=ChromeSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    interaction: InteractionSettings = Field(default_factory=InteractionSettings)
    lighthouse: LighthouseSettings = Field(default_factory=LighthouseSettings)
    thresholds: Thresholds = Field(default_factory=Thresholds)

    test_routes: Sequence[str] = ("/",)
    expected_absent_bundles: Sequence[str] = (
        "vendor-charts",
        "vendor-supabase",
        "vendor-markdown",
    )

    browser_provider: str = "playwright"
    browser_config: Mapping[str, Any] = Field(default_factory=dict)
    audit_engine: str = "lighthouse"
    engine_config: Mapping[str, Any] = Field(default_factory=dict)

    distinct_internal_exit_code: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @model_validator(mode="after")
    def _check_distinct_ports(self) -> "HarnessSettings":
        if self.server.port == self.chrome.debugging_port:
            raise ValueError(
                f"Server port and debugging port must differ (both {self.server.port})"
            )
        return self

    @property
    def report_path(self) -> Path:
        """Where the raw audit report is written."""
        return self.lighthouse.output_dir / self.lighthouse.output_filename

    @property
    def screenshot_path(self) -> Path:
        """Where the page screenshot is written."""
        return self.lighthouse.output_dir / self.lighthouse.screenshot_filename

    def route_url(self, route: str) -> str:
        """Absolute URL of ``route`` on the preview server."""
        return f"{self.server.base_url}/{route.lstrip('/')}"
