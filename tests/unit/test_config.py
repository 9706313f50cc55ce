"""Tests for harness configuration."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from page_audit.config import HarnessSettings, Thresholds


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without inherited overrides or a local .env file."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("PAGE_AUDIT_"):
            monkeypatch.delenv(name)


def test_defaults() -> None:
    """Every option has a usable default."""
    settings = HarnessSettings()

    assert settings.server.base_url == "http://localhost:4173"
    assert tuple(settings.server.command) == ("npm", "run", "preview")
    assert settings.chrome.debugging_port == 9222
    assert settings.timeouts.server_startup == 8.0
    assert settings.timeouts.server_startup_max == 30.0
    assert settings.timeouts.audit_run == 300.0
    assert tuple(settings.test_routes) == ("/",)
    assert "vendor-charts" in settings.expected_absent_bundles
    assert settings.thresholds.categories["performance"] == 0.8
    assert settings.report_path == Path(".lighthouseci/lighthouse-report.json")
    assert settings.screenshot_path == Path(".lighthouseci/screenshot.png")
    assert not settings.distinct_internal_exit_code


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Nested options are overridden from prefixed environment variables."""
    monkeypatch.setenv("PAGE_AUDIT_SERVER__PORT", "5173")
    monkeypatch.setenv("PAGE_AUDIT_TIMEOUTS__AUDIT_RUN", "120")
    monkeypatch.setenv("PAGE_AUDIT_TEST_ROUTES", '["/", "/pricing"]')
    monkeypatch.setenv("PAGE_AUDIT_DISTINCT_INTERNAL_EXIT_CODE", "true")

    settings = HarnessSettings()

    assert settings.server.port == 5173
    assert settings.timeouts.audit_run == 120.0
    assert tuple(settings.test_routes) == ("/", "/pricing")
    assert settings.distinct_internal_exit_code


def test_env_file_is_read(tmp_path: Path) -> None:
    """Reads overrides from a .env file in the working directory."""
    (tmp_path / ".env").write_text("PAGE_AUDIT_LOG_LEVEL=DEBUG\n", encoding="utf-8")

    assert HarnessSettings().log_level == "DEBUG"


def test_ports_must_differ() -> None:
    """Server and debugging ports may not collide."""
    with pytest.raises(ValidationError, match="must differ"):
        HarnessSettings(chrome={"debugging_port": 4173})


@pytest.mark.parametrize("value", [-0.1, 1.01])
def test_thresholds_use_unit_scale(value: float) -> None:
    """Rejects thresholds outside the 0-1 scale."""
    with pytest.raises(ValidationError):
        Thresholds(categories={"performance": value})


def test_poor_band_may_not_exceed_excellent(monkeypatch: pytest.MonkeyPatch) -> None:
    """Rejects inverted presentation bands from any source."""
    with pytest.raises(ValidationError, match="above excellent"):
        Thresholds(excellent=0.5, poor=0.9)

    monkeypatch.setenv("PAGE_AUDIT_THRESHOLDS__POOR", "0.95")
    with pytest.raises(ValidationError, match="above excellent"):
        HarnessSettings()


def test_equal_bands_are_allowed() -> None:
    """Bands may collapse onto a single cut-off."""
    thresholds = Thresholds(excellent=0.7, poor=0.7)

    assert thresholds.poor == thresholds.excellent


@pytest.mark.parametrize(
    ("route", "expected"),
    [
        ("/", "http://localhost:4173/"),
        ("/pricing", "http://localhost:4173/pricing"),
        ("docs/intro", "http://localhost:4173/docs/intro"),
    ],
)
def test_route_url(route: str, expected: str) -> None:
    """Joins routes onto the server base URL."""
    assert HarnessSettings().route_url(route) == expected
