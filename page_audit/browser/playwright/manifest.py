"""Playwright browser provider manifest."""

from page_audit.browser.playwright.config import PlaywrightConfig
from page_audit.browser.playwright.provider import PlaywrightBrowserSession
from page_audit.providers.manifest import ProviderManifest

playwright_manifest = ProviderManifest(
    config_cls=PlaywrightConfig,
    factory=PlaywrightBrowserSession.from_config,
)
