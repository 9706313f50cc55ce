"""Playwright browser provider module."""

from page_audit.browser.playwright.config import PlaywrightConfig
from page_audit.browser.playwright.manifest import playwright_manifest
from page_audit.browser.playwright.provider import PlaywrightBrowserSession

__all__ = ["PlaywrightBrowserSession", "PlaywrightConfig", "playwright_manifest"]
