"""Lighthouse audit engine manifest."""

from page_audit.engines.lighthouse.config import LighthouseConfig
from page_audit.engines.lighthouse.engine import LighthouseEngine
from page_audit.providers.manifest import ProviderManifest

lighthouse_manifest = ProviderManifest(
    config_cls=LighthouseConfig,
    factory=LighthouseEngine.from_config,
)
