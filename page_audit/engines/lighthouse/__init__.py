"""Lighthouse audit engine module."""

from page_audit.engines.lighthouse.config import LighthouseConfig
from page_audit.engines.lighthouse.engine import LighthouseEngine
from page_audit.engines.lighthouse.manifest import lighthouse_manifest

__all__ = ["LighthouseConfig", "LighthouseEngine", "lighthouse_manifest"]
