"""Loading of capability providers from entry points."""

from importlib.metadata import entry_points
from typing import Any

from page_audit.providers.manifest import ProviderManifest

BROWSER_GROUP = "page_audit.browsers"
ENGINE_GROUP = "page_audit.engines"


class ProviderNotFoundError(Exception):
    """Raised when a provider is not found."""


def load_provider_manifest(group: str, key: str) -> ProviderManifest[Any, Any]:
    """Load a provider manifest by key.

    Args:
        group: Entry point group (``BROWSER_GROUP`` or ``ENGINE_GROUP``)
        key: The provider key as registered in pyproject.toml
             (e.g., "playwright", "lighthouse")

    Returns:
        The provider manifest instance

    Raises:
        ProviderNotFoundError: If no provider with the given key is found

    """
    entries = entry_points(group=group)

    for entry in entries:
        if entry.name == key:
            manifest: ProviderManifest[Any, Any] = entry.load()
            return manifest

    available = [e.name for e in entries]
    raise ProviderNotFoundError(
        f"Provider '{key}' not found in {group}. Available providers: {available}"
    )
