"""Provider manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel


@dataclass(frozen=True, kw_only=True)
class ProviderManifest[ConfigT: BaseModel, ProviderT]:
    """Manifest describing a capability provider plugin.

    Browser sessions and audit engines are both published this way: the
    manifest references the provider's configuration class and a factory
    that manages the provider's lifecycle.
    """

    config_cls: type[ConfigT]
    factory: Callable[[ConfigT], AbstractAsyncContextManager[ProviderT]]
