"""Fallback voice services and their registry.

This module provides a registry pattern for managing fallback engines,
allowing the configured chain to be selected by name at runtime.
"""

import importlib
from typing import TYPE_CHECKING, ClassVar

from .base import VoiceService
from .chain import FallbackChain
from .silent import SilentVoiceService
from .system import SystemVoiceService

if TYPE_CHECKING:
    from ..config import FallbackConfig

__all__ = [
    "FallbackChain",
    "ProviderRegistry",
    "SilentVoiceService",
    "SystemVoiceService",
    "VoiceService",
    "build_fallback",
]


class ProviderRegistry:
    """Registry for fallback voice services.

    Providers are registered either as classes or as "module:attr" paths
    that are imported on first use, so heavy optional engines cost nothing
    until requested.
    """

    _providers: ClassVar[dict[str, type[VoiceService] | str]] = {}

    @classmethod
    def register(cls, name: str, provider: type[VoiceService] | str) -> None:
        """Register a provider class or a lazy "module:attr" path.

        Args:
            name: Name to register the provider under
            provider: VoiceService subclass, or import path to one
        """
        cls._providers[name] = provider

    @classmethod
    def get(cls, name: str) -> type[VoiceService]:
        """Get a provider class by name.

        Raises:
            KeyError: If provider name not found
            ImportError: If a lazily registered provider cannot be imported
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys()) if cls._providers else "none"
            raise KeyError(
                f"Provider '{name}' not found. Available providers: {available}"
            )
        provider = cls._providers[name]
        if isinstance(provider, str):
            module_name, _, attr = provider.partition(":")
            provider = getattr(importlib.import_module(module_name), attr)
            cls._providers[name] = provider
        return provider

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._providers)


def build_fallback(config: "FallbackConfig") -> VoiceService:
    """Instantiate the configured fallback engines.

    A single engine is returned as-is; several are wrapped in a
    FallbackChain in the configured order.

    Raises:
        KeyError: If a configured provider is unknown
        ValueError: If no providers are configured
    """
    if not config.providers:
        raise ValueError("At least one fallback provider must be configured")

    services = [ProviderRegistry.get(name)() for name in config.providers]
    if len(services) == 1:
        return services[0]
    return FallbackChain(
        services,
        max_failures=config.max_failures,
        cooldown_seconds=config.cooldown_seconds,
    )


# Register providers
ProviderRegistry.register("system", SystemVoiceService)
ProviderRegistry.register("silent", SilentVoiceService)
ProviderRegistry.register("kokoro", "voicegate.providers.kokoro:KokoroVoiceService")
