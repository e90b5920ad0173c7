"""
Provider registry.

Adapters register themselves by name; ``build_providers`` instantiates the
ones that are both listed in ENABLED_PROVIDERS and correctly configured.
"""

import logging
from typing import Dict, List, Optional, Type

import aiohttp

from signal_engine.core.config import Settings
from signal_engine.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry for managing available news providers."""

    def __init__(self):
        self.providers: Dict[str, Type] = {}

    def register(self, name: str, provider_class: Type):
        """Register a provider class under ``name``."""
        self.providers[name] = provider_class
        logger.debug(f"Registered provider: {name} -> {provider_class.__name__}")

    def get_provider(self, name: str) -> Optional[Type]:
        return self.providers.get(name)

    def list_names(self) -> List[str]:
        return list(self.providers.keys())

    def build_providers(self, config: Settings, session: Optional[aiohttp.ClientSession] = None) -> List:
        """
        Instantiate every enabled provider whose configuration check passes.

        Misconfigured providers are logged once and skipped; nothing raises.
        """
        providers = []
        for name in config.enabled_providers_list:
            provider_class = self.get_provider(name)
            if provider_class is None:
                logger.warning(f"Unknown provider in ENABLED_PROVIDERS: {name}")
                continue

            provider = provider_class(config, session=session)
            if not provider.is_available():
                logger.warning(
                    f"Provider {name} disabled: {provider.unavailable_reason()}",
                    extra={'provider': name}
                )
                continue
            providers.append(provider)

        logger.info(f"Active news providers: {[p.name for p in providers]}")
        return providers

    def validate(self, config: Settings) -> List[str]:
        """
        Strict configuration check for deployment tooling.

        Returns the names of the providers that would run.

        Raises:
            ConfigurationError: an unknown name is listed or no provider is usable
        """
        unknown = [name for name in config.enabled_providers_list if name not in self.providers]
        if unknown:
            raise ConfigurationError(f"Unknown providers in ENABLED_PROVIDERS: {', '.join(unknown)}")

        usable = [
            name for name in config.enabled_providers_list
            if self.providers[name](config).is_available()
        ]
        if not usable:
            raise ConfigurationError("No news provider is configured")
        return usable


# Global registry instance
provider_registry = ProviderRegistry()


def register_provider(name: str):
    """Class decorator registering a provider with the global registry."""
    def decorator(cls):
        provider_registry.register(name, cls)
        return cls
    return decorator


def build_providers(config: Settings, session: Optional[aiohttp.ClientSession] = None) -> List:
    return provider_registry.build_providers(config, session=session)
