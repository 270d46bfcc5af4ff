"""
Provider registry: one ResilientProvider per configured provider name.
"""

import logging
import threading
from typing import Callable, Dict, List, Mapping, Optional

from ..adapters import ADAPTER_FACTORIES, AdapterKind
from .config import GatewayConfig, ProviderDescriptor
from .errors import AdapterLoadError, UnknownProviderError
from .interface import ProviderAdapter
from .key_rotator import KeyRotator
from .resilient import ResilientProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Registry of provider instances.

    Providers are built on first use from their descriptor and cached
    for the lifetime of the registry. Concurrent first calls for the
    same name converge on a single instance (and a single rotator).
    """

    def __init__(
        self,
        config: GatewayConfig,
        factories: Optional[Mapping[AdapterKind, Callable[..., ProviderAdapter]]] = None,
    ):
        """
        Initialize the registry.

        Args:
            config: Parsed gateway configuration
            factories: Adapter constructors by kind (defaults to ADAPTER_FACTORIES)
        """
        self._config = config
        self._factories = dict(factories if factories is not None else ADAPTER_FACTORIES)
        self._instances: Dict[str, ResilientProvider] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> GatewayConfig:
        return self._config

    def descriptor(self, name: str) -> ProviderDescriptor:
        """
        Get the descriptor of a configured provider.

        Raises:
            UnknownProviderError: If name is not configured
        """
        descriptor = self._config.providers.get(name)
        if descriptor is None:
            raise UnknownProviderError(f"Provider {name} not found in config", gateway=name)
        return descriptor

    def get(self, name: str) -> ResilientProvider:
        """
        Get the provider for a name, building it on first use.

        Raises:
            UnknownProviderError: If name is not configured
            AdapterLoadError: If the adapter kind cannot be resolved or built
        """
        provider = self._instances.get(name)
        if provider is not None:
            return provider

        with self._lock:
            provider = self._instances.get(name)
            if provider is None:
                provider = self._build(self.descriptor(name))
                self._instances[name] = provider
                logger.info(f"Loaded provider: {name} ({provider.adapter.adapter_kind})")
        return provider

    def _resolve_factory(self, descriptor: ProviderDescriptor) -> Callable[..., ProviderAdapter]:
        try:
            kind = AdapterKind(descriptor.adapter)
        except ValueError:
            raise AdapterLoadError(
                f"Unknown adapter '{descriptor.adapter}' for provider {descriptor.name}",
                gateway=descriptor.name,
                adapter=descriptor.adapter,
            ) from None

        factory = self._factories.get(kind)
        if factory is None:
            raise AdapterLoadError(
                f"No adapter registered for '{kind.value}' (provider {descriptor.name})",
                gateway=descriptor.name,
                adapter=descriptor.adapter,
            )
        return factory

    def _build(self, descriptor: ProviderDescriptor) -> ResilientProvider:
        factory = self._resolve_factory(descriptor)

        try:
            adapter = factory(
                name=descriptor.name,
                host=descriptor.host,
                timeout=descriptor.timeout,
                **descriptor.options,
            )
        except Exception as e:
            logger.error(f"Failed to load provider {descriptor.name}: {e}")
            raise AdapterLoadError(
                f"Failed to load provider {descriptor.name}: {e}",
                gateway=descriptor.name,
                adapter=descriptor.adapter,
            ) from e

        rotator = KeyRotator(descriptor.api_keys, gateway=descriptor.name)
        return ResilientProvider(descriptor.name, adapter, rotator)

    def list_providers(self) -> List[str]:
        """Names of all configured providers."""
        return list(self._config.providers)

    def loaded(self) -> List[str]:
        """Names of providers built so far."""
        return list(self._instances)

