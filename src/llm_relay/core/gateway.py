"""
Gateway facade used by the HTTP layer.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models.request import ChatRequest
from ..models.response import ChatResponse
from .config import GatewayConfig
from .errors import InvalidRequestError
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


class Gateway:
    """Dispatches unified requests to named providers."""

    def __init__(self, config: GatewayConfig, registry: Optional[ProviderRegistry] = None):
        self._config = config
        self._registry = registry or ProviderRegistry(config)

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def providers(self) -> List[str]:
        return self._registry.list_providers()

    def prepare(self, provider_name: str, request: ChatRequest) -> ChatRequest:
        """
        Resolve the model and drop the routing field before dispatch.

        Raises:
            UnknownProviderError: If provider_name is not configured
            InvalidRequestError: If there is no model and no default model
        """
        descriptor = self._registry.descriptor(provider_name)
        update: Dict[str, Any] = {"provider": None}

        if not request.model:
            if not descriptor.default_model:
                raise InvalidRequestError(
                    "Missing required field: model (and no default_model configured)",
                    gateway=provider_name,
                )
            logger.info(f"Using default model for {provider_name}: {descriptor.default_model}")
            update["model"] = descriptor.default_model

        return request.model_copy(update=update)

    async def send(self, provider_name: str, request: ChatRequest) -> ChatResponse:
        """
        Send a request to a provider.

        Raises:
            UnknownProviderError, AdapterLoadError, InvalidRequestError,
            AllCredentialsExhaustedError, FatalUpstreamError
        """
        provider = self._registry.get(provider_name)
        return await provider.send(self.prepare(provider_name, request))

    async def usage(self, provider_name: str) -> Optional[Dict[str, Any]]:
        """Usage for a provider's current key, or None if unsupported."""
        provider = self._registry.get(provider_name)
        return await provider.get_usage()
