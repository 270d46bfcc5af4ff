"""
Provider adapter interface definition.

Defines the contract that every upstream adapter implements. Key
rotation and retries live in ResilientProvider, not here.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Set
from enum import Enum

from ..models.request import ChatRequest
from ..models.response import ChatResponse
from .classification import ErrorClass


class GatewayCapability(str, Enum):
    """Capabilities that an adapter may support."""
    CHAT_COMPLETION = "chat_completion"
    TOOL_USE = "tool_use"
    TOOL_EMULATION = "tool_emulation"


class ProviderAdapter(ABC):
    """
    Abstract base class for upstream provider adapters.

    An adapter translates the unified request into one upstream call made
    with the API key given for that attempt, translates the reply back,
    and classifies failures as transient or fatal.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Provider name this adapter serves.

        Returns:
            Provider name (e.g., "ollama", "openai-main")
        """
        pass

    @property
    @abstractmethod
    def adapter_kind(self) -> str:
        """
        Kind of upstream (e.g., "openai", "ollama_cloud").

        Returns:
            Adapter kind identifier
        """
        pass

    @property
    @abstractmethod
    def capabilities(self) -> Set[GatewayCapability]:
        """
        Set of capabilities this adapter supports.

        Returns:
            Set of GatewayCapability values
        """
        pass

    @abstractmethod
    async def call(self, api_key: str, request: ChatRequest) -> ChatResponse:
        """
        Perform one upstream chat completion.

        Args:
            api_key: Key for this attempt only
            request: Unified chat request

        Returns:
            Unified chat response

        Raises:
            UpstreamError: On any upstream or transport failure
        """
        pass

    @abstractmethod
    async def usage(self, api_key: str) -> Optional[Dict[str, Any]]:
        """
        Query usage for a key.

        Returns:
            Usage info, or None when the upstream has no usage endpoint
        """
        pass

    @abstractmethod
    def classify(self, error: Exception) -> ErrorClass:
        """
        Decide whether a failed call is worth retrying with the next key.

        Args:
            error: Error raised by call()

        Returns:
            ErrorClass.TRANSIENT or ErrorClass.FATAL
        """
        pass

    def supports(self, capability: GatewayCapability) -> bool:
        """
        Check if adapter supports a capability.

        Args:
            capability: Capability to check

        Returns:
            True if supported
        """
        return capability in self.capabilities

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, kind={self.adapter_kind!r})"
