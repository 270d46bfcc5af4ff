"""
Upstream provider adapters.

ADAPTER_FACTORIES is the closed table of adapter kinds a provider's
`adapter:` setting may name.
"""

from enum import Enum
from typing import Callable, Dict

from ..core.interface import ProviderAdapter
from .openai_adapter import OpenAIAdapter
from .ollama_cloud_adapter import OllamaCloudAdapter


class AdapterKind(str, Enum):
    """Supported upstream kinds."""
    OPENAI = "openai"
    OLLAMA_CLOUD = "ollama_cloud"


ADAPTER_FACTORIES: Dict[AdapterKind, Callable[..., ProviderAdapter]] = {
    AdapterKind.OPENAI: OpenAIAdapter,
    AdapterKind.OLLAMA_CLOUD: OllamaCloudAdapter,
}

__all__ = [
    "AdapterKind",
    "ADAPTER_FACTORIES",
    "OpenAIAdapter",
    "OllamaCloudAdapter",
]
