"""
llm-relay

A unified chat-completion gateway over pluggable upstream providers:
- Round-robin API key rotation with quota-aware retries
- Unified request/response models
- Tool-call emulation for upstreams without native function calling
- Configuration-based provider selection
"""

from .core.interface import ProviderAdapter, GatewayCapability
from .core.registry import ProviderRegistry
from .core.gateway import Gateway
from .core.config import GatewayConfig, load_config
from .models.request import ChatRequest, Message, ToolCall, Tool, FunctionDefinition
from .models.response import ChatResponse, Choice, Usage
from .client import RelayClient, RelayAPIError

__version__ = "0.1.0"

__all__ = [
    "ProviderAdapter",
    "GatewayCapability",
    "ProviderRegistry",
    "Gateway",
    "GatewayConfig",
    "load_config",
    "ChatRequest",
    "ChatResponse",
    "Message",
    "Choice",
    "Usage",
    "ToolCall",
    "Tool",
    "FunctionDefinition",
    "RelayClient",
    "RelayAPIError",
]
