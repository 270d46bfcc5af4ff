"""
Shared fixtures and fakes.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Set

import pytest

from llm_relay.core.classification import ErrorClass, classify_upstream_error
from llm_relay.core.config import parse_config
from llm_relay.core.interface import ProviderAdapter, GatewayCapability
from llm_relay.models.request import ChatRequest, Message
from llm_relay.models.response import ChatResponse


class FakeAdapter(ProviderAdapter):
    """
    Adapter whose behaviour per API key is scripted.

    `outcomes` maps an API key to either a reply string or an exception
    to raise; keys not listed reply "ok from <key>".
    """

    def __init__(
        self,
        name: str = "fake",
        outcomes: Optional[Dict[str, Any]] = None,
        classifier: Optional[Callable[[Exception], ErrorClass]] = None,
        usage_info: Optional[Dict[str, Any]] = None,
        **kwargs,
    ):
        self._name = name
        self.outcomes = outcomes or {}
        self.classifier = classifier or classify_upstream_error
        self.usage_info = usage_info
        self.calls: List[str] = []
        self.usage_calls: List[str] = []
        self.options = kwargs

    @property
    def name(self) -> str:
        return self._name

    @property
    def adapter_kind(self) -> str:
        return "fake"

    @property
    def capabilities(self) -> Set[GatewayCapability]:
        return {GatewayCapability.CHAT_COMPLETION}

    async def call(self, api_key: str, request: ChatRequest) -> ChatResponse:
        self.calls.append(api_key)
        await asyncio.sleep(0)
        outcome = self.outcomes.get(api_key, f"ok from {api_key}")
        if isinstance(outcome, Exception):
            raise outcome
        return ChatResponse.from_text(outcome, model=request.model or "", provider=self._name)

    async def usage(self, api_key: str) -> Optional[Dict[str, Any]]:
        self.usage_calls.append(api_key)
        return self.usage_info

    def classify(self, error: Exception) -> ErrorClass:
        return self.classifier(error)


@pytest.fixture
def simple_request():
    """One-message request."""
    return ChatRequest(
        model="test-model",
        messages=[Message(role="user", content="Hello")],
    )


@pytest.fixture
def gateway_config():
    """Config with one provider of each adapter kind."""
    return parse_config({
        "server": {"api_key": "relay-secret", "log_level": "debug"},
        "providers": {
            "ollama": {
                "adapter": "ollama_cloud",
                "host": "https://ollama.example",
                "default_model": "gpt-oss:120b",
                "api_keys": ["ok-1", "ok-2", "ok-3"],
            },
            "openai": {
                "adapter": "openai",
                "api_keys": ["sk-1"],
            },
        },
    })
