"""
Integration tests for the standalone relay client against the service app.
"""

import httpx
import pytest

from conftest import FakeAdapter
from llm_relay.adapters import AdapterKind
from llm_relay.client import RelayAPIError, RelayClient
from llm_relay.core.errors import InvalidRequestError, UpstreamError
from llm_relay.core.gateway import Gateway
from llm_relay.core.registry import ProviderRegistry
from llm_relay.models.request import ChatRequest, Message
from llm_relay.service.main import create_app


def _client(config, api_key="relay-secret", factory=FakeAdapter):
    """Client wired to an in-process app whose gateway runs fake adapters."""
    app = create_app(config)
    registry = ProviderRegistry(config, factories={
        AdapterKind.OLLAMA_CLOUD: factory,
        AdapterKind.OPENAI: factory,
    })
    app.state.gateway = Gateway(config, registry=registry)
    return RelayClient("http://relay.test", api_key, transport=httpx.ASGITransport(app=app))


class TestRelayClient:
    """Test RelayClient.send() and usage()."""

    @pytest.mark.asyncio
    async def test_send(self, gateway_config):
        """The provider travels in X-Provider and the reply is a ChatResponse."""
        client = _client(gateway_config)

        response = await client.send(ChatRequest(
            provider="ollama",
            messages=[Message(role="user", content="Hello")],
        ))

        assert response.get_content() == "ok from ok-1"
        assert response.model == "gpt-oss:120b"
        assert response.provider == "ollama"

    @pytest.mark.asyncio
    async def test_send_dict(self, gateway_config):
        client = _client(gateway_config)

        response = await client.send({
            "provider": "ollama",
            "model": "qwen3",
            "messages": [{"role": "user", "content": "Hello"}],
        })

        assert response.model == "qwen3"

    @pytest.mark.asyncio
    async def test_send_without_provider(self, gateway_config):
        """A request without provider fails before any HTTP call."""
        client = _client(gateway_config)
        with pytest.raises(InvalidRequestError):
            await client.send(ChatRequest(messages=[Message(role="user", content="Hello")]))

    @pytest.mark.asyncio
    async def test_unknown_provider(self, gateway_config):
        client = _client(gateway_config)

        with pytest.raises(RelayAPIError) as exc_info:
            await client.send(ChatRequest(provider="nope", model="m", messages=[Message(role="user", content="hi")]))

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_type == "invalid_request_error"
        assert exc_info.value.message.startswith("LLM API Error: ")

    @pytest.mark.asyncio
    async def test_wrong_api_key(self, gateway_config):
        client = _client(gateway_config, api_key="wrong")

        with pytest.raises(RelayAPIError) as exc_info:
            await client.usage("ollama")

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "LLM API Error: Invalid API key"

    @pytest.mark.asyncio
    async def test_exhausted_carries_provider_error(self, gateway_config):
        outcomes = {
            key: UpstreamError("quota exceeded", status_code=429, provider_error={"error": "weekly quota"})
            for key in ("ok-1", "ok-2", "ok-3")
        }
        client = _client(gateway_config, factory=lambda **kw: FakeAdapter(outcomes=outcomes, **kw))

        with pytest.raises(RelayAPIError) as exc_info:
            await client.send(ChatRequest(provider="ollama", messages=[Message(role="user", content="hi")]))

        assert exc_info.value.status_code == 503
        assert exc_info.value.error_type == "credentials_exhausted"
        assert exc_info.value.provider_error == {"error": "weekly quota"}

    @pytest.mark.asyncio
    async def test_usage(self, gateway_config):
        """Providers without a usage endpoint report None."""
        client = _client(gateway_config)
        assert await client.usage("ollama") is None

    @pytest.mark.asyncio
    async def test_usage_payload(self, gateway_config):
        client = _client(gateway_config, factory=lambda **kw: FakeAdapter(usage_info={"used": 7}, **kw))
        assert await client.usage("ollama") == {"used": 7}
