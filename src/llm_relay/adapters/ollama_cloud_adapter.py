"""
Ollama Cloud adapter.

Talks to the Ollama chat API (ollama.com or a self-hosted server behind
a bearer token). Ollama has no structured tool calling, so tools are
emulated through instructions and reply parsing.
"""

import logging
from typing import Any, Dict, List, Optional, Set

import httpx

from ..core.classification import ErrorClass, classify_upstream_error
from ..core.errors import UpstreamError
from ..core.interface import ProviderAdapter, GatewayCapability
from ..models.request import ChatRequest
from ..models.response import ChatResponse, Usage
from .tool_emulation import (
    build_tool_instruction,
    decode_tool_reply,
    inject_tool_instruction,
    parse_tool_reply,
    preprocess_messages,
)

logger = logging.getLogger(__name__)


class OllamaCloudAdapter(ProviderAdapter):
    """
    Ollama adapter with tool-call emulation.

    With strict_tool_parsing, an unparseable reply to a tool-carrying
    request raises NormalizationDecodeError instead of falling back to
    the raw text.
    """

    OLLAMA_BASE_URL = "https://ollama.com"

    def __init__(
        self,
        name: str,
        host: Optional[str] = None,
        timeout: float = 120.0,
        keep_alive: Optional[str] = None,
        strict_tool_parsing: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ):
        """
        Initialize Ollama Cloud adapter.

        Args:
            name: Provider name this adapter serves
            host: Ollama URL (default: https://ollama.com)
            timeout: Request timeout in seconds
            keep_alive: How long to keep the model loaded (e.g., "5m")
            strict_tool_parsing: Raise on undecodable tool replies
            transport: Optional httpx transport (tests)
        """
        self._name = name
        self._base_url = (host or self.OLLAMA_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._keep_alive = keep_alive
        self._strict_tool_parsing = strict_tool_parsing
        self._transport = transport
        if kwargs:
            logger.debug(f"[{name}] Ignoring unsupported Ollama adapter options: {sorted(kwargs)}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def adapter_kind(self) -> str:
        return "ollama_cloud"

    @property
    def capabilities(self) -> Set[GatewayCapability]:
        return {
            GatewayCapability.CHAT_COMPLETION,
            GatewayCapability.TOOL_EMULATION,
        }

    @property
    def base_url(self) -> str:
        return self._base_url

    def _build_options(self, request: ChatRequest) -> Dict[str, Any]:
        """Build Ollama options from request."""
        options = {}

        if request.temperature is not None:
            options["temperature"] = request.temperature
        if request.top_p is not None:
            options["top_p"] = request.top_p
        if request.max_tokens is not None:
            options["num_predict"] = request.max_tokens
        if request.stop:
            options["stop"] = request.stop if isinstance(request.stop, list) else [request.stop]

        return options

    def _build_messages(self, request: ChatRequest) -> List[Dict[str, Any]]:
        messages = preprocess_messages(request.messages)
        if request.has_tools:
            messages = inject_tool_instruction(messages, build_tool_instruction(request.tools))
        return messages

    def build_payload(self, request: ChatRequest) -> Dict[str, Any]:
        """Native /api/chat body for a unified request."""
        payload = {
            "model": request.model,
            "messages": self._build_messages(request),
            "stream": False,
        }

        options = self._build_options(request)
        if options:
            payload["options"] = options
        if self._keep_alive:
            payload["keep_alive"] = self._keep_alive

        return payload

    async def call(self, api_key: str, request: ChatRequest) -> ChatResponse:
        """Execute chat completion request."""
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {api_key}",
                },
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            ) as client:
                response = await client.post("/api/chat", json=self.build_payload(request))
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"Failed to connect to OllamaCloud: request timed out ({e})",
                gateway=self._name,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamError(
                f"Failed to connect to OllamaCloud: {e}",
                gateway=self._name,
            ) from e

        if response.status_code != 200:
            try:
                error_data = response.json()
            except ValueError:
                error_data = response.text
            raise UpstreamError(
                f"Failed to connect to OllamaCloud: {response.status_code} - {error_data}",
                gateway=self._name,
                status_code=response.status_code,
                provider_error=error_data,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Malformed OllamaCloud response: {e}",
                gateway=self._name,
                status_code=response.status_code,
                provider_error=response.text,
            ) from e

        return self._parse_response(data, request)

    def _parse_response(self, data: Dict[str, Any], request: ChatRequest) -> ChatResponse:
        """Parse Ollama response to ChatResponse, decoding emulated tool calls."""
        if not isinstance(data, dict):
            raise UpstreamError(
                f"Malformed OllamaCloud response: expected a JSON object, got {type(data).__name__}",
                gateway=self._name,
                status_code=200,
                provider_error=data,
            )

        if "error" in data:
            raise UpstreamError(
                f"Failed to connect to OllamaCloud: {data['error']}",
                gateway=self._name,
                status_code=200,
                provider_error=data,
            )

        content = (data.get("message") or {}).get("content") or ""
        model = request.model or data.get("model", "")

        prompt_tokens = data.get("prompt_eval_count", 0) or 0
        completion_tokens = data.get("eval_count", 0) or 0
        usage = Usage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )

        if request.has_tools:
            if self._strict_tool_parsing:
                reply = parse_tool_reply(content, gateway=self._name)
            else:
                reply = decode_tool_reply(content, gateway=self._name)
            if reply is not None:
                return reply.to_response(model=model, usage=usage, provider=self._name)

        return ChatResponse.from_text(content, model=model, usage=usage, provider=self._name)

    async def usage(self, api_key: str) -> Optional[Dict[str, Any]]:
        """Ollama Cloud has no usage endpoint yet."""
        return None

    def classify(self, error: Exception) -> ErrorClass:
        return classify_upstream_error(error)
