"""
Direct OpenAI API adapter.

Speaks the OpenAI chat completions protocol, so it also serves any
OpenAI-compatible upstream through a host override. Tool calls are
native and pass straight through.
"""

import logging
from typing import Optional, Set, Dict, Any

import httpx
from pydantic import ValidationError

from ..core.classification import ErrorClass, classify_upstream_error
from ..core.errors import UpstreamError
from ..core.interface import ProviderAdapter, GatewayCapability
from ..models.request import ChatRequest
from ..models.response import ChatResponse

logger = logging.getLogger(__name__)

QUOTA_ERROR_CODES = frozenset({"insufficient_quota", "quota_exceeded", "rate_limit_exceeded"})


class OpenAIAdapter(ProviderAdapter):
    """
    Direct OpenAI API adapter.

    A new HTTP client is opened for every call with that attempt's key.
    """

    OPENAI_BASE_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        name: str,
        host: Optional[str] = None,
        organization: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ):
        """
        Initialize OpenAI adapter.

        Args:
            name: Provider name this adapter serves
            host: API base URL (defaults to api.openai.com/v1)
            organization: OpenAI organization ID
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self._name = name
        self._base_url = (host or self.OPENAI_BASE_URL).rstrip("/")
        self._organization = organization
        self._timeout = timeout
        self._transport = transport
        if kwargs:
            logger.debug(f"[{name}] Ignoring unsupported OpenAI adapter options: {sorted(kwargs)}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def adapter_kind(self) -> str:
        return "openai"

    @property
    def capabilities(self) -> Set[GatewayCapability]:
        return {
            GatewayCapability.CHAT_COMPLETION,
            GatewayCapability.TOOL_USE,
        }

    @property
    def base_url(self) -> str:
        return self._base_url

    def _client(self, api_key: str) -> httpx.AsyncClient:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        if self._organization:
            headers["OpenAI-Organization"] = self._organization

        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def call(self, api_key: str, request: ChatRequest) -> ChatResponse:
        """Create a chat completion via OpenAI API."""
        try:
            async with self._client(api_key) as client:
                response = await client.post(
                    "/chat/completions",
                    json=request.to_openai_format(),
                )
        except httpx.RequestError as e:
            raise UpstreamError(
                f"Failed to connect to OpenAI: {e}",
                gateway=self._name,
            ) from e

        self._check_response_errors(response)

        try:
            return ChatResponse.from_openai(response.json(), provider=self._name)
        except (ValueError, ValidationError) as e:
            raise UpstreamError(
                f"Malformed OpenAI response: {e}",
                gateway=self._name,
                status_code=response.status_code,
                provider_error=response.text,
            ) from e

    def _check_response_errors(self, response: httpx.Response) -> None:
        """Raise UpstreamError with the provider payload on a non-200 reply."""
        if response.status_code == 200:
            return

        try:
            error_data = response.json()
        except ValueError:
            error_data = response.text

        raise UpstreamError(
            f"Failed to connect to OpenAI: {response.status_code} - {error_data}",
            gateway=self._name,
            status_code=response.status_code,
            provider_error=error_data,
        )

    async def usage(self, api_key: str) -> Optional[Dict[str, Any]]:
        """OpenAI exposes no per-key usage endpoint to API keys."""
        return None

    def classify(self, error: Exception) -> ErrorClass:
        """OpenAI quota error codes are transient, then the shared heuristic."""
        payload = getattr(error, "provider_error", None)
        if isinstance(payload, dict):
            detail = payload.get("error")
            code = detail.get("code") if isinstance(detail, dict) else payload.get("code")
            if code in QUOTA_ERROR_CODES:
                return ErrorClass.TRANSIENT
        return classify_upstream_error(error)
