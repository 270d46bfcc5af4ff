"""
Standalone client for a running llm-relay service.
"""

import logging
from typing import Any, Dict, Optional, Union

import httpx

from .core.errors import GatewayError, InvalidRequestError
from .models.request import ChatRequest
from .models.response import ChatResponse

logger = logging.getLogger(__name__)


class RelayAPIError(GatewayError):
    """Raised when the relay answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        gateway: str = None,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
        provider_error: Any = None,
    ):
        super().__init__(message, gateway)
        self.status_code = status_code
        self.error_type = error_type or GatewayError.error_type
        self.provider_error = provider_error


class RelayClient:
    """
    Calls the relay's chat and usage routes.

    The provider is sent in the X-Provider header; the API key is the
    relay's own server key, not an upstream key.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _client(self, provider: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._api_url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "X-Provider": provider,
            },
            timeout=self._timeout,
            transport=self._transport,
        )

    async def send(self, request: Union[ChatRequest, Dict[str, Any]]) -> ChatResponse:
        """
        Send a chat completion to the provider named in request.provider.

        Raises:
            InvalidRequestError: If the request names no provider
            RelayAPIError: If the relay replies with an error
        """
        if isinstance(request, dict):
            request = ChatRequest.model_validate(request)
        if not request.provider:
            raise InvalidRequestError("Missing required field: provider")

        async with self._client(request.provider) as client:
            response = await client.post(
                "/v1/chat/completions",
                json=request.model_dump(exclude_none=True),
            )

        self._raise_for_error(response, request.provider)
        return ChatResponse.model_validate(response.json())

    async def usage(self, provider: str) -> Optional[Dict[str, Any]]:
        """Usage for the provider's current key; None when unsupported."""
        async with self._client(provider) as client:
            response = await client.get("/v1/usage")

        self._raise_for_error(response, provider)
        return response.json()

    @staticmethod
    def _raise_for_error(response: httpx.Response, provider: str) -> None:
        if response.is_success:
            return

        try:
            error = response.json().get("error") or {}
        except (ValueError, AttributeError):
            error = {"message": response.text}
        if not isinstance(error, dict):
            error = {"message": str(error)}

        message = error.get("message") or f"HTTP {response.status_code}"
        logger.debug(f"Relay error for {provider}: {response.status_code} {message}")
        raise RelayAPIError(
            f"LLM API Error: {message}",
            gateway=provider,
            status_code=response.status_code,
            error_type=error.get("type"),
            provider_error=error.get("provider_error"),
        )
