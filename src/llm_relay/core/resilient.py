"""
Quota-aware retry loop over a provider's API keys.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from opentelemetry import trace

from ..models.request import ChatRequest
from ..models.response import ChatResponse
from .classification import ErrorClass
from .errors import (
    AllCredentialsExhaustedError,
    FatalUpstreamError,
    TransientUpstreamError,
    UpstreamError,
)
from .interface import ProviderAdapter
from .key_rotator import KeyRotator

logger = logging.getLogger(__name__)

tracer = trace.get_tracer(__name__)


class ResilientProvider:
    """
    Wraps an adapter with key rotation.

    Each send() tries every key at most once. A transient failure moves
    on to the next key; a fatal failure is raised at once. When every
    key failed transiently, AllCredentialsExhaustedError is raised with
    the last failure attached.
    """

    def __init__(self, name: str, adapter: ProviderAdapter, rotator: KeyRotator):
        self._name = name
        self._adapter = adapter
        self._rotator = rotator
        logger.info(
            f"Provider {name} created with {rotator.count()} API keys "
            f"(adapter: {adapter.adapter_kind})"
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def adapter(self) -> ProviderAdapter:
        return self._adapter

    @property
    def rotator(self) -> KeyRotator:
        return self._rotator

    def _next_untried(self, tried: Set[int]) -> Tuple[int, str]:
        """
        Advance the shared cursor and return a slot this call has not used.

        Concurrent calls share the cursor, so the slot handed out may be one
        this call already tried; in that case walk forward to the next
        untried index.
        """
        index, api_key = self._rotator.next_slot()
        if index not in tried:
            return index, api_key

        keys = self._rotator.keys
        for step in range(1, len(keys)):
            candidate = (index + step) % len(keys)
            if candidate not in tried:
                return candidate, keys[candidate]
        raise RuntimeError(f"[{self._name}] No untried API key left")

    async def send(self, request: ChatRequest) -> ChatResponse:
        """
        Send a request, rotating keys on transient failures.

        Raises:
            FatalUpstreamError: First non-retryable failure
            AllCredentialsExhaustedError: Every key failed transiently
        """
        total_keys = self._rotator.count()
        failures: List[TransientUpstreamError] = []

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"[{self._name}] Forwarding request: "
                f"{json.dumps(request.model_dump(exclude_none=True), indent=2)}"
            )

        with tracer.start_as_current_span("provider.send") as span:
            span.set_attribute("provider", self._name)
            span.set_attribute("model", request.model or "")
            span.set_attribute("key_count", total_keys)

            tried: Set[int] = set()
            for attempt in range(total_keys):
                index, api_key = self._next_untried(tried)
                tried.add(index)
                span.set_attribute("attempts", attempt + 1)
                logger.info(
                    f"[{self._name}] Using API key index: {index} "
                    f"(attempt {attempt + 1}/{total_keys})"
                )

                try:
                    response = await self._adapter.call(api_key, request)
                except UpstreamError as e:
                    verdict = self._adapter.classify(e)
                    if verdict is ErrorClass.FATAL:
                        logger.error(f"[{self._name}] Fatal upstream error on key index {index}: {e}")
                        span.set_attribute("outcome", "fatal")
                        raise FatalUpstreamError.wrap(e) from e

                    failures.append(TransientUpstreamError.wrap(e))
                    logger.info(
                        f"[{self._name}] Quota exceeded or transient failure for key index "
                        f"{index}, trying next key... ({e})"
                    )
                    continue

                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        f"[{self._name}] Received response: "
                        f"{response.model_dump_json(indent=2, exclude_none=True)}"
                    )
                span.set_attribute("outcome", "ok")
                return response

            span.set_attribute("outcome", "exhausted")

        logger.error(f"[{self._name}] All {total_keys} API keys exhausted due to quota limits")
        last_error = failures[-1] if failures else None
        raise AllCredentialsExhaustedError(
            f"All {total_keys} API keys exhausted for provider {self._name}: {last_error}",
            gateway=self._name,
            attempts=len(failures),
            last_error=last_error,
            errors=failures,
        ) from last_error

    async def get_usage(self) -> Optional[Dict[str, Any]]:
        """
        Query usage with the current key, without advancing rotation.

        Before any request has rotated the cursor, the first key is used.
        """
        if self._rotator.started:
            index, api_key = self._rotator.current_index, self._rotator.current_key()
        else:
            index, api_key = 0, self._rotator.keys[0]
        logger.info(f"[{self._name}] Getting usage for API key index: {index}")
        return await self._adapter.usage(api_key)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self._name!r}, adapter={self._adapter!r})"
