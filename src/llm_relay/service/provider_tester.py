"""
Smoke test every configured provider with one prompt.
"""

import logging
from typing import Any, Dict, List

from opentelemetry import trace

from ..core.errors import GatewayError, InvalidRequestError
from ..core.gateway import Gateway
from ..models.request import ChatRequest, Message

logger = logging.getLogger(__name__)

tracer = trace.get_tracer(__name__)


class ProviderTester:
    """Sends a test prompt to each provider and checks for an expected answer."""

    def __init__(self, gateway: Gateway, max_prompt_length: int = 100):
        self._gateway = gateway
        self.max_prompt_length = max_prompt_length

    async def test_all(self, prompt: str, expected: str) -> Dict[str, Any]:
        """
        Test all configured providers.

        A provider passes if the first choice's content contains
        `expected` (case-insensitive).

        Raises:
            InvalidRequestError: If the prompt is longer than max_prompt_length
        """
        if len(prompt) > self.max_prompt_length:
            raise InvalidRequestError(
                f"Prompt exceeds maximum length of {self.max_prompt_length} characters"
            )

        providers = self._gateway.providers()
        failed: List[Dict[str, Any]] = []

        logger.info(f"Testing {len(providers)} providers with prompt: {prompt!r}")

        for name in providers:
            with tracer.start_as_current_span("provider.smoke_test") as span:
                span.set_attribute("provider", name)
                failure = await self._test_one(name, prompt, expected)
                span.set_attribute("passed", failure is None)
            if failure is not None:
                failed.append(failure)

        if not failed:
            return {"message": f"tested {len(providers)} providers. all ok."}
        return {"message": f"tested {len(providers)} providers.", "failed": failed}

    async def _test_one(self, name: str, prompt: str, expected: str):
        logger.info(f"Testing provider: {name}")
        try:
            descriptor = self._gateway.registry.descriptor(name)
            if not descriptor.default_model:
                raise InvalidRequestError(f"No default_model configured for provider: {name}", gateway=name)

            response = await self._gateway.send(name, ChatRequest(
                model=descriptor.default_model,
                messages=[Message(role="user", content=prompt)],
                temperature=0.7,
                max_tokens=150,
            ))
        except GatewayError as e:
            logger.error(f"Provider {name} ERROR: {e}")
            return {
                "provider": name,
                "response": {"error": e.message, "type": e.error_type},
            }

        content = response.get_content() or ""
        if expected.lower() not in content.lower():
            logger.info(f"Provider {name} FAILED - expected {expected!r} not found in response")
            return {"provider": name, "response": response.model_dump(exclude_none=True)}

        logger.info(f"Provider {name} PASSED")
        return None
