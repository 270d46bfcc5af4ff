"""
LLM Relay HTTP Service

A FastAPI service exposing one OpenAI-compatible chat completion API in
front of several upstream providers.

Features:
- Provider selection per request (X-Provider header or provider//key token)
- API key rotation with quota-aware retries
- Tool-call emulation for upstreams without function calling
- Usage pass-through
- Provider smoke testing
"""

import os
import logging
from typing import Any, Dict, Optional
from contextlib import asynccontextmanager

from fastapi import Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from ..core.config import GatewayConfig, load_config
from ..core.errors import (
    AdapterLoadError,
    AllCredentialsExhaustedError,
    GatewayError,
    InvalidRequestError,
    NormalizationDecodeError,
    UnknownProviderError,
    UpstreamError,
)
from ..core.gateway import Gateway
from ..models.request import ChatRequest
from .logging_setup import configure_logging
from .provider_tester import ProviderTester

logger = logging.getLogger(__name__)


class AuthenticationError(GatewayError):
    """Raised when the bearer token or provider selection is invalid."""

    error_type = "authentication_error"


# Most specific first
STATUS_CODES = (
    (AuthenticationError, 401),
    (UnknownProviderError, 404),
    (AdapterLoadError, 400),
    (InvalidRequestError, 400),
    (AllCredentialsExhaustedError, 503),
    (UpstreamError, 502),
    (NormalizationDecodeError, 502),
)


def status_for(error: GatewayError) -> int:
    for error_class, status in STATUS_CODES:
        if isinstance(error, error_class):
            return status
    return 500


def _setup_tracing(app: FastAPI) -> None:
    """Export traces over OTLP when an endpoint is configured."""
    otel_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not otel_endpoint:
        return

    from opentelemetry import trace
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.resources import Resource

    resource = Resource.create({"service.name": "llm-relay"})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otel_endpoint)))
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app)
    logger.info(f"Exporting traces to {otel_endpoint}")


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


def authenticate(request: Request) -> str:
    """
    Validate the bearer token and return the target provider name.

    The provider comes from the X-Provider header, or else from a token
    of the form provider//apiKey.
    """
    auth_header = request.headers.get("authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError("Missing or invalid authorization header")

    token = auth_header[len("Bearer "):]
    provider_header = request.headers.get("x-provider")

    if provider_header:
        provider, api_key = provider_header, token
    else:
        parts = token.split("//")
        if len(parts) != 2:
            raise AuthenticationError(
                "Missing X-Provider header or invalid token format. "
                "Expected: X-Provider header OR token format provider//apiKey"
            )
        provider, api_key = parts

    expected_key = request.app.state.gateway.config.server.api_key
    if not expected_key or api_key != expected_key:
        raise AuthenticationError("Invalid API key")

    return provider


def create_app(config: Optional[GatewayConfig] = None) -> FastAPI:
    """
    Build the service.

    Args:
        config: Parsed configuration. If None, loaded at startup via
            load_config() ($LLM_RELAY_CONFIG or default locations).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        gateway_config = config or load_config()
        configure_logging(gateway_config.server.log_level)

        app.state.gateway = Gateway(gateway_config)
        app.state.tester = ProviderTester(app.state.gateway)

        logger.info(f"Registered providers: {', '.join(app.state.gateway.providers())}")
        yield
        logger.info("LLM relay service stopped")

    app = FastAPI(
        title="LLM Relay",
        description="Unified chat completion gateway with API key rotation",
        version="0.1.0",
        lifespan=lifespan,
    )

    _setup_tracing(app)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error(f"Error processing request: {exc}")
        error: Dict[str, Any] = {"message": exc.message, "type": exc.error_type}
        provider_error = getattr(exc, "provider_error", None)
        if provider_error is not None:
            error["provider_error"] = provider_error
        return JSONResponse(status_code=status, content={"error": error})

    @app.post("/v1/chat/completions")
    async def chat_completions(
        body: Dict[str, Any] = Body(...),
        provider: str = Depends(authenticate),
        gateway: Gateway = Depends(get_gateway),
    ):
        """Create a chat completion on the selected provider."""
        if not body.get("messages"):
            raise InvalidRequestError("Missing required field: messages")

        try:
            chat_request = ChatRequest.model_validate(body)
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid request: {e}") from e

        response = await gateway.send(provider, chat_request)
        return response.model_dump(exclude_none=True)

    @app.get("/v1/usage")
    async def usage(
        provider: str = Depends(authenticate),
        gateway: Gateway = Depends(get_gateway),
    ):
        """Usage for the provider's current key (null when unsupported)."""
        return await gateway.usage(provider)

    @app.get("/v1/providers", dependencies=[Depends(authenticate)])
    async def providers(gateway: Gateway = Depends(get_gateway)):
        """List configured providers."""
        return {"providers": gateway.providers()}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/test-all/{prompt}/{expected}")
    async def test_all(prompt: str, expected: str, request: Request):
        """Smoke test every configured provider."""
        logger.info(f"Starting provider test with prompt: {prompt!r}, expected: {expected!r}")
        return await request.app.state.tester.test_all(prompt, expected)

    # Registered last so it only catches otherwise unrouted GETs
    @app.get("/{path:path}", response_class=PlainTextResponse, include_in_schema=False)
    async def catch_all(path: str):
        return "+ ok"

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn (HOST/PORT from the environment)."""
    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "3000")))


if __name__ == "__main__":
    run()
