"""
Gateway error types.
"""

from typing import Any, List, Optional


class GatewayError(Exception):
    """Base exception for gateway errors."""

    error_type = "server_error"

    def __init__(self, message: str, gateway: str = None):
        self.message = message
        self.gateway = gateway
        super().__init__(message)


class InvalidConfigurationError(GatewayError):
    """Raised when provider configuration cannot be used (e.g. no API keys)."""

    error_type = "configuration_error"


class RotationNotStartedError(GatewayError):
    """Raised when the current key is requested before the first rotation."""


class UnknownProviderError(GatewayError):
    """Raised when a provider name is not configured."""

    error_type = "invalid_request_error"


class AdapterLoadError(GatewayError):
    """Raised when the adapter kind named in configuration cannot be built."""

    error_type = "invalid_request_error"

    def __init__(self, message: str, gateway: str = None, adapter: str = None):
        super().__init__(message, gateway)
        self.adapter = adapter


class InvalidRequestError(GatewayError):
    """Raised when a request cannot be dispatched as given."""

    error_type = "invalid_request_error"


class UpstreamError(GatewayError):
    """
    Raised by adapters when the upstream call fails.

    Carries the HTTP status (None for transport failures) and the
    provider's own error payload, parsed as JSON where possible.
    """

    error_type = "upstream_error"

    def __init__(
        self,
        message: str,
        gateway: str = None,
        status_code: Optional[int] = None,
        provider_error: Any = None,
    ):
        super().__init__(message, gateway)
        self.status_code = status_code
        self.provider_error = provider_error

    @classmethod
    def wrap(cls, error: "UpstreamError") -> "UpstreamError":
        """Re-type an upstream error, keeping its payload."""
        return cls(
            error.message,
            gateway=error.gateway,
            status_code=error.status_code,
            provider_error=error.provider_error,
        )


class TransientUpstreamError(UpstreamError):
    """Quota, rate-limit or 5xx-class failure; the next key may succeed."""


class FatalUpstreamError(UpstreamError):
    """Failure that retrying with another key will not fix."""


class AllCredentialsExhaustedError(GatewayError):
    """Raised when every key in the pool failed with a transient error."""

    error_type = "credentials_exhausted"

    def __init__(
        self,
        message: str,
        gateway: str = None,
        attempts: int = 0,
        last_error: Optional[TransientUpstreamError] = None,
        errors: Optional[List[TransientUpstreamError]] = None,
    ):
        super().__init__(message, gateway)
        self.attempts = attempts
        self.last_error = last_error
        self.errors = errors or []

    @property
    def provider_error(self) -> Any:
        if self.last_error is None:
            return None
        return self.last_error.provider_error


class NormalizationDecodeError(GatewayError):
    """Raised when emulated tool-call output cannot be decoded."""

    error_type = "normalization_error"

    def __init__(self, message: str, gateway: str = None, raw_text: str = "", trail: Optional[List[str]] = None):
        super().__init__(message, gateway)
        self.raw_text = raw_text
        self.trail = trail or []
