"""
Core gateway components.
"""

from .interface import ProviderAdapter, GatewayCapability
from .classification import ErrorClass, classify_upstream_error
from .config import GatewayConfig, ProviderDescriptor, ServerConfig, load_config, parse_config
from .key_rotator import KeyRotator
from .resilient import ResilientProvider
from .errors import (
    GatewayError,
    InvalidConfigurationError,
    RotationNotStartedError,
    UnknownProviderError,
    AdapterLoadError,
    InvalidRequestError,
    UpstreamError,
    TransientUpstreamError,
    FatalUpstreamError,
    AllCredentialsExhaustedError,
    NormalizationDecodeError,
)

__all__ = [
    "ProviderAdapter",
    "GatewayCapability",
    "ErrorClass",
    "classify_upstream_error",
    "GatewayConfig",
    "ProviderDescriptor",
    "ServerConfig",
    "load_config",
    "parse_config",
    "KeyRotator",
    "ResilientProvider",
    "GatewayError",
    "InvalidConfigurationError",
    "RotationNotStartedError",
    "UnknownProviderError",
    "AdapterLoadError",
    "InvalidRequestError",
    "UpstreamError",
    "TransientUpstreamError",
    "FatalUpstreamError",
    "AllCredentialsExhaustedError",
    "NormalizationDecodeError",
]
