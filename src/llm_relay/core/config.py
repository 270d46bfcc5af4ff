"""
Configuration loading for the gateway.
"""

import os
import logging
from typing import Dict, Any, Optional, Tuple
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LLM_RELAY_CONFIG"

_PROVIDER_FIELDS = {"adapter", "api_keys", "host", "default_model", "timeout"}


@dataclass(frozen=True)
class ProviderDescriptor:
    """Configuration for a single upstream provider."""
    name: str
    adapter: str
    api_keys: Tuple[str, ...]
    host: Optional[str] = None
    default_model: Optional[str] = None
    timeout: float = 60.0
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ServerConfig:
    """Settings for the HTTP front end."""
    api_key: Optional[str] = None
    log_level: str = "info"


@dataclass(frozen=True)
class GatewayConfig:
    """Complete gateway configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    providers: Dict[str, ProviderDescriptor] = field(default_factory=dict)


def load_config(config_path: Optional[str] = None) -> GatewayConfig:
    """
    Load gateway configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses $LLM_RELAY_CONFIG
            or the default locations.

    Returns:
        Loaded configuration

    Raises:
        InvalidConfigurationError: If an explicit path is missing or the
            file cannot be parsed
    """
    config_path = config_path or os.environ.get(CONFIG_ENV_VAR)

    if config_path is None:
        # Try common locations
        paths = [
            Path("config/llm-relay.yaml"),
            Path("/etc/llm-relay/config.yaml"),
            Path.home() / ".config/llm-relay/config.yaml",
        ]
        for p in paths:
            if p.exists():
                config_path = str(p)
                break

    if config_path is None:
        logger.warning("No gateway config file found, no providers configured")
        return GatewayConfig()

    if not Path(config_path).exists():
        raise InvalidConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise InvalidConfigurationError(f"Failed to load config from {config_path}: {e}") from e

    config = parse_config(data or {})
    logger.info(f"Loaded config with providers: {', '.join(config.providers)}")
    return config


def _expand_env(value: Any) -> Any:
    """Expand a ${VAR} string from the environment."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")
    return value


def _parse_provider(name: str, data: Dict[str, Any]) -> ProviderDescriptor:
    """Parse one provider block."""
    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"Provider {name} must be a mapping", gateway=name)

    adapter = data.get("adapter")
    if not adapter:
        raise InvalidConfigurationError(f"Provider {name} has no adapter", gateway=name)

    raw_keys = data.get("api_keys") or []
    if isinstance(raw_keys, str):
        raw_keys = [raw_keys]
    api_keys = tuple(k for k in (_expand_env(k) for k in raw_keys) if k)
    if not api_keys:
        raise InvalidConfigurationError(f"Provider {name} has no API keys", gateway=name)

    try:
        timeout = float(data.get("timeout", 60.0))
    except (TypeError, ValueError):
        raise InvalidConfigurationError(
            f"Provider {name} has an invalid timeout: {data.get('timeout')!r}",
            gateway=name,
        ) from None

    options = {
        k: _expand_env(v) for k, v in data.items() if k not in _PROVIDER_FIELDS
    }

    return ProviderDescriptor(
        name=name,
        adapter=str(adapter),
        api_keys=api_keys,
        host=_expand_env(data.get("host")) or None,
        default_model=data.get("default_model"),
        timeout=timeout,
        options=options,
    )


def parse_config(data: Dict[str, Any]) -> GatewayConfig:
    """
    Parse configuration dictionary.

    Raises:
        InvalidConfigurationError: On a provider without adapter or keys
    """
    server_data = data.get("server") or {}
    server = ServerConfig(
        api_key=_expand_env(server_data.get("api_key")),
        log_level=str(server_data.get("log_level", "info")).lower(),
    )

    providers = {
        name: _parse_provider(name, provider_data)
        for name, provider_data in (data.get("providers") or {}).items()
    }

    return GatewayConfig(server=server, providers=providers)
