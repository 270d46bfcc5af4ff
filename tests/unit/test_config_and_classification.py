"""
Unit tests for configuration parsing and error classification.
"""

import pytest

from llm_relay.adapters.openai_adapter import OpenAIAdapter
from llm_relay.core.classification import ErrorClass, classify_upstream_error
from llm_relay.core.config import load_config, parse_config
from llm_relay.core.errors import InvalidConfigurationError, UpstreamError


class TestParseConfig:
    """Test configuration parsing."""

    def test_parse_providers(self, gateway_config):
        """Descriptors carry adapter, keys, host and default model."""
        ollama = gateway_config.providers["ollama"]
        assert ollama.adapter == "ollama_cloud"
        assert ollama.api_keys == ("ok-1", "ok-2", "ok-3")
        assert ollama.host == "https://ollama.example"
        assert ollama.default_model == "gpt-oss:120b"

        openai = gateway_config.providers["openai"]
        assert openai.host is None
        assert openai.default_model is None
        assert gateway_config.server.api_key == "relay-secret"
        assert gateway_config.server.log_level == "debug"

    def test_env_expansion(self, monkeypatch):
        """${VAR} keys are read from the environment."""
        monkeypatch.setenv("RELAY_TEST_KEY", "from-env")
        config = parse_config({
            "server": {"api_key": "${RELAY_TEST_KEY}"},
            "providers": {"p": {"adapter": "openai", "api_keys": ["${RELAY_TEST_KEY}", "literal"]}},
        })
        assert config.server.api_key == "from-env"
        assert config.providers["p"].api_keys == ("from-env", "literal")

    def test_extra_fields_become_options(self):
        """Unknown provider fields are passed to the adapter."""
        config = parse_config({
            "providers": {"p": {
                "adapter": "ollama_cloud",
                "api_keys": ["k"],
                "strict_tool_parsing": True,
                "timeout": 30,
            }},
        })
        descriptor = config.providers["p"]
        assert descriptor.options == {"strict_tool_parsing": True}
        assert descriptor.timeout == 30.0

    def test_provider_without_keys_rejected(self):
        """A provider with an empty pool fails at load time."""
        with pytest.raises(InvalidConfigurationError):
            parse_config({"providers": {"p": {"adapter": "openai", "api_keys": []}}})

    def test_unset_env_keys_rejected(self, monkeypatch):
        """Keys that expand to nothing do not count."""
        monkeypatch.delenv("RELAY_MISSING_KEY", raising=False)
        with pytest.raises(InvalidConfigurationError):
            parse_config({"providers": {"p": {"adapter": "openai", "api_keys": ["${RELAY_MISSING_KEY}"]}}})

    @pytest.mark.parametrize("timeout", ["abc", None, [30]])
    def test_invalid_timeout_rejected(self, timeout):
        """A timeout that is not a number is a configuration error."""
        with pytest.raises(InvalidConfigurationError):
            parse_config({"providers": {"p": {"adapter": "openai", "api_keys": ["k"], "timeout": timeout}}})

    def test_provider_without_adapter_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            parse_config({"providers": {"p": {"api_keys": ["k"]}}})

    def test_descriptor_is_frozen(self, gateway_config):
        """Descriptors cannot be changed after loading."""
        with pytest.raises(Exception):
            gateway_config.providers["ollama"].host = "elsewhere"


class TestLoadConfig:
    """Test loading from YAML files."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "relay.yaml"
        path.write_text(
            "server:\n"
            "  api_key: secret\n"
            "providers:\n"
            "  ollama:\n"
            "    adapter: ollama_cloud\n"
            "    api_keys: [a, b]\n"
        )
        config = load_config(str(path))
        assert config.providers["ollama"].api_keys == ("a", "b")

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(InvalidConfigurationError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("providers: [unclosed\n")
        with pytest.raises(InvalidConfigurationError):
            load_config(str(path))

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("providers: {}\n")
        monkeypatch.setenv("LLM_RELAY_CONFIG", str(path))
        assert load_config().providers == {}


class TestClassification:
    """Test transient vs. fatal heuristics."""

    @pytest.mark.parametrize("status", [429, 502, 503, 504])
    def test_transient_statuses(self, status):
        assert classify_upstream_error(UpstreamError("x", status_code=status)) is ErrorClass.TRANSIENT

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 500])
    def test_fatal_statuses(self, status):
        assert classify_upstream_error(UpstreamError("x", status_code=status)) is ErrorClass.FATAL

    @pytest.mark.parametrize("message", [
        "Weekly quota reached",
        "Rate limit exceeded",
        "Too Many Requests",
        "upstream error",
        "502 Bad Gateway",
        "Service Unavailable",
        "Gateway Timeout",
    ])
    def test_transient_markers_in_message(self, message):
        assert classify_upstream_error(UpstreamError(message)) is ErrorClass.TRANSIENT

    def test_transient_marker_in_nested_payload(self):
        """Markers in the provider payload count even with a neutral message."""
        error = UpstreamError("request failed", status_code=400, provider_error={"error": "you have exceeded your quota"})
        assert classify_upstream_error(error) is ErrorClass.TRANSIENT

    def test_marker_in_deeply_nested_payload(self):
        error = UpstreamError("failed", provider_error={"error": {"message": "Rate limit reached for requests"}})
        assert classify_upstream_error(error) is ErrorClass.TRANSIENT

    def test_transport_failure_is_fatal(self):
        """Connection errors without markers are fatal."""
        assert classify_upstream_error(UpstreamError("Failed to connect: connection refused")) is ErrorClass.FATAL

    def test_openai_quota_code(self):
        """OpenAI's insufficient_quota code is transient."""
        adapter = OpenAIAdapter(name="openai")
        error = UpstreamError(
            "request failed",
            status_code=400,
            provider_error={"error": {"code": "insufficient_quota", "message": "billing"}},
        )
        assert adapter.classify(error) is ErrorClass.TRANSIENT
