"""Tests for environment configuration and ModelConfig."""

import logging

import pytest
from openai import AsyncOpenAI
from pydantic import ValidationError

from stepwise.llm import ModelConfig, PROVIDER_BASE_URLS
from stepwise.utils import (
    available_providers,
    configure_logging,
    ensure_api_key,
    get_api_key,
    get_config,
    load_env,
)
from stepwise.utils.errors import ConfigurationError

PROVIDER_VARIABLES = ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_API_KEY")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for variable in PROVIDER_VARIABLES + ("STEPWISE_LOG_LEVEL",):
        monkeypatch.delenv(variable, raising=False)


# =============================================================================
# Environment helpers
# =============================================================================


def test_load_env_from_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("STEPWISE_TEST_VALUE=from-file\n")
    # Registering the variable first lets monkeypatch remove it afterwards
    monkeypatch.setenv("STEPWISE_TEST_VALUE", "placeholder")
    monkeypatch.delenv("STEPWISE_TEST_VALUE")

    assert load_env(str(env_file)) is True
    assert get_config("STEPWISE_TEST_VALUE") == "from-file"


def test_load_env_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("STEPWISE_TEST_VALUE=from-file\n")
    monkeypatch.setenv("STEPWISE_TEST_VALUE", "from-env")

    load_env(str(env_file))

    assert get_config("STEPWISE_TEST_VALUE") == "from-env"


def test_get_config_default():
    assert get_config("STEPWISE_SURELY_UNSET", "fallback") == "fallback"


def test_get_api_key(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

    assert get_api_key("anthropic") == "sk-ant"
    assert get_api_key("openai") is None


def test_empty_api_key_counts_as_missing(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "")

    assert get_api_key("openai") is None


def test_ensure_api_key_missing():
    with pytest.raises(ConfigurationError, match="GOOGLE_API_KEY not found"):
        ensure_api_key("google")


def test_unknown_provider():
    with pytest.raises(ConfigurationError, match="Unsupported provider: mistral"):
        get_api_key("mistral")


def test_available_providers(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GOOGLE_API_KEY", "g-test")

    assert available_providers() == ["openai", "google"]


def test_configure_logging_off_by_default():
    assert configure_logging() is False


def test_configure_logging_from_env(monkeypatch):
    calls = []
    monkeypatch.setenv("STEPWISE_LOG_LEVEL", "debug")
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    assert configure_logging() is True
    assert calls[0]["level"] == "DEBUG"


# =============================================================================
# ModelConfig
# =============================================================================


class TestModelConfig:
    """Parsing, validation and client construction."""

    def test_defaults(self):
        config = ModelConfig(model="gpt-4o-mini")

        assert config.provider == "openai"
        assert config.temperature == 0.0
        assert config.max_tokens is None
        assert str(config) == "openai:gpt-4o-mini"

    @pytest.mark.parametrize(
        "spec, provider, model",
        [
            ("gpt-4o-mini", "openai", "gpt-4o-mini"),
            ("openai:gpt-4.1-mini", "openai", "gpt-4.1-mini"),
            ("Anthropic:claude-3-5-haiku-latest", "anthropic", "claude-3-5-haiku-latest"),
            ("google:gemini-2.0-flash", "google", "gemini-2.0-flash"),
        ],
    )
    def test_parse(self, spec, provider, model):
        config = ModelConfig.parse(spec)

        assert (config.provider, config.model) == (provider, model)

    def test_parse_with_overrides(self):
        config = ModelConfig.parse("openai:gpt-4o", temperature=0.7, max_tokens=256)

        assert config.temperature == 0.7
        assert config.request_kwargs() == {"model": "gpt-4o", "temperature": 0.7, "max_tokens": 256}

    def test_parse_config_passthrough(self):
        config = ModelConfig(model="gpt-4o")

        assert ModelConfig.parse(config) is config
        assert ModelConfig.parse(config, temperature=1.0).temperature == 1.0

    @pytest.mark.parametrize(
        "spec",
        ["ft:gpt-4o-mini:my-org::abc123", "ft:gpt-4o-mini-2024-07-18:acme:support:9xYz"],
    )
    def test_parse_fine_tuned_model(self, spec):
        config = ModelConfig.parse(spec)

        assert (config.provider, config.model) == ("openai", spec)
        assert config.request_kwargs()["model"] == spec

    def test_parse_provider_prefix_with_colons(self):
        config = ModelConfig.parse("openai:ft:gpt-4o-mini:my-org::abc123")

        assert (config.provider, config.model) == ("openai", "ft:gpt-4o-mini:my-org::abc123")

    def test_parse_empty_model(self):
        with pytest.raises(ConfigurationError, match="No model name"):
            ModelConfig.parse("openai:")

    def test_constructor_unknown_provider(self):
        with pytest.raises(ValidationError):
            ModelConfig(provider="mistral", model="large")

    @pytest.mark.parametrize("field, value", [("temperature", 2.5), ("temperature", -0.1), ("max_tokens", 0)])
    def test_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            ModelConfig(model="gpt-4o", **{field: value})

    def test_frozen(self):
        config = ModelConfig(model="gpt-4o")

        with pytest.raises(ValidationError):
            config.model = "other"

    def test_api_key_hidden_from_repr(self):
        assert "sk-secret" not in repr(ModelConfig(model="gpt-4o", api_key="sk-secret"))

    def test_resolved_api_key_prefers_explicit(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        assert ModelConfig(model="gpt-4o", api_key="sk-explicit").resolved_api_key() == "sk-explicit"
        assert ModelConfig(model="gpt-4o").resolved_api_key() == "sk-env"

    def test_resolved_api_key_missing(self):
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY not found"):
            ModelConfig(provider="anthropic", model="claude").resolved_api_key()

    def test_base_urls(self):
        assert ModelConfig(model="gpt-4o").resolved_base_url() is None
        assert (
            ModelConfig(provider="google", model="gemini").resolved_base_url()
            == PROVIDER_BASE_URLS["google"]
        )
        assert (
            ModelConfig(model="llama", base_url="http://localhost:11434/v1").resolved_base_url()
            == "http://localhost:11434/v1"
        )

    def test_create_client(self):
        config = ModelConfig(provider="anthropic", model="claude", api_key="sk-ant", timeout=5.0)
        client = config.create_client()

        assert isinstance(client, AsyncOpenAI)
        assert client.api_key == "sk-ant"
        assert str(client.base_url) == PROVIDER_BASE_URLS["anthropic"]
