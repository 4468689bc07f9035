"""Model configuration for OpenAI-compatible chat endpoints.

Every supported provider is reached through the OpenAI SDK by pointing the
client at the provider's OpenAI-compatible base URL.
"""

from typing import Optional, Union

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, field_validator

from stepwise.utils.config import PROVIDER_API_KEYS, api_key_variable, get_api_key
from stepwise.utils.errors import ConfigurationError

# None means the SDK's default endpoint
PROVIDER_BASE_URLS = {
    "openai": None,
    "anthropic": "https://api.anthropic.com/v1/",
    "google": "https://generativelanguage.googleapis.com/v1beta/openai/",
}

DEFAULT_PROVIDER = "openai"


class ModelConfig(BaseModel):
    """Which model to call and how.

    Example:
        >>> config = ModelConfig(model="gpt-4o-mini", temperature=0.7)
        >>> config = ModelConfig.parse("anthropic:claude-3-5-haiku-latest")
        >>> client = config.create_client()
    """

    model_config = ConfigDict(frozen=True)

    provider: str = DEFAULT_PROVIDER
    model: str
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    api_key: Optional[str] = Field(default=None, repr=False)
    base_url: Optional[str] = None
    timeout: float = Field(default=60.0, gt=0)

    @field_validator("provider")
    @classmethod
    def _known_provider(cls, value: str) -> str:
        value = value.lower()
        if value not in PROVIDER_API_KEYS:
            raise ValueError(
                f"Unsupported provider: {value}. "
                f"Expected one of: {', '.join(sorted(PROVIDER_API_KEYS))}"
            )
        return value

    @classmethod
    def parse(cls, spec: Union[str, "ModelConfig"], **overrides) -> "ModelConfig":
        """Build a config from ``"provider:model"`` or a bare model name.

        Args:
            spec: ``"openai:gpt-4o-mini"``, ``"gpt-4o-mini"`` or a ModelConfig
            **overrides: Other ModelConfig fields (temperature, max_tokens, ...)

        Raises:
            ConfigurationError: If the model name is empty
        """
        if isinstance(spec, ModelConfig):
            return spec.model_copy(update=overrides) if overrides else spec

        # A prefix that is not a provider stays in the model name (ft:gpt-4o-mini:org::id)
        prefix, sep, rest = spec.partition(":")
        if sep and prefix.lower() in PROVIDER_API_KEYS:
            provider, model = prefix.lower(), rest
        else:
            provider, model = DEFAULT_PROVIDER, spec
        if not model:
            raise ConfigurationError(f"No model name in '{spec}'")
        return cls(provider=provider, model=model, **overrides)

    def resolved_api_key(self) -> str:
        """Explicit key, or the provider's environment variable.

        Raises:
            ConfigurationError: If neither is set
        """
        if self.api_key:
            return self.api_key
        api_key = get_api_key(self.provider)
        if not api_key:
            raise ConfigurationError(
                f"{api_key_variable(self.provider)} not found in environment. "
                "Please set it in .env file or environment variables."
            )
        return api_key

    def resolved_base_url(self) -> Optional[str]:
        return self.base_url or PROVIDER_BASE_URLS[self.provider]

    def create_client(self) -> AsyncOpenAI:
        """Create an SDK client for this provider."""
        return AsyncOpenAI(
            api_key=self.resolved_api_key(),
            base_url=self.resolved_base_url(),
            timeout=self.timeout,
        )

    def request_kwargs(self) -> dict:
        """Sampling parameters for ``chat.completions.create``."""
        kwargs = {"model": self.model, "temperature": self.temperature}
        if self.max_tokens:
            kwargs["max_tokens"] = self.max_tokens
        return kwargs

    def __str__(self) -> str:
        return f"{self.provider}:{self.model}"
