"""Configuration utilities for loading environment variables."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

from stepwise.utils.errors import ConfigurationError

# Environment variable holding the API key for each supported provider
PROVIDER_API_KEYS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
}


def load_env(env_file: Optional[str] = None) -> bool:
    """Load environment variables from a .env file.

    Variables already present in the environment win over the file.

    Args:
        env_file: Optional path to .env file. If not specified, searches
                 for .env in current and parent directories.

    Returns:
        True if a .env file was found and loaded

    Example:
        >>> from stepwise.utils.config import load_env
        >>> load_env()  # Loads from .env
        >>> import os
        >>> api_key = os.getenv("OPENAI_API_KEY")
    """
    if env_file:
        return load_dotenv(env_file)
    return load_dotenv()


def get_config(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get configuration value from environment.

    Args:
        key: Configuration key
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    return os.getenv(key, default)


def api_key_variable(provider: str) -> str:
    """Return the environment variable name holding a provider's API key.

    Raises:
        ConfigurationError: If the provider is unknown
    """
    try:
        return PROVIDER_API_KEYS[provider]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported provider: {provider}. "
            f"Expected one of: {', '.join(sorted(PROVIDER_API_KEYS))}"
        ) from None


def get_api_key(provider: str = "openai") -> Optional[str]:
    """Get a provider API key from environment.

    Returns:
        API key or None if not found
    """
    return os.getenv(api_key_variable(provider)) or None


def ensure_api_key(provider: str = "openai") -> str:
    """Ensure a provider API key is available.

    Returns:
        API key

    Raises:
        ConfigurationError: If API key not found
    """
    api_key = get_api_key(provider)
    if not api_key:
        variable = api_key_variable(provider)
        raise ConfigurationError(
            f"{variable} not found in environment. "
            "Please set it in .env file or environment variables."
        )
    return api_key


def available_providers() -> list:
    """List providers whose API key is present in the environment."""
    return [name for name in PROVIDER_API_KEYS if get_api_key(name)]


def configure_logging(default: Optional[str] = None) -> bool:
    """Turn on stepwise logging when ``STEPWISE_LOG_LEVEL`` is set.

    Args:
        default: Level to use when the variable is unset; None leaves
            logging unconfigured

    Returns:
        True if logging was configured
    """
    level = os.getenv("STEPWISE_LOG_LEVEL", default)
    if not level:
        return False
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return True
