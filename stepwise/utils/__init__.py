"""Utility functions and helpers."""

from stepwise.utils.config import (
    load_env,
    get_config,
    get_api_key,
    ensure_api_key,
    configure_logging,
    available_providers,
)
from stepwise.utils.errors import (
    StepwiseError,
    GraphValidationError,
    CycleDetectedError,
    UndeclaredFieldError,
    InvalidUpdateError,
    NodeExecutionError,
    ConfigurationError,
    LLMError,
    StructuredOutputError,
    ToolValidationError,
    UnknownToolError,
    AgentLoopLimitError,
)

__all__ = [
    "load_env",
    "get_config",
    "get_api_key",
    "ensure_api_key",
    "configure_logging",
    "available_providers",
    "StepwiseError",
    "GraphValidationError",
    "CycleDetectedError",
    "UndeclaredFieldError",
    "InvalidUpdateError",
    "NodeExecutionError",
    "ConfigurationError",
    "LLMError",
    "StructuredOutputError",
    "ToolValidationError",
    "UnknownToolError",
    "AgentLoopLimitError",
]
