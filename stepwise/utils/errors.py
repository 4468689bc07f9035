"""Custom error classes for Stepwise."""

from typing import Iterable, Optional


class StepwiseError(Exception):
    """Base exception for all Stepwise errors."""

    pass


class GraphValidationError(StepwiseError):
    """Raised when schema or graph validation fails."""

    pass


class CycleDetectedError(GraphValidationError):
    """Raised when a cycle is detected in the graph."""

    pass


class UndeclaredFieldError(StepwiseError):
    """Raised when an update names a field the schema does not declare."""

    def __init__(self, fields: Iterable[str], node_id: Optional[str] = None):
        self.fields = sorted(fields)
        self.node_id = node_id
        where = f" returned by node '{node_id}'" if node_id else ""
        super().__init__(
            f"Update{where} references undeclared state field(s): "
            f"{', '.join(self.fields)}"
        )


class InvalidUpdateError(StepwiseError):
    """Raised when a step returns something that is not a partial update."""

    pass


class NodeExecutionError(StepwiseError):
    """Raised when node execution fails."""

    def __init__(self, node_id: str, message: str, original_error: Exception = None):
        self.node_id = node_id
        self.original_error = original_error
        super().__init__(f"Node '{node_id}' execution failed: {message}")


class ConfigurationError(StepwiseError):
    """Raised when model or environment configuration is missing or invalid."""

    pass


class LLMError(StepwiseError):
    """Raised when a chat completion request fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(message)


class StructuredOutputError(LLMError):
    """Raised when a model response does not validate against the schema."""

    def __init__(self, message: str, raw=None, original_error: Exception = None):
        self.raw = raw
        super().__init__(message, original_error)


class ToolValidationError(StepwiseError):
    """Raised when tool arguments fail schema validation."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(f"Invalid arguments for tool '{tool_name}': {message}")


class UnknownToolError(StepwiseError):
    """Raised when a tool call names a tool that was never bound."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class AgentLoopLimitError(StepwiseError):
    """Raised when an agent keeps requesting tools past its iteration limit."""

    def __init__(self, max_iterations: int, messages=None):
        self.max_iterations = max_iterations
        self.messages = messages or []
        super().__init__(
            f"Agent did not produce a final answer within {max_iterations} model calls"
        )
