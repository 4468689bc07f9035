"""Chat message types and conversion to and from the OpenAI wire format.

Messages are plain dataclasses. A conversation is a list of them, which is
also what the agent keeps in its append-only ``messages`` state field.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Union
import json


@dataclass
class ToolCall:
    """A model's request to run one tool.

    Attributes:
        id: Call identifier, echoed back in the matching ToolMessage
        name: Tool name
        args: Decoded arguments
        raw_arguments: Arguments exactly as the model sent them
    """

    id: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    raw_arguments: Optional[str] = None

    @classmethod
    def from_openai(cls, tool_call: Any) -> "ToolCall":
        raw = tool_call.function.arguments or "{}"
        try:
            args = json.loads(raw)
        except json.JSONDecodeError:
            args = {}
        if not isinstance(args, dict):
            args = {}
        return cls(id=tool_call.id, name=tool_call.function.name, args=args, raw_arguments=raw)

    def to_openai(self) -> Dict[str, Any]:
        arguments = self.raw_arguments if self.raw_arguments is not None else json.dumps(self.args)
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": arguments},
        }


@dataclass
class Usage:
    """Token accounting for one model call."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_openai(cls, usage: Any) -> Optional["Usage"]:
        if usage is None:
            return None
        return cls(
            input_tokens=usage.prompt_tokens or 0,
            output_tokens=usage.completion_tokens or 0,
            total_tokens=usage.total_tokens or 0,
        )

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


@dataclass
class BaseMessage:
    """Common shape of every chat message.

    ``content`` is a string, or for user messages a list of content parts
    such as ``{"type": "text", "text": ...}`` and
    ``{"type": "image_url", "image_url": {"url": ...}}``.
    """

    role: ClassVar[str] = ""

    content: Any = ""
    name: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Text content, with non-text parts dropped."""
        if isinstance(self.content, str):
            return self.content
        if self.content is None:
            return ""
        return "".join(
            part.get("text", "")
            for part in self.content
            if isinstance(part, dict) and part.get("type") == "text"
        )


@dataclass
class SystemMessage(BaseMessage):
    role: ClassVar[str] = "system"


@dataclass
class HumanMessage(BaseMessage):
    role: ClassVar[str] = "user"


@dataclass
class AIMessage(BaseMessage):
    """Assistant reply, possibly requesting tool calls."""

    role: ClassVar[str] = "assistant"

    tool_calls: List[ToolCall] = field(default_factory=list)
    usage: Optional[Usage] = None
    response_metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_openai(
        cls,
        message: Any,
        usage: Any = None,
        model: Optional[str] = None,
        finish_reason: Optional[str] = None,
    ) -> "AIMessage":
        """Build from an SDK ``ChatCompletionMessage``.

        Args:
            message: ``response.choices[0].message``
            usage: ``response.usage``
            model: Model name reported by the endpoint
            finish_reason: ``response.choices[0].finish_reason``
        """
        tool_calls = [
            ToolCall.from_openai(tc)
            for tc in (message.tool_calls or [])
            if getattr(tc, "type", "function") == "function"
        ]
        response_metadata = {}
        if model:
            response_metadata["model"] = model
        if finish_reason:
            response_metadata["finish_reason"] = finish_reason
        return cls(
            content=message.content or "",
            tool_calls=tool_calls,
            usage=Usage.from_openai(usage),
            response_metadata=response_metadata,
        )


@dataclass
class ToolMessage(BaseMessage):
    """Result of one tool call, sent back to the model."""

    role: ClassVar[str] = "tool"

    tool_call_id: str = ""
    status: str = "success"


@dataclass
class AIMessageChunk:
    """Fragment of a streamed assistant reply.

    Chunks can be summed to rebuild the whole reply:

        >>> full = None
        >>> async for chunk in model.astream("Hi"):
        ...     full = chunk if full is None else full + chunk
    """

    content: str = ""
    usage: Optional[Usage] = None
    response_metadata: Dict[str, Any] = field(default_factory=dict)

    def __add__(self, other: "AIMessageChunk") -> "AIMessageChunk":
        usage = self.usage
        if other.usage is not None:
            usage = other.usage if usage is None else usage + other.usage
        return AIMessageChunk(
            content=self.content + other.content,
            usage=usage,
            response_metadata={**self.response_metadata, **other.response_metadata},
        )

    def to_message(self) -> AIMessage:
        return AIMessage(
            content=self.content,
            usage=self.usage,
            response_metadata=dict(self.response_metadata),
        )


Message = Union[SystemMessage, HumanMessage, AIMessage, ToolMessage]

_ROLE_ALIASES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "human": HumanMessage,
    "assistant": AIMessage,
    "ai": AIMessage,
    "tool": ToolMessage,
}


def text_part(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def image_part(url: str, detail: Optional[str] = None) -> Dict[str, Any]:
    """Image content part; ``url`` may be https or a base64 data URL."""
    image_url = {"url": url}
    if detail:
        image_url["detail"] = detail
    return {"type": "image_url", "image_url": image_url}


def message_from_dict(data: Dict[str, Any]) -> BaseMessage:
    """Build a message from ``{"role": ..., "content": ...}``.

    Raises:
        ValueError: If the role is missing or unknown
    """
    role = data.get("role")
    message_cls = _ROLE_ALIASES.get(role)
    if message_cls is None:
        raise ValueError(f"Unknown message role: {role!r}")

    kwargs: Dict[str, Any] = {"content": data.get("content") or ""}
    if data.get("name"):
        kwargs["name"] = data["name"]
    if message_cls is ToolMessage:
        kwargs["tool_call_id"] = data.get("tool_call_id", "")
    if message_cls is AIMessage and data.get("tool_calls"):
        kwargs["tool_calls"] = [
            tc if isinstance(tc, ToolCall) else _tool_call_from_dict(tc)
            for tc in data["tool_calls"]
        ]
    return message_cls(**kwargs)


def _tool_call_from_dict(data: Dict[str, Any]) -> ToolCall:
    if "function" in data:
        raw = data["function"].get("arguments") or "{}"
        return ToolCall(
            id=data["id"],
            name=data["function"]["name"],
            args=json.loads(raw),
            raw_arguments=raw,
        )
    return ToolCall(id=data["id"], name=data["name"], args=data.get("args", {}))


def coerce_messages(value: Any) -> List[BaseMessage]:
    """Normalise a prompt into a list of messages.

    Accepts a string (one user message), a message, a role/content dict, or
    a list mixing any of those.

    Raises:
        TypeError: If an item cannot be turned into a message
    """
    if isinstance(value, (str, BaseMessage, dict)):
        value = [value]

    messages: List[BaseMessage] = []
    for item in value:
        if isinstance(item, BaseMessage):
            messages.append(item)
        elif isinstance(item, str):
            messages.append(HumanMessage(content=item))
        elif isinstance(item, dict):
            messages.append(message_from_dict(item))
        else:
            raise TypeError(f"Cannot convert {type(item).__name__} to a chat message")
    return messages


def to_openai_message(message: BaseMessage) -> Dict[str, Any]:
    """Convert a message to the chat completions request format."""
    payload: Dict[str, Any] = {"role": message.role, "content": message.content}
    if message.name and message.role in ("system", "user"):
        payload["name"] = message.name

    if isinstance(message, AIMessage) and message.tool_calls:
        payload["content"] = message.content or None
        payload["tool_calls"] = [tc.to_openai() for tc in message.tool_calls]
    elif isinstance(message, ToolMessage):
        payload["tool_call_id"] = message.tool_call_id
        payload["content"] = message.text
    return payload


def to_openai_messages(messages: Iterable[BaseMessage]) -> List[Dict[str, Any]]:
    return [to_openai_message(m) for m in messages]
