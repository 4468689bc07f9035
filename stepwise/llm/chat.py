"""Chat model client with streaming and tool binding.

ChatModel wraps ``AsyncOpenAI().chat.completions`` for any provider with an
OpenAI-compatible endpoint. The SDK client is passed in by the caller, or
created from the ModelConfig on first use.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Iterable, Optional, Type, Union
import logging

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel

from stepwise.llm.config import ModelConfig
from stepwise.llm.messages import (
    AIMessage,
    AIMessageChunk,
    BaseMessage,
    Usage,
    coerce_messages,
    to_openai_messages,
)
from stepwise.llm.structured import StructuredModel
from stepwise.llm.tools import Tool, tools_by_name
from stepwise.utils.errors import LLMError

logger = logging.getLogger(__name__)

MessagesInput = Union[str, BaseMessage, Dict[str, Any], Iterable[Any]]


@dataclass
class StreamEvent:
    """Tagged event emitted by ``ChatModel.astream_events``.

    Attributes:
        event: on_chat_model_start, on_chat_model_stream or on_chat_model_end
        name: Model that produced the event
        data: ``{"input": ...}``, ``{"chunk": ...}`` or ``{"output": ...}``
    """

    event: str
    name: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class ChatModel:
    """Chat completions over an OpenAI-compatible endpoint.

    Example:
        >>> model = ChatModel(ModelConfig(model="gpt-4o-mini"), client=AsyncOpenAI())
        >>> reply = await model.ainvoke("What is the capital of France?")
        >>> reply.content
        'The capital of France is Paris.'
    """

    def __init__(
        self,
        config: Union[ModelConfig, str],
        client: Optional[AsyncOpenAI] = None,
        tools: Optional[Iterable[Tool]] = None,
        tool_choice: Optional[str] = None,
    ):
        """Initialize chat model.

        Args:
            config: ModelConfig or ``"provider:model"`` string
            client: SDK client to use; created from config when omitted
            tools: Tools offered to the model on every call
            tool_choice: "auto", "none", "required" or a tool name to force
        """
        self.config = ModelConfig.parse(config)
        self._client = client
        self.tools: Dict[str, Tool] = tools_by_name(tools or [])
        self.tool_choice = tool_choice

        if tool_choice not in (None, "auto", "none", "required") and tool_choice not in self.tools:
            raise ValueError(f"tool_choice '{tool_choice}' is not a bound tool")

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = self.config.create_client()
        return self._client

    @property
    def model_name(self) -> str:
        return self.config.model

    def bind_tools(
        self,
        tools: Iterable[Union[Tool, Any]],
        tool_choice: Optional[str] = None,
    ) -> "ChatModel":
        """Return a copy of this model that offers ``tools`` on every call.

        Plain functions are converted with ``Tool.from_function``.
        """
        return ChatModel(
            self.config,
            client=self.client,
            tools=list(tools_by_name(tools).values()),
            tool_choice=tool_choice,
        )

    def with_structured_output(
        self,
        schema: Type[BaseModel],
        include_raw: bool = False,
    ) -> StructuredModel:
        """Return a wrapper whose replies are validated ``schema`` instances."""
        return StructuredModel(self, schema, include_raw=include_raw)

    async def ainvoke(self, messages: MessagesInput, **kwargs: Any) -> AIMessage:
        """Send a conversation and return the assistant reply.

        Args:
            messages: Prompt string, message, role/content dict or a list
            **kwargs: Extra ``chat.completions.create`` parameters

        Raises:
            LLMError: If the request fails or returns no choices
        """
        request = self._build_request(messages, **kwargs)
        logger.debug("Calling %s with %d messages", self.config, len(request["messages"]))
        response = await self._create(request)

        if not response.choices:
            raise LLMError(f"{self.config} returned no choices")
        choice = response.choices[0]
        reply = AIMessage.from_openai(
            choice.message,
            usage=response.usage,
            model=response.model,
            finish_reason=choice.finish_reason,
        )
        if reply.tool_calls:
            logger.debug(
                "%s requested tools: %s",
                self.config,
                ", ".join(tc.name for tc in reply.tool_calls),
            )
        return reply

    async def astream(self, messages: MessagesInput, **kwargs: Any) -> AsyncIterator[AIMessageChunk]:
        """Stream the reply as text fragments.

        The last chunk has empty content and carries usage and finish
        metadata when the endpoint reports them. Stopping iteration early
        closes the underlying HTTP stream.

        Raises:
            LLMError: If the request or the stream fails
        """
        request = self._build_request(
            messages,
            stream=True,
            stream_options={"include_usage": True},
            **kwargs,
        )
        stream = await self._create(request)

        usage: Optional[Usage] = None
        metadata: Dict[str, Any] = {}
        try:
            async for chunk in stream:
                if chunk.model:
                    metadata["model"] = chunk.model
                if chunk.usage is not None:
                    usage = Usage.from_openai(chunk.usage)
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.finish_reason:
                    metadata["finish_reason"] = choice.finish_reason
                if choice.delta is not None and choice.delta.content:
                    yield AIMessageChunk(content=choice.delta.content)
        except openai.OpenAIError as e:
            raise LLMError(f"{self.config} stream failed: {e}", e) from e
        finally:
            await stream.close()

        yield AIMessageChunk(content="", usage=usage, response_metadata=metadata)

    async def astream_events(self, messages: MessagesInput, **kwargs: Any) -> AsyncIterator[StreamEvent]:
        """Stream tagged start, chunk and end events for one call."""
        prompt = coerce_messages(messages)
        name = str(self.config)
        yield StreamEvent(event="on_chat_model_start", name=name, data={"input": prompt})

        full: Optional[AIMessageChunk] = None
        async for chunk in self.astream(prompt, **kwargs):
            full = chunk if full is None else full + chunk
            if chunk.content:
                yield StreamEvent(event="on_chat_model_stream", name=name, data={"chunk": chunk})

        output = full.to_message() if full is not None else AIMessage()
        yield StreamEvent(event="on_chat_model_end", name=name, data={"output": output})

    def _build_request(self, messages: MessagesInput, **kwargs: Any) -> Dict[str, Any]:
        request = self.config.request_kwargs()
        request["messages"] = to_openai_messages(coerce_messages(messages))
        if self.tools:
            request["tools"] = [t.openai_schema() for t in self.tools.values()]
            if self.tool_choice in ("auto", "none", "required"):
                request["tool_choice"] = self.tool_choice
            elif self.tool_choice:
                request["tool_choice"] = {
                    "type": "function",
                    "function": {"name": self.tool_choice},
                }
        request.update(kwargs)
        return request

    async def _create(self, request: Dict[str, Any]) -> Any:
        try:
            return await self.client.chat.completions.create(**request)
        except openai.OpenAIError as e:
            logger.error("%s request failed: %s", self.config, e)
            raise LLMError(f"{self.config} request failed: {e}", e) from e

    def __repr__(self) -> str:
        tools = f", tools={list(self.tools)}" if self.tools else ""
        return f"ChatModel({self.config}{tools})"


def create_chat_model(
    model: Union[str, ModelConfig, ChatModel],
    client: Optional[AsyncOpenAI] = None,
    **overrides: Any,
) -> ChatModel:
    """Accept a ChatModel, a ModelConfig or a ``"provider:model"`` string."""
    if isinstance(model, ChatModel):
        return model
    return ChatModel(ModelConfig.parse(model, **overrides), client=client)
