"""Chat models, tools and the tool-calling agent.

Example:
    >>> from openai import AsyncOpenAI
    >>> from stepwise.llm import ChatModel, ModelConfig
    >>>
    >>> model = ChatModel(ModelConfig(model="gpt-4o-mini"), client=AsyncOpenAI())
    >>> reply = await model.ainvoke("Hello!")
"""

from stepwise.llm.config import ModelConfig, PROVIDER_BASE_URLS
from stepwise.llm.messages import (
    BaseMessage,
    SystemMessage,
    HumanMessage,
    AIMessage,
    AIMessageChunk,
    ToolMessage,
    ToolCall,
    Usage,
    coerce_messages,
    to_openai_message,
    text_part,
    image_part,
)
from stepwise.llm.tools import Tool, tool, tool_from_fields, string_tool, execute_tool_calls
from stepwise.llm.structured import StructuredModel, StructuredResult
from stepwise.llm.chat import ChatModel, StreamEvent, create_chat_model
from stepwise.llm.agent import (
    ToolAgent,
    TranscriptEntry,
    TranscriptKind,
    create_agent,
    describe_messages,
)

__all__ = [
    # Config
    "ModelConfig",
    "PROVIDER_BASE_URLS",
    # Messages
    "BaseMessage",
    "SystemMessage",
    "HumanMessage",
    "AIMessage",
    "AIMessageChunk",
    "ToolMessage",
    "ToolCall",
    "Usage",
    "coerce_messages",
    "to_openai_message",
    "text_part",
    "image_part",
    # Tools
    "Tool",
    "tool",
    "tool_from_fields",
    "string_tool",
    "execute_tool_calls",
    # Models
    "ChatModel",
    "StreamEvent",
    "create_chat_model",
    "StructuredModel",
    "StructuredResult",
    # Agent
    "ToolAgent",
    "TranscriptEntry",
    "TranscriptKind",
    "create_agent",
    "describe_messages",
]
