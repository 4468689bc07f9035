"""Tool-calling agent loop.

The agent alternates between two steps, ``model`` and ``tools``, until the
model answers without requesting a tool. The conversation lives in an
append-only ``messages`` field and every step's output is merged with the
same StateSchema rules a graph run uses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Union
import logging

from openai import AsyncOpenAI

from stepwise.core.state import StateSchema
from stepwise.llm.chat import ChatModel, create_chat_model
from stepwise.llm.config import ModelConfig
from stepwise.llm.messages import (
    AIMessage,
    BaseMessage,
    SystemMessage,
    ToolCall,
    ToolMessage,
    coerce_messages,
)
from stepwise.llm.tools import Tool, execute_tool_calls, tools_by_name
from stepwise.streaming.modes import StateUpdate
from stepwise.utils.errors import AgentLoopLimitError, InvalidUpdateError

logger = logging.getLogger(__name__)


def agent_state_schema() -> StateSchema:
    """State of an agent run: the conversation, appended to by each step."""
    return StateSchema().append_field("messages", List[BaseMessage])


class TranscriptKind(str, Enum):
    """What a model-side message represents."""

    ASSISTANT_WITH_CALL = "assistant-with-call"
    TOOL_RESULT = "tool-result"
    ASSISTANT_FINAL = "assistant-final"


@dataclass
class TranscriptEntry:
    """One tagged entry of an agent transcript.

    Attributes:
        kind: Entry kind; consumers switch on this
        content: Message text
        tool_calls: Calls requested (assistant-with-call)
        tool_name: Tool that produced the result (tool-result)
        tool_call_id: Call the result answers (tool-result)
        status: "success" or "error" (tool-result)
        message: The underlying message
    """

    kind: TranscriptKind
    content: str
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_name: Optional[str] = None
    tool_call_id: Optional[str] = None
    status: Optional[str] = None
    message: Optional[BaseMessage] = None


def describe_messages(messages: Iterable[BaseMessage]) -> List[TranscriptEntry]:
    """Tag the assistant and tool messages of a conversation.

    User and system messages are the agent's input and are skipped.
    """
    entries: List[TranscriptEntry] = []
    for message in messages:
        if isinstance(message, ToolMessage):
            entries.append(
                TranscriptEntry(
                    kind=TranscriptKind.TOOL_RESULT,
                    content=message.text,
                    tool_name=message.name,
                    tool_call_id=message.tool_call_id,
                    status=message.status,
                    message=message,
                )
            )
        elif isinstance(message, AIMessage) and message.tool_calls:
            entries.append(
                TranscriptEntry(
                    kind=TranscriptKind.ASSISTANT_WITH_CALL,
                    content=message.text,
                    tool_calls=list(message.tool_calls),
                    message=message,
                )
            )
        elif isinstance(message, AIMessage):
            entries.append(
                TranscriptEntry(
                    kind=TranscriptKind.ASSISTANT_FINAL,
                    content=message.text,
                    message=message,
                )
            )
    return entries


class ToolAgent:
    """Model plus tools, run until the model gives a final answer.

    Example:
        >>> agent = ToolAgent(model, tools=[get_weather], system_prompt="Be brief.")
        >>> result = await agent.ainvoke({"messages": [{"role": "user", "content": "Weather in Paris?"}]})
        >>> result["messages"][-1].content
        'It is sunny in Paris.'
    """

    def __init__(
        self,
        model: ChatModel,
        tools: Iterable[Union[Tool, Any]] = (),
        system_prompt: Optional[str] = None,
        max_iterations: int = 10,
        handle_tool_errors: bool = True,
    ):
        """Initialize agent.

        Args:
            model: Chat model; tools are bound to a copy of it
            tools: Tools or plain functions the model may call
            system_prompt: Prepended to every model call, not stored in state
            max_iterations: Maximum number of model calls per run
            handle_tool_errors: Report tool failures to the model instead of raising
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.tools: Dict[str, Tool] = tools_by_name(tools)
        self.model = model.bind_tools(list(self.tools.values())) if self.tools else model
        self.system_prompt = system_prompt
        self.max_iterations = max_iterations
        self.handle_tool_errors = handle_tool_errors
        self.schema = agent_state_schema()

    async def ainvoke(self, input: Union[Mapping[str, Any], Any]) -> Dict[str, Any]:
        """Run the loop and return the final state.

        Args:
            input: ``{"messages": [...]}``, or anything ``coerce_messages`` accepts

        Returns:
            ``{"messages": [...]}`` with the input followed by every model
            reply and tool result

        Raises:
            AgentLoopLimitError: If the model still requests tools after
                ``max_iterations`` calls
            InvalidUpdateError: If a mapping input has no ``messages`` key
            LLMError: If a model call fails
        """
        state: Dict[str, Any] = {}
        async for _, _, state in self._run(input):
            pass
        return state

    async def astream(self, input: Union[Mapping[str, Any], Any]) -> AsyncIterator[StateUpdate]:
        """Yield each step's update (``model`` or ``tools``) as it happens."""
        step = 0
        async for node_id, update, _ in self._run(input):
            step += 1
            yield StateUpdate(node_id=node_id, update=update, step=step)

    async def _run(self, input: Any):
        if isinstance(input, Mapping):
            if "messages" not in input:
                raise InvalidUpdateError(
                    f"Agent input must have a 'messages' key, got keys: {list(input)}"
                )
            messages = input["messages"]
        else:
            messages = input
        state = self.schema.initial_state({"messages": coerce_messages(messages)})

        for iteration in range(1, self.max_iterations + 1):
            reply = await self.model.ainvoke(self._prompt(state["messages"]))
            state = self.schema.apply(state, {"messages": [reply]}, node_id="model")
            yield "model", {"messages": [reply]}, state

            if not reply.tool_calls:
                logger.debug("Agent finished after %d model call(s)", iteration)
                return

            results = await execute_tool_calls(
                reply.tool_calls, self.tools, handle_errors=self.handle_tool_errors
            )
            state = self.schema.apply(state, {"messages": results}, node_id="tools")
            yield "tools", {"messages": results}, state

        logger.warning("Agent hit max_iterations=%d", self.max_iterations)
        raise AgentLoopLimitError(self.max_iterations, state["messages"])

    def _prompt(self, messages: List[BaseMessage]) -> List[BaseMessage]:
        if self.system_prompt:
            return [SystemMessage(content=self.system_prompt)] + list(messages)
        return list(messages)

    def __repr__(self) -> str:
        return f"ToolAgent(model={self.model.config}, tools={list(self.tools)})"


def create_agent(
    model: Union[ChatModel, ModelConfig, str],
    tools: Iterable[Union[Tool, Any]] = (),
    system_prompt: Optional[str] = None,
    max_iterations: int = 10,
    client: Optional[AsyncOpenAI] = None,
) -> ToolAgent:
    """Build a ToolAgent from a model, a ModelConfig or a ``"provider:model"`` string.

    Example:
        >>> agent = create_agent("openai:gpt-4o-mini", tools=[greet], client=AsyncOpenAI())
    """
    return ToolAgent(
        create_chat_model(model, client=client),
        tools=tools,
        system_prompt=system_prompt,
        max_iterations=max_iterations,
    )
