"""Tests for the tool-calling agent loop."""

import pytest

from stepwise.llm import (
    AIMessage,
    HumanMessage,
    SystemMessage,
    ToolAgent,
    ToolCall,
    ToolMessage,
    TranscriptKind,
    create_agent,
    describe_messages,
    tool,
)
from stepwise.llm.agent import agent_state_schema
from stepwise.core.state import MergeKind
from stepwise.utils.errors import AgentLoopLimitError, InvalidUpdateError, LLMError, UnknownToolError

from conftest import completion


@tool
def get_bitcoin_price() -> dict:
    """Get the current Bitcoin price."""
    return {"usd": 65000}


@tool
def add(a: int, b: int) -> int:
    """Add two integers."""
    return a + b


def price_call(call_id="call_1"):
    return completion(tool_calls=[{"id": call_id, "name": "get_bitcoin_price", "args": {}}])


USER_INPUT = {"messages": [{"role": "user", "content": "What is the current Bitcoin price?"}]}


@pytest.fixture
def agent(chat_model):
    return ToolAgent(
        chat_model,
        tools=[get_bitcoin_price, add],
        system_prompt="Use the tools when asked about prices.",
    )


def test_messages_field_appends():
    schema = agent_state_schema()

    assert schema.field_names == ["messages"]
    assert schema.get_field("messages").kind == MergeKind.APPEND


def test_max_iterations_must_be_positive(chat_model):
    with pytest.raises(ValueError, match="at least 1"):
        ToolAgent(chat_model, max_iterations=0)


# =============================================================================
# Loop
# =============================================================================


class TestLoop:
    """Model and tool steps until a final answer."""

    @pytest.mark.asyncio
    async def test_tool_round_then_answer(self, agent, fake_client):
        fake_client.queue(price_call(), completion("Bitcoin is at $65,000."))

        result = await agent.ainvoke(USER_INPUT)

        messages = result["messages"]
        assert [type(m) for m in messages] == [HumanMessage, AIMessage, ToolMessage, AIMessage]
        assert messages[2].content == '{"usd": 65000}'
        assert messages[2].tool_call_id == "call_1"
        assert messages[-1].content == "Bitcoin is at $65,000."

    @pytest.mark.asyncio
    async def test_system_prompt_sent_not_stored(self, agent, fake_client):
        fake_client.queue(price_call(), completion("done"))

        result = await agent.ainvoke(USER_INPUT)

        for request in fake_client.requests:
            assert request["messages"][0] == {
                "role": "system",
                "content": "Use the tools when asked about prices.",
            }
        assert not any(isinstance(m, SystemMessage) for m in result["messages"])

    @pytest.mark.asyncio
    async def test_second_request_carries_tool_result(self, agent, fake_client):
        fake_client.queue(price_call(), completion("done"))

        await agent.ainvoke(USER_INPUT)

        second = fake_client.requests[1]["messages"]
        assert [m["role"] for m in second] == ["system", "user", "assistant", "tool"]
        assert second[2]["tool_calls"][0]["id"] == "call_1"
        assert second[3] == {"role": "tool", "content": '{"usd": 65000}', "tool_call_id": "call_1"}
        assert [t["function"]["name"] for t in fake_client.requests[0]["tools"]] == [
            "get_bitcoin_price",
            "add",
        ]

    @pytest.mark.asyncio
    async def test_direct_answer(self, agent, fake_client):
        fake_client.queue(completion("Hello!"))

        result = await agent.ainvoke("Hi")

        assert [m.content for m in result["messages"]] == ["Hi", "Hello!"]
        assert len(fake_client.requests) == 1

    @pytest.mark.asyncio
    async def test_parallel_calls(self, agent, fake_client):
        fake_client.queue(
            completion(
                tool_calls=[
                    {"id": "call_1", "name": "add", "args": {"a": 1, "b": 2}},
                    {"id": "call_2", "name": "add", "args": {"a": 10, "b": 20}},
                ]
            ),
            completion("3 and 30"),
        )

        result = await agent.ainvoke("Add 1+2 and 10+20")

        tool_messages = [m for m in result["messages"] if isinstance(m, ToolMessage)]
        assert [(m.tool_call_id, m.content) for m in tool_messages] == [("call_1", "3"), ("call_2", "30")]

    @pytest.mark.asyncio
    async def test_tool_errors_reported_to_model(self, agent, fake_client):
        fake_client.queue(
            completion(tool_calls=[{"id": "call_1", "name": "add", "args": {"a": "one", "b": 2}}]),
            completion(tool_calls=[{"id": "call_2", "name": "teleport", "args": {}}]),
            completion("Sorry, I could not do that."),
        )

        result = await agent.ainvoke("Add one and two")

        errors = [m for m in result["messages"] if isinstance(m, ToolMessage)]
        assert [m.status for m in errors] == ["error", "error"]
        assert "Invalid arguments for tool 'add'" in errors[0].content
        assert errors[1].content == "Unknown tool: teleport"

    @pytest.mark.asyncio
    async def test_tool_errors_raised_when_not_handled(self, chat_model, fake_client):
        agent = ToolAgent(chat_model, tools=[add], handle_tool_errors=False)
        fake_client.queue(completion(tool_calls=[{"id": "call_1", "name": "teleport", "args": {}}]))

        with pytest.raises(UnknownToolError):
            await agent.ainvoke("Teleport me")

    @pytest.mark.asyncio
    async def test_loop_limit(self, chat_model, fake_client):
        agent = ToolAgent(chat_model, tools=[get_bitcoin_price], max_iterations=2)
        fake_client.queue(price_call("call_1"), price_call("call_2"))

        with pytest.raises(AgentLoopLimitError) as exc_info:
            await agent.ainvoke(USER_INPUT)

        assert exc_info.value.max_iterations == 2
        assert len(exc_info.value.messages) == 5
        assert len(fake_client.requests) == 2

    @pytest.mark.asyncio
    async def test_model_failure_propagates(self, agent, fake_client):
        fake_client.queue(LLMError("upstream down"))

        with pytest.raises(LLMError, match="upstream down"):
            await agent.ainvoke(USER_INPUT)

    @pytest.mark.asyncio
    async def test_input_not_mutated(self, agent, fake_client):
        history = [HumanMessage("What is the current Bitcoin price?")]
        fake_client.queue(price_call(), completion("done"))

        await agent.ainvoke({"messages": history})

        assert len(history) == 1

    @pytest.mark.asyncio
    async def test_mapping_without_messages(self, agent, fake_client):
        with pytest.raises(InvalidUpdateError, match="must have a 'messages' key"):
            await agent.ainvoke({"question": "What is the current Bitcoin price?"})

        assert fake_client.requests == []


@pytest.mark.asyncio
async def test_astream_yields_each_step(agent, fake_client):
    fake_client.queue(price_call(), completion("Bitcoin is at $65,000."))

    updates = [u async for u in agent.astream(USER_INPUT)]

    assert [(u.node_id, u.step) for u in updates] == [("model", 1), ("tools", 2), ("model", 3)]
    assert updates[1].update["messages"][0].name == "get_bitcoin_price"


# =============================================================================
# Transcript
# =============================================================================


@pytest.mark.asyncio
async def test_describe_messages(agent, fake_client):
    fake_client.queue(price_call(), completion("Bitcoin is at $65,000."))
    result = await agent.ainvoke(USER_INPUT)

    entries = describe_messages(result["messages"])

    assert [e.kind for e in entries] == [
        TranscriptKind.ASSISTANT_WITH_CALL,
        TranscriptKind.TOOL_RESULT,
        TranscriptKind.ASSISTANT_FINAL,
    ]
    assert entries[0].tool_calls[0].name == "get_bitcoin_price"
    assert entries[1].tool_name == "get_bitcoin_price"
    assert entries[1].tool_call_id == "call_1"
    assert entries[1].status == "success"
    assert entries[2].content == "Bitcoin is at $65,000."


def test_describe_messages_skips_input():
    entries = describe_messages(
        [
            SystemMessage("Be brief."),
            HumanMessage("Hi"),
            AIMessage("Calling", tool_calls=[ToolCall(id="c1", name="add", args={"a": 1, "b": 1})]),
            ToolMessage("2", name="add", tool_call_id="c1", status="error"),
        ]
    )

    assert [e.kind.value for e in entries] == ["assistant-with-call", "tool-result"]
    assert entries[0].content == "Calling"
    assert entries[1].status == "error"


def test_create_agent_from_string(fake_client):
    agent = create_agent(
        "openai:gpt-4o-mini",
        tools=[add],
        system_prompt="Be brief.",
        max_iterations=3,
        client=fake_client,
    )

    assert isinstance(agent, ToolAgent)
    assert agent.model.client is fake_client
    assert agent.max_iterations == 3
    assert repr(agent) == "ToolAgent(model=openai:gpt-4o-mini, tools=['add'])"
