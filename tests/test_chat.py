"""Tests for ChatModel against a fake OpenAI client."""

import openai
import pytest

from stepwise.llm import AIMessage, ChatModel, ModelConfig, SystemMessage, Usage, create_chat_model, tool
from stepwise.utils.errors import LLMError

from conftest import FakeStream, chunk, completion


@tool
def greet(name: str) -> str:
    """Greet a person by their name."""
    return f"Hello, {name}!"


# =============================================================================
# Invoke
# =============================================================================


class TestInvoke:
    """Single request, single reply."""

    @pytest.mark.asyncio
    async def test_text_reply(self, chat_model, fake_client):
        fake_client.queue(completion("The capital of France is Paris."))

        reply = await chat_model.ainvoke("What is the capital of France?")

        assert isinstance(reply, AIMessage)
        assert reply.content == "The capital of France is Paris."
        assert reply.usage == Usage(10, 5, 15)
        assert fake_client.requests == [
            {
                "model": "gpt-4o-mini",
                "temperature": 0.0,
                "messages": [{"role": "user", "content": "What is the capital of France?"}],
            }
        ]

    @pytest.mark.asyncio
    async def test_conversation_and_extra_kwargs(self, chat_model, fake_client):
        fake_client.queue(completion("Hi!"))

        await chat_model.ainvoke(
            [SystemMessage("Be brief."), {"role": "user", "content": "Hello"}],
            seed=7,
        )

        request = fake_client.requests[0]
        assert request["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hello"},
        ]
        assert request["seed"] == 7

    @pytest.mark.asyncio
    async def test_max_tokens_sent(self, fake_client):
        model = ChatModel(ModelConfig(model="gpt-4o", max_tokens=50, temperature=0.3), client=fake_client)
        fake_client.queue(completion("ok"))

        await model.ainvoke("hi")

        assert fake_client.requests[0]["max_tokens"] == 50
        assert fake_client.requests[0]["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_sdk_error_wrapped(self, chat_model, fake_client):
        original = openai.OpenAIError("rate limited")
        fake_client.queue(original)

        with pytest.raises(LLMError, match="rate limited") as exc_info:
            await chat_model.ainvoke("hi")

        assert exc_info.value.original_error is original
        assert exc_info.value.__cause__ is original

    @pytest.mark.asyncio
    async def test_no_choices(self, chat_model, fake_client):
        empty = completion("unused")
        empty.choices = []
        fake_client.queue(empty)

        with pytest.raises(LLMError, match="no choices"):
            await chat_model.ainvoke("hi")


# =============================================================================
# Tools
# =============================================================================


class TestBindTools:
    """Tools and tool_choice in the request."""

    @pytest.mark.asyncio
    async def test_tools_sent_and_calls_parsed(self, chat_model, fake_client):
        bound = chat_model.bind_tools([greet])
        fake_client.queue(completion(tool_calls=[{"id": "call_1", "name": "greet", "args": {"name": "Maria"}}]))

        reply = await bound.ainvoke("Please greet Maria")

        request = fake_client.requests[0]
        assert request["tools"] == [greet.openai_schema()]
        assert "tool_choice" not in request
        assert reply.tool_calls[0].name == "greet"
        assert reply.tool_calls[0].args == {"name": "Maria"}

    def test_bind_returns_copy(self, chat_model):
        bound = chat_model.bind_tools([greet])

        assert chat_model.tools == {}
        assert list(bound.tools) == ["greet"]
        assert bound.client is chat_model.client
        assert repr(bound) == "ChatModel(openai:gpt-4o-mini, tools=['greet'])"

    @pytest.mark.asyncio
    async def test_forced_tool_choice(self, chat_model, fake_client):
        bound = chat_model.bind_tools([greet], tool_choice="greet")
        fake_client.queue(completion(tool_calls=[{"id": "call_1", "name": "greet", "args": {"name": "A"}}]))

        await bound.ainvoke("hi")

        assert fake_client.requests[0]["tool_choice"] == {"type": "function", "function": {"name": "greet"}}

    @pytest.mark.asyncio
    async def test_required_tool_choice(self, chat_model, fake_client):
        bound = chat_model.bind_tools([greet], tool_choice="required")
        fake_client.queue(completion(tool_calls=[{"id": "call_1", "name": "greet", "args": {"name": "A"}}]))

        await bound.ainvoke("hi")

        assert fake_client.requests[0]["tool_choice"] == "required"

    def test_unknown_tool_choice(self, chat_model):
        with pytest.raises(ValueError, match="not a bound tool"):
            chat_model.bind_tools([greet], tool_choice="teleport")

    def test_plain_functions_bound(self, chat_model):
        def shout(text: str) -> str:
            """Upper-case some text."""
            return text.upper()

        assert list(chat_model.bind_tools([shout]).tools) == ["shout"]


# =============================================================================
# Streaming
# =============================================================================


class TestStreaming:
    """Token streams and stream events."""

    @pytest.mark.asyncio
    async def test_astream(self, chat_model, fake_client):
        stream = FakeStream(
            [chunk("Hel"), chunk("lo"), chunk(finish_reason="stop"), chunk(usage=(4, 2))]
        )
        fake_client.queue(stream)

        chunks = [c async for c in chat_model.astream("Say hello")]

        assert [c.content for c in chunks] == ["Hel", "lo", ""]
        assert chunks[-1].usage == Usage(4, 2, 6)
        assert chunks[-1].response_metadata == {"model": "gpt-4o-mini", "finish_reason": "stop"}
        assert fake_client.requests[0]["stream"] is True
        assert fake_client.requests[0]["stream_options"] == {"include_usage": True}
        assert stream.closed

    @pytest.mark.asyncio
    async def test_chunks_sum_to_message(self, chat_model, fake_client):
        fake_client.queue(FakeStream([chunk("One, "), chunk("two."), chunk(usage=(3, 2))]))

        full = None
        async for item in chat_model.astream("Count"):
            full = item if full is None else full + item

        assert full.to_message().content == "One, two."
        assert full.usage == Usage(3, 2, 5)

    @pytest.mark.asyncio
    async def test_early_exit_closes_stream(self, chat_model, fake_client):
        stream = FakeStream([chunk("a"), chunk("b"), chunk("c")])
        fake_client.queue(stream)

        iterator = chat_model.astream("letters")
        async for item in iterator:
            assert item.content == "a"
            break
        await iterator.aclose()

        assert stream.closed

    @pytest.mark.asyncio
    async def test_stream_error_wrapped(self, chat_model, fake_client):
        stream = FakeStream([chunk("partial")], error=openai.OpenAIError("connection reset"))
        fake_client.queue(stream)

        received = []
        with pytest.raises(LLMError, match="stream failed: connection reset"):
            async for item in chat_model.astream("hi"):
                received.append(item.content)

        assert received == ["partial"]
        assert stream.closed

    @pytest.mark.asyncio
    async def test_astream_events(self, chat_model, fake_client):
        fake_client.queue(FakeStream([chunk("Hi"), chunk(" there"), chunk(finish_reason="stop")]))

        events = [e async for e in chat_model.astream_events("Greet me")]

        assert [e.event for e in events] == [
            "on_chat_model_start",
            "on_chat_model_stream",
            "on_chat_model_stream",
            "on_chat_model_end",
        ]
        assert events[0].name == "openai:gpt-4o-mini"
        assert events[0].data["input"][0].content == "Greet me"
        assert events[1].data["chunk"].content == "Hi"
        assert events[-1].data["output"].content == "Hi there"


def test_create_chat_model_from_string(fake_client):
    model = create_chat_model("anthropic:claude-3-5-haiku-latest", client=fake_client, temperature=0.5)

    assert model.config.provider == "anthropic"
    assert model.config.temperature == 0.5
    assert model.model_name == "claude-3-5-haiku-latest"
    assert model.client is fake_client


def test_create_chat_model_passthrough(chat_model):
    assert create_chat_model(chat_model) is chat_model


def test_client_created_lazily(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    model = ChatModel("openai:gpt-4o-mini")

    assert model._client is None
    assert isinstance(model.client, openai.AsyncOpenAI)
    assert model.client is model.client
