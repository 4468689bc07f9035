"""Pytest configuration and fixtures for Stepwise tests."""

import json
from types import SimpleNamespace
from typing import Annotated, Any, Dict, List, Optional, TypedDict

import pytest
from openai.types.chat import ChatCompletion, ChatCompletionChunk

from stepwise import StateGraph, START, END, append
from stepwise.llm import ChatModel, ModelConfig


# =============================================================================
# State fixtures
# =============================================================================


class GraphState(TypedDict):
    name: str
    items: Annotated[list[str], append]


def node_a(state):
    return {"name": "Ada", "items": ["First"]}


def node_b(state):
    return {"items": ["Second"]}


@pytest.fixture
def two_step_graph():
    """START -> node_a -> node_b -> END over GraphState."""
    return (
        StateGraph(GraphState)
        .add_node("node_a", node_a)
        .add_node("node_b", node_b)
        .add_edge(START, "node_a")
        .add_edge("node_a", "node_b")
        .add_edge("node_b", END)
        .compile()
    )


# =============================================================================
# Fake OpenAI client
# =============================================================================


def completion(
    content: Optional[str] = None,
    tool_calls: Optional[List[Dict[str, Any]]] = None,
    model: str = "gpt-4o-mini",
    usage: tuple = (10, 5),
) -> ChatCompletion:
    """Build a ChatCompletion.

    ``tool_calls`` items are ``{"id", "name", "args"}``; ``args`` may be a
    dict or an already-encoded JSON string.
    """
    message: Dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": call["id"],
                "type": "function",
                "function": {
                    "name": call["name"],
                    "arguments": call["args"]
                    if isinstance(call["args"], str)
                    else json.dumps(call["args"]),
                },
            }
            for call in tool_calls
        ]
    prompt_tokens, completion_tokens = usage
    return ChatCompletion.model_validate(
        {
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": 1700000000,
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "message": message,
                    "finish_reason": "tool_calls" if tool_calls else "stop",
                }
            ],
            "usage": {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens,
            },
        }
    )


def chunk(
    content: Optional[str] = None,
    finish_reason: Optional[str] = None,
    usage: Optional[tuple] = None,
    model: str = "gpt-4o-mini",
) -> ChatCompletionChunk:
    """Build a ChatCompletionChunk. A chunk with ``usage`` has no choices."""
    payload: Dict[str, Any] = {
        "id": "chatcmpl-test",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": model,
        "choices": [],
    }
    if usage is not None:
        prompt_tokens, completion_tokens = usage
        payload["usage"] = {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        }
    else:
        payload["choices"] = [
            {
                "index": 0,
                "delta": {"content": content} if content is not None else {},
                "finish_reason": finish_reason,
            }
        ]
    return ChatCompletionChunk.model_validate(payload)


class FakeStream:
    """Async iterator standing in for the SDK's AsyncStream."""

    def __init__(self, chunks: List[ChatCompletionChunk], error: Optional[Exception] = None):
        self.chunks = list(chunks)
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self.chunks:
            yield item
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed = True


class FakeCompletions:
    """Replays queued responses and records every request."""

    def __init__(self):
        self.responses: List[Any] = []
        self.requests: List[Dict[str, Any]] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if not self.responses:
            raise AssertionError("FakeCompletions has no queued response")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClient:
    """Minimal ``AsyncOpenAI`` substitute exposing ``chat.completions``."""

    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)

    def queue(self, *responses):
        self.completions.responses.extend(responses)
        return self

    @property
    def requests(self) -> List[Dict[str, Any]]:
        return self.completions.requests


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def model_config():
    return ModelConfig(model="gpt-4o-mini", api_key="sk-test")


@pytest.fixture
def chat_model(model_config, fake_client):
    return ChatModel(model_config, client=fake_client)
