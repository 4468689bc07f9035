"""
Stepwise: typed state and straight-line step sequences for LLM workflows

A small library for running a fixed sequence of steps over a shared state.
Each step returns a partial update; the runtime merges it field by field
(overwrite or append) before the next step runs. The ``stepwise.llm``
package adds chat models, tools and a tool-calling agent over
OpenAI-compatible endpoints.

Example:
    >>> from typing import Annotated, TypedDict
    >>> from stepwise import StateGraph, START, END, append
    >>>
    >>> class GraphState(TypedDict):
    ...     name: str
    ...     items: Annotated[list[str], append]
    >>>
    >>> def node_a(state):
    ...     return {"name": "Ada", "items": ["First"]}
    >>>
    >>> def node_b(state):
    ...     return {"items": ["Second"]}
    >>>
    >>> app = (
    ...     StateGraph(GraphState)
    ...     .add_node("node_a", node_a)
    ...     .add_node("node_b", node_b)
    ...     .add_edge(START, "node_a")
    ...     .add_edge("node_a", "node_b")
    ...     .add_edge("node_b", END)
    ...     .compile()
    ... )
    >>> app.invoke({})
    {'name': 'Ada', 'items': ['First', 'Second']}
"""

__version__ = "0.1.0"

# Core components
from stepwise.core.state import (
    StateSchema,
    FieldSpec,
    MergeKind,
    START,
    END,
    append,
    overwrite,
)
from stepwise.core.graph import SequenceGraph, Edge
from stepwise.core.executor import Executor
from stepwise.core.events import ExecutionEvent, EventType

# Nodes
from stepwise.nodes.base import Node, BaseNode, FunctionNode

# Builders
from stepwise.builders.state_graph import StateGraph

# Streaming modes
from stepwise.streaming.modes import StreamMode, StateValue, StateUpdate

# Errors
from stepwise.utils.errors import (
    StepwiseError,
    GraphValidationError,
    CycleDetectedError,
    UndeclaredFieldError,
    InvalidUpdateError,
    NodeExecutionError,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "StateSchema",
    "FieldSpec",
    "MergeKind",
    "START",
    "END",
    "append",
    "overwrite",
    "SequenceGraph",
    "Edge",
    "Executor",
    "ExecutionEvent",
    "EventType",
    # Nodes
    "Node",
    "BaseNode",
    "FunctionNode",
    # Builders
    "StateGraph",
    # Streaming modes
    "StreamMode",
    "StateValue",
    "StateUpdate",
    # Errors
    "StepwiseError",
    "GraphValidationError",
    "CycleDetectedError",
    "UndeclaredFieldError",
    "InvalidUpdateError",
    "NodeExecutionError",
]
