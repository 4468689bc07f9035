"""Core execution engine components."""

from stepwise.core.state import StateSchema, FieldSpec, MergeKind, START, END, append, overwrite
from stepwise.core.graph import SequenceGraph, Edge
from stepwise.core.executor import Executor
from stepwise.core.events import ExecutionEvent, EventType

__all__ = [
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
]
