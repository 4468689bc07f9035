"""Node implementations for sequence execution."""

from stepwise.nodes.base import Node, BaseNode, FunctionNode, as_node, needs_event_loop

__all__ = [
    "Node",
    "BaseNode",
    "FunctionNode",
    "as_node",
    "needs_event_loop",
]
