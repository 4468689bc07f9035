"""Base node protocol and implementation.

A node is one step of a sequence: it reads the current state and proposes
a partial update. This module defines the Node protocol that all nodes
implement, along with a BaseNode class carrying the shared plumbing and a
FunctionNode that wraps plain callables.
"""

from typing import Protocol, Any, Callable, Dict, Mapping, Optional, runtime_checkable
from abc import ABC, abstractmethod
import inspect

from stepwise.utils.errors import GraphValidationError


@runtime_checkable
class Node(Protocol):
    """Protocol that all nodes must implement.

    Any class implementing this protocol can be added to a StateGraph.
    """

    id: str
    type: str

    async def execute(
        self,
        state: Dict[str, Any],
        config: Mapping[str, Any],
    ) -> Optional[Mapping[str, Any]]:
        """Run the step and return a partial state update.

        Args:
            state: Snapshot of the fully merged state so far
            config: Caller-supplied run configuration

        Returns:
            Mapping of declared field names to new values, or None for no change
        """
        ...


class BaseNode(ABC):
    """Base implementation with common functionality.

    Subclasses must implement execute(). Nodes are not retried: an exception
    raised here aborts the run.
    """

    #: True if execute() must be awaited. Subclasses that set this to False
    #: also define call_sync(state, config) so invoke() can run them.
    is_async: bool = True

    def __init__(self, id: str):
        """Initialize base node.

        Args:
            id: Unique identifier for this node
        """
        self.id = id
        self.type = self.__class__.__name__

    @abstractmethod
    async def execute(
        self,
        state: Dict[str, Any],
        config: Mapping[str, Any],
    ) -> Optional[Mapping[str, Any]]:
        """Subclasses implement core logic here."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id='{self.id}')"


class FunctionNode(BaseNode):
    """Wrap a sync or async callable as a step.

    The callable takes ``(state)`` or ``(state, config)``, where config is the
    mapping passed by the caller to ``invoke``. That is how client handles
    reach a step without module-level globals.

    Example:
        >>> def node_a(state):
        ...     return {"name": "Ada Lovelace", "items": ["First Algorithm"]}
        >>>
        >>> node = FunctionNode("node_a", node_a)
    """

    def __init__(self, id: str, fn: Callable[..., Any]):
        """Initialize function node.

        Args:
            id: Node identifier
            fn: Function to execute (sync or async)

        Raises:
            GraphValidationError: If fn is not callable or takes the wrong arguments
        """
        super().__init__(id)
        if not callable(fn):
            raise GraphValidationError(
                f"Node '{id}' must be callable, got {type(fn).__name__}"
            )
        self.fn = fn
        self.is_async = inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(
            getattr(fn, "__call__", None)
        )
        self.function_name = getattr(fn, "__name__", type(fn).__name__)
        self.wants_config = self._accepts_config(fn)

    def _accepts_config(self, fn: Callable[..., Any]) -> bool:
        try:
            params = list(inspect.signature(fn).parameters.values())
        except (TypeError, ValueError):
            return False

        if any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params):
            return True
        positional = [
            p
            for p in params
            if p.kind
            in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        ]
        if not positional:
            raise GraphValidationError(
                f"Node '{self.id}' must accept the state as its first argument"
            )
        return len(positional) >= 2

    def _args(self, state: Dict[str, Any], config: Mapping[str, Any]) -> tuple:
        return (state, config) if self.wants_config else (state,)

    def call_sync(
        self,
        state: Dict[str, Any],
        config: Mapping[str, Any],
    ) -> Optional[Mapping[str, Any]]:
        """Run a synchronous callable without an event loop."""
        if self.is_async:
            raise GraphValidationError(
                f"Node '{self.id}' is async; use ainvoke() or astream()"
            )
        return self.fn(*self._args(state, config))

    async def execute(
        self,
        state: Dict[str, Any],
        config: Mapping[str, Any],
    ) -> Optional[Mapping[str, Any]]:
        result = self.fn(*self._args(state, config))
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"FunctionNode(id='{self.id}', fn='{self.function_name}')"


def as_node(node_id: str, node_or_fn: Any) -> Node:
    """Return a node for an existing Node instance or a plain callable."""
    if isinstance(node_or_fn, Node):
        if node_or_fn.id != node_id:
            raise GraphValidationError(
                f"Node id mismatch: registered as '{node_id}', node says '{node_or_fn.id}'"
            )
        return node_or_fn
    return FunctionNode(node_id, node_or_fn)


def needs_event_loop(node: Any) -> bool:
    """True unless the node is marked sync and defines call_sync()."""
    return getattr(node, "is_async", True) or not callable(getattr(node, "call_sync", None))
