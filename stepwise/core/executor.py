"""Sequential reducer runtime.

This module implements the execution engine: it builds the initial state
from the schema defaults, runs each node of a compiled sequence exactly once
in order, and folds every partial update into the state using the per-field
merge rules.

Execution is strictly single-threaded. A node that raises aborts the run;
nothing is retried or rolled back, and no final state is produced.
"""

from typing import Any, AsyncIterator, Dict, Iterator, Mapping, Optional, Tuple
import logging

from stepwise.core.graph import SequenceGraph
from stepwise.core.events import ExecutionEvent, EventType
from stepwise.nodes.base import needs_event_loop
from stepwise.streaming.modes import StreamMode, StateValue, StateUpdate, coerce_stream_mode
from stepwise.utils.errors import GraphValidationError, NodeExecutionError

logger = logging.getLogger(__name__)


class Executor:
    """Runs a SequenceGraph.

    The executor walks ``graph.order`` once. Before each node it hands the
    node a snapshot of the fully merged state; after the node returns it
    validates the partial update against the schema and merges it.

    Example:
        >>> executor = Executor(graph)
        >>> final_state = executor.invoke({})
        >>> async for value in executor.astream({}, mode="values"):
        ...     print(value.node_id, value.state)
    """

    def __init__(self, graph: SequenceGraph):
        """Initialize executor.

        Args:
            graph: Compiled graph to execute
        """
        self.graph = graph
        self.schema = graph.schema

    def invoke(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run the sequence synchronously and return the final state.

        Args:
            input: Optional initial partial state, merged over the defaults
            config: Run configuration passed to nodes that accept it

        Returns:
            Final state dictionary

        Raises:
            GraphValidationError: If any node is async
            NodeExecutionError: If a node raises
            UndeclaredFieldError: If a node updates an undeclared field
        """
        final_state: Dict[str, Any] = {}
        for event in self._run_sync(input, config):
            if event.type == EventType.EXECUTION_COMPLETE:
                final_state = event.state
        return final_state

    async def ainvoke(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run the sequence and return the final state.

        Sync and async nodes may be mixed. Same errors as invoke(), except
        that async nodes are allowed.
        """
        final_state: Dict[str, Any] = {}
        async for event in self._run_async(input, config):
            if event.type == EventType.EXECUTION_COMPLETE:
                final_state = event.state
        return final_state

    def stream(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
        mode: "StreamMode | str" = StreamMode.VALUES,
    ) -> Iterator[Any]:
        """Run synchronously, yielding one item per node (or per event).

        Args:
            input: Optional initial partial state
            config: Run configuration
            mode: VALUES, UPDATES or EVENTS

        Yields:
            StateValue, StateUpdate or ExecutionEvent depending on mode
        """
        mode = coerce_stream_mode(mode)
        for event in self._run_sync(input, config):
            item = self._to_stream_item(event, mode)
            if item is not None:
                yield item

    async def astream(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
        mode: "StreamMode | str" = StreamMode.VALUES,
    ) -> AsyncIterator[Any]:
        """Asynchronous counterpart of stream()."""
        mode = coerce_stream_mode(mode)
        async for event in self._run_async(input, config):
            item = self._to_stream_item(event, mode)
            if item is not None:
                yield item

    def _run_sync(
        self,
        input: Optional[Mapping[str, Any]],
        config: Optional[Mapping[str, Any]],
    ) -> Iterator[ExecutionEvent]:
        if self.graph.is_async:
            async_nodes = [
                node_id
                for node_id in self.graph.order
                if needs_event_loop(self.graph.get_node(node_id))
            ]
            raise GraphValidationError(
                f"Graph has async nodes ({', '.join(async_nodes)}); "
                "use ainvoke() or astream()"
            )

        config = dict(config or {})
        state = self.schema.initial_state(input)
        yield self._start_event(state)

        for step, node_id in enumerate(self.graph.order, start=1):
            node = self.graph.get_node(node_id)
            yield self._node_start_event(node_id, step)
            try:
                update = node.call_sync(self.schema.snapshot(state), config)
            except Exception as e:
                yield self._node_error_event(node_id, step, e)
                raise NodeExecutionError(node_id, _describe(e), e) from e

            state, update = self._merge(node_id, state, update)
            yield self._node_complete_event(node_id, step, state, update)

        yield self._complete_event(state)

    async def _run_async(
        self,
        input: Optional[Mapping[str, Any]],
        config: Optional[Mapping[str, Any]],
    ) -> AsyncIterator[ExecutionEvent]:
        config = dict(config or {})
        state = self.schema.initial_state(input)
        yield self._start_event(state)

        for step, node_id in enumerate(self.graph.order, start=1):
            node = self.graph.get_node(node_id)
            yield self._node_start_event(node_id, step)
            try:
                update = await node.execute(self.schema.snapshot(state), config)
            except Exception as e:
                yield self._node_error_event(node_id, step, e)
                raise NodeExecutionError(node_id, _describe(e), e) from e

            state, update = self._merge(node_id, state, update)
            yield self._node_complete_event(node_id, step, state, update)

        yield self._complete_event(state)

    def _merge(
        self,
        node_id: str,
        state: Dict[str, Any],
        update: Any,
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        update = dict(self.schema.validate_update(update, node_id=node_id))
        merged = self.schema.apply(state, update, node_id=node_id)
        logger.debug("Node %s updated fields: %s", node_id, sorted(update) or "none")
        return merged, update

    def _start_event(self, state: Dict[str, Any]) -> ExecutionEvent:
        logger.debug("Starting sequence: %s", " -> ".join(self.graph.order) or "(empty)")
        return ExecutionEvent(
            type=EventType.EXECUTION_START,
            state=self.schema.snapshot(state),
            metadata={"steps": len(self.graph.order)},
        )

    def _node_start_event(self, node_id: str, step: int) -> ExecutionEvent:
        logger.debug("Running node %s (%d/%d)", node_id, step, len(self.graph.order))
        return ExecutionEvent(type=EventType.NODE_START, node_id=node_id, step=step)

    def _node_complete_event(
        self,
        node_id: str,
        step: int,
        state: Dict[str, Any],
        update: Dict[str, Any],
    ) -> ExecutionEvent:
        return ExecutionEvent(
            type=EventType.NODE_COMPLETE,
            node_id=node_id,
            step=step,
            update=update,
            state=self.schema.snapshot(state),
        )

    def _node_error_event(self, node_id: str, step: int, error: Exception) -> ExecutionEvent:
        logger.error("Node %s failed: %s", node_id, _describe(error))
        return ExecutionEvent(
            type=EventType.NODE_ERROR,
            node_id=node_id,
            step=step,
            error=_describe(error),
            metadata={"error_type": type(error).__name__},
        )

    def _complete_event(self, state: Dict[str, Any]) -> ExecutionEvent:
        return ExecutionEvent(
            type=EventType.EXECUTION_COMPLETE,
            state=state,
            metadata={"steps": len(self.graph.order)},
        )

    def _to_stream_item(self, event: ExecutionEvent, mode: StreamMode) -> Any:
        if mode == StreamMode.EVENTS:
            return event
        if event.type != EventType.NODE_COMPLETE:
            return None
        if mode == StreamMode.VALUES:
            return StateValue(node_id=event.node_id, state=event.state, step=event.step)
        return StateUpdate(node_id=event.node_id, update=event.update, step=event.step)


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__
