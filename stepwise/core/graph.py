"""Core graph data structures for Stepwise.

A compiled graph is a straight line: START, then every node exactly once,
then END. There is no branching, no fan-in and no cycle, so the execution
order is fully determined at compile time.
"""

from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Iterator, List, Mapping, Optional, TYPE_CHECKING
from pydantic import BaseModel, ConfigDict

from stepwise.core.state import StateSchema, START, END
from stepwise.nodes.base import needs_event_loop
from stepwise.utils.errors import GraphValidationError, CycleDetectedError

if TYPE_CHECKING:
    from stepwise.nodes.base import Node
    from stepwise.streaming.modes import StreamMode


class Edge(BaseModel):
    """Represents a directed connection between two nodes in the graph."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str

    def __str__(self) -> str:
        return f"{self.source} -> {self.target}"


@dataclass(frozen=True)
class SequenceGraph:
    """Compiled graph ready for execution.

    Attributes:
        schema: State schema shared by all nodes
        nodes: Mapping of node IDs to Node instances
        edges: Edges connecting nodes, including START and END
        order: Node IDs in execution order (START and END excluded)
    """

    schema: StateSchema
    nodes: Dict[str, "Node"]
    edges: List[Edge]
    order: List[str]

    @classmethod
    def from_nodes_and_edges(
        cls,
        schema: StateSchema,
        nodes: Dict[str, "Node"],
        edges: List[Edge],
    ) -> "SequenceGraph":
        """Validate topology and compute the execution order.

        Raises:
            GraphValidationError: If the edges do not form a single
                START -> ... -> END chain covering every node
            CycleDetectedError: If following the chain revisits a node
        """
        successors: Dict[str, str] = {}
        predecessors: Dict[str, List[str]] = {}

        for edge in edges:
            if edge.source == END:
                raise GraphValidationError(f"END cannot have outgoing edges: {edge}")
            if edge.target == START:
                raise GraphValidationError(f"START cannot have incoming edges: {edge}")
            for endpoint in (edge.source, edge.target):
                if endpoint not in (START, END) and endpoint not in nodes:
                    raise GraphValidationError(
                        f"Edge references non-existent node: {endpoint}"
                    )

            if edge.source in successors:
                raise GraphValidationError(
                    f"Node '{edge.source}' has more than one outgoing edge "
                    f"({edge.source} -> {successors[edge.source]}, {edge}); "
                    "branching is not supported"
                )
            successors[edge.source] = edge.target
            predecessors.setdefault(edge.target, []).append(edge.source)

        _check_cycles(successors)

        for target, sources in predecessors.items():
            if len(sources) > 1:
                raise GraphValidationError(
                    f"Node '{target}' has more than one incoming edge "
                    f"(from {', '.join(sources)})"
                )

        if START not in successors:
            raise GraphValidationError(
                "Entry point not set. Add an edge from START or call set_entry_point()."
            )

        order: List[str] = []
        seen = set()
        current = successors[START]
        while current != END:
            seen.add(current)
            order.append(current)
            if current not in successors:
                raise GraphValidationError(
                    f"Node '{current}' has no outgoing edge; connect it to END"
                )
            current = successors[current]

        unreachable = [node_id for node_id in nodes if node_id not in seen]
        if unreachable:
            raise GraphValidationError(
                f"Graph contains unreachable nodes: {', '.join(unreachable)}"
            )

        return cls(schema=schema, nodes=dict(nodes), edges=list(edges), order=order)

    @property
    def is_async(self) -> bool:
        """Whether any node needs an event loop."""
        return any(needs_event_loop(self.nodes[node_id]) for node_id in self.order)

    def get_node(self, node_id: str) -> "Node":
        """Get a node by ID.

        Raises:
            KeyError: If node does not exist
        """
        return self.nodes[node_id]

    def has_node(self, node_id: str) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self.nodes

    def invoke(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run every node once, synchronously. See Executor.invoke."""
        from stepwise.core.executor import Executor

        return Executor(self).invoke(input, config)

    async def ainvoke(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Run every node once. See Executor.ainvoke."""
        from stepwise.core.executor import Executor

        return await Executor(self).ainvoke(input, config)

    def stream(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
        mode: "StreamMode | str" = "values",
    ) -> Iterator[Any]:
        """Synchronous streaming. See Executor.stream."""
        from stepwise.core.executor import Executor

        return Executor(self).stream(input, config, mode=mode)

    def astream(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: Optional[Mapping[str, Any]] = None,
        mode: "StreamMode | str" = "values",
    ) -> AsyncIterator[Any]:
        """Asynchronous streaming. See Executor.astream."""
        from stepwise.core.executor import Executor

        return Executor(self).astream(input, config, mode=mode)

    def mermaid_code(self, title: Optional[str] = None, direction: str = "TD") -> str:
        """Generate Mermaid flowchart code for this graph."""
        from stepwise.utils.mermaid import generate_mermaid_code

        return generate_mermaid_code(self, title=title, direction=direction)

    def __repr__(self) -> str:
        chain = " -> ".join([START] + self.order + [END])
        return f"SequenceGraph({chain})"


def _check_cycles(successors: Dict[str, str]) -> None:
    """Raise CycleDetectedError if following successors ever loops.

    Every node has at most one successor, so each walk is a simple path
    that either ends or closes a cycle.
    """
    done = set()
    for start in successors:
        path: List[str] = []
        current = start
        while current in successors and current not in done:
            if current in path:
                cycle = " -> ".join(path[path.index(current):] + [current])
                raise CycleDetectedError(f"Graph contains a cycle: {cycle}")
            path.append(current)
            current = successors[current]
        done.update(path)
