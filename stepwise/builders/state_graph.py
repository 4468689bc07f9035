"""LangGraph-style declarative graph builder.

This module provides a fluent API for declaring a straight-line sequence of
steps over a shared state schema, inspired by LangGraph's StateGraph.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
from datetime import datetime

from stepwise.core.graph import SequenceGraph, Edge
from stepwise.core.state import StateSchema, START, END, coerce_schema
from stepwise.nodes.base import Node, as_node
from stepwise.utils.errors import GraphValidationError
from stepwise.utils.mermaid import save_mermaid_image, get_default_visualization_dir


class StateGraph:
    """LangGraph-style declarative graph builder.

    Example:
        >>> graph = (
        ...     StateGraph(GraphState)
        ...     .add_node("node_a", node_a)
        ...     .add_node("node_b", node_b)
        ...     .add_edge(START, "node_a")
        ...     .add_edge("node_a", "node_b")
        ...     .add_edge("node_b", END)
        ... )
        >>> app = graph.compile()
        >>> app.invoke({})
    """

    def __init__(self, schema: Union[StateSchema, type]):
        """Initialize empty graph builder.

        Args:
            schema: StateSchema or an annotated class (e.g. a TypedDict)
        """
        self.schema = coerce_schema(schema)
        self._nodes: Dict[str, Node] = {}
        self._edges: List[Edge] = []

    def add_node(
        self,
        node_id: Union[str, Callable[..., Any]],
        node_or_fn: Optional[Union[Node, Callable[..., Any]]] = None,
    ) -> "StateGraph":
        """Add a node to the graph.

        Args:
            node_id: Unique identifier for the node. A callable may be passed
                alone, in which case its ``__name__`` is the id.
            node_or_fn: Node instance or a sync/async callable taking
                ``(state)`` or ``(state, config)``

        Returns:
            Self for method chaining

        Raises:
            GraphValidationError: On duplicate or reserved ids
        """
        if node_or_fn is None and callable(node_id):
            node_or_fn, node_id = node_id, node_id.__name__
        if node_or_fn is None:
            raise GraphValidationError(f"Node '{node_id}' needs a function or Node")
        if node_id in (START, END):
            raise GraphValidationError(f"'{node_id}' is a reserved node name")
        if node_id in self._nodes:
            raise GraphValidationError(f"Node '{node_id}' already exists")
        if node_id in self.schema:
            raise GraphValidationError(
                f"Node '{node_id}' has the same name as a state field"
            )

        self._nodes[node_id] = as_node(node_id, node_or_fn)
        return self

    def add_edge(self, source: str, target: str) -> "StateGraph":
        """Add a direct edge between two nodes.

        Args:
            source: Source node ID or START
            target: Target node ID or END

        Returns:
            Self for method chaining
        """
        self._edges.append(Edge(source=source, target=target))
        return self

    def add_sequence(
        self,
        steps: Iterable[Union[str, Callable[..., Any], Tuple[str, Any]]],
    ) -> "StateGraph":
        """Add a sequence of nodes connected linearly.

        Items may be ids of nodes already added, callables (added under their
        ``__name__``) or ``(id, fn)`` pairs.

        Example:
            >>> graph.add_sequence([node_a, node_b])
            >>> # Creates: node_a -> node_b
        """
        node_ids: List[str] = []
        for step in steps:
            if isinstance(step, tuple):
                self.add_node(*step)
                node_ids.append(step[0])
            elif callable(step) and not isinstance(step, str):
                self.add_node(step)
                node_ids.append(step.__name__)
            else:
                node_ids.append(step)

        for source, target in zip(node_ids, node_ids[1:]):
            self.add_edge(source, target)
        return self

    def set_entry_point(self, node_id: str) -> "StateGraph":
        """Set the first node of the sequence (adds START -> node_id)."""
        return self.add_edge(START, node_id)

    def set_finish_point(self, node_id: str) -> "StateGraph":
        """Set the last node of the sequence (adds node_id -> END)."""
        return self.add_edge(node_id, END)

    def compile(self) -> SequenceGraph:
        """Compile the graph into an executable SequenceGraph.

        Raises:
            GraphValidationError: If graph is invalid
        """
        return SequenceGraph.from_nodes_and_edges(self.schema, self._nodes, self._edges)

    def mermaid_code(self, title: Optional[str] = None, direction: str = "TD") -> str:
        """Compile the graph and generate Mermaid flowchart code."""
        return self.compile().mermaid_code(title=title, direction=direction)

    def save_visualization(
        self,
        output_path: Optional[str] = None,
        title: Optional[str] = None,
        image_format: str = "png",
        direction: str = "TD",
    ) -> str:
        """Render this graph through mermaid.ink and save the image.

        Args:
            output_path: Where to save. Defaults to ./visualizations/ with a
                timestamped filename
            title: Optional diagram title
            image_format: "png", "svg" or "pdf"
            direction: "TD" or "LR"

        Returns:
            Path to saved image file

        Raises:
            httpx.HTTPError: If image generation fails
        """
        code = self.mermaid_code(title=title, direction=direction)

        if output_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            graph_name = title.replace(" ", "_") if title else "graph"
            filename = f"{graph_name}_{timestamp}.{image_format}"
            output_path = str(get_default_visualization_dir() / filename)

        return save_mermaid_image(code, output_path, image_format=image_format)

    def __repr__(self) -> str:
        return f"StateGraph(nodes={len(self._nodes)}, edges={len(self._edges)})"
