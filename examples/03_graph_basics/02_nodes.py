"""Nodes: functions from state to a partial update.

Two nodes run in a fixed order. Each returns only the fields it changes and
the runtime merges them into the shared state.

Run: python examples/03_graph_basics/02_nodes.py
"""

from typing import Annotated, TypedDict

from stepwise import END, START, StateGraph, append


class GraphState(TypedDict):
    name: str
    items: Annotated[list[str], append]


def node_a(state: GraphState):
    print(f"node_a sees: {state}")
    return {"name": "Ada Lovelace", "items": ["First Algorithm"]}


def node_b(state: GraphState):
    print(f"node_b sees: {state}")
    return {"items": ["Analytical Engine"]}


def main():
    app = (
        StateGraph(GraphState)
        .add_node("node_a", node_a)
        .add_node("node_b", node_b)
        .add_edge(START, "node_a")
        .add_edge("node_a", "node_b")
        .add_edge("node_b", END)
        .compile()
    )
    print(app)

    result = app.invoke({})
    print(f"\nFinal state: {result}")

    print("\nMermaid diagram:\n")
    print(app.mermaid_code(title="Two Nodes"))


if __name__ == "__main__":
    main()
