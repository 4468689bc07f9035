"""Graph builders."""

from stepwise.builders.state_graph import StateGraph

__all__ = ["StateGraph"]
