"""Streaming modes for sequence execution.

- VALUES: Emit the full state after each node
- UPDATES: Emit the partial update each node returned
- EVENTS: Emit lifecycle events

Example:
    >>> async for value in graph.astream({}, mode=StreamMode.VALUES):
    ...     print(value.node_id, value.state)
    >>>
    >>> async for update in graph.astream({}, mode=StreamMode.UPDATES):
    ...     print(update.node_id, update.update)
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from datetime import datetime


class StreamMode(Enum):
    """Available streaming modes for graph execution."""

    VALUES = "values"      # Full state after each node
    UPDATES = "updates"    # Partial updates only
    EVENTS = "events"      # Lifecycle events


@dataclass
class StateValue:
    """Full state snapshot emitted in VALUES mode.

    Attributes:
        node_id: ID of the node that just completed
        state: Complete state dictionary
        step: 1-based position of the node in the sequence
    """
    node_id: str
    state: Dict[str, Any]
    step: int = 0
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()


@dataclass
class StateUpdate:
    """Partial update emitted in UPDATES mode.

    Attributes:
        node_id: ID of the node that produced the update
        update: Fields the node returned, before merging
        step: 1-based position of the node in the sequence
    """
    node_id: str
    update: Dict[str, Any] = field(default_factory=dict)
    step: int = 0
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()

    @property
    def has_changes(self) -> bool:
        """Check if this update touched any field."""
        return bool(self.update)


def coerce_stream_mode(mode: Any) -> StreamMode:
    """Accept a StreamMode or its string value."""
    if isinstance(mode, StreamMode):
        return mode
    try:
        return StreamMode(mode)
    except ValueError:
        valid = ", ".join(m.value for m in StreamMode)
        raise ValueError(f"Unknown stream mode '{mode}'. Expected one of: {valid}") from None
