"""Event system for streaming execution updates."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from enum import Enum


class EventType(str, Enum):
    """Lifecycle events emitted while a sequence runs."""

    # Execution lifecycle
    EXECUTION_START = "execution-start"
    EXECUTION_COMPLETE = "execution-complete"

    # Node lifecycle
    NODE_START = "node-start"
    NODE_COMPLETE = "node-complete"
    NODE_ERROR = "node-error"


@dataclass
class ExecutionEvent:
    """A single execution event.

    Attributes:
        type: Event type
        node_id: Node the event belongs to, if any
        update: Partial update returned by the node (node-complete)
        state: Merged state after the node (node-complete, execution-complete)
        error: Error message (node-error)
        step: 1-based position of the node in the sequence
        timestamp: When the event was created
        metadata: Additional information
    """

    type: EventType
    node_id: Optional[str] = None
    update: Optional[Dict[str, Any]] = None
    state: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    step: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to a JSON-friendly dictionary, omitting empty fields."""
        payload: Dict[str, Any] = {
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.node_id is not None:
            payload["node_id"] = self.node_id
        if self.step is not None:
            payload["step"] = self.step
        if self.update is not None:
            payload["update"] = self.update
        if self.state is not None:
            payload["state"] = self.state
        if self.error is not None:
            payload["error"] = self.error
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload
