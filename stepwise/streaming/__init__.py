"""Streaming support for sequence execution."""

from stepwise.streaming.modes import StreamMode, StateValue, StateUpdate

__all__ = ["StreamMode", "StateValue", "StateUpdate"]
