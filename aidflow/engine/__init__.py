"""Traversal engine for running procedures step by step."""

from .runner import (
    FlowRunner, TraversalState, start, advance, advance_linear, back, abort, instruction_for,
    IDLE, ACTIVE, ENDED, COMPLETED, EMERGENCY_ESCALATED, ABORTED,
)

__all__ = [
    "FlowRunner",
    "TraversalState",
    "start",
    "advance",
    "advance_linear",
    "back",
    "abort",
    "instruction_for",
    "IDLE",
    "ACTIVE",
    "ENDED",
    "COMPLETED",
    "EMERGENCY_ESCALATED",
    "ABORTED",
]
