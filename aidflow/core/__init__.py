"""Core data structures for aidflow procedure graphs."""

from .ir import (
    Node, StepNode, DecisionNode, EndNode, ReferenceNode,
    Choice, Position, FlowChart, ReusableStep, ReportEntry, Report,
)
from .errors import (
    FlowchartError, InvalidStart, NotADecision, InvalidChoice, DanglingTarget,
    EmptyTrail, InactiveSession, NodeNotFound, InvalidUpdate,
)
from .validation import Issue, validate
from .serialization import JsonSerializer

__all__ = [
    "Node",
    "StepNode",
    "DecisionNode",
    "EndNode",
    "ReferenceNode",
    "Choice",
    "Position",
    "FlowChart",
    "ReusableStep",
    "ReportEntry",
    "Report",
    "FlowchartError",
    "InvalidStart",
    "NotADecision",
    "InvalidChoice",
    "DanglingTarget",
    "EmptyTrail",
    "InactiveSession",
    "NodeNotFound",
    "InvalidUpdate",
    "Issue",
    "validate",
    "JsonSerializer",
]
