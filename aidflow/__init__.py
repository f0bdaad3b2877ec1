"""
aidflow - branching first-aid procedures as flowcharts.

Main APIs:
- FlowChart and its node kinds: the procedure graph model
- validate: structural checks for graphs under construction
- FlowRunner: step-by-step traversal producing a report trail
- layout: automatic placement and edge routing for drawing
- aidflow.editor: immutable editing operations
- FlowBuilder: imperative API for assembling graphs in code

Backends:
- SvgExporter: SVG drawing of the computed layout
- MermaidExporter: Mermaid.js diagram syntax
- GraphvizExporter: Graphviz DOT format
- ReportExporter: plain-text and JSON traversal reports
"""

from aidflow.core.ir import (
    FlowChart, Node, StepNode, DecisionNode, EndNode, ReferenceNode,
    Choice, Position, ReusableStep, ReportEntry, Report,
)
from aidflow.core.errors import (
    FlowchartError, InvalidStart, NotADecision, InvalidChoice, DanglingTarget,
    EmptyTrail, InactiveSession, NodeNotFound, InvalidUpdate,
)
from aidflow.core.validation import Issue, validate
from aidflow.core.serialization import JsonSerializer
from aidflow.engine import FlowRunner, TraversalState
from aidflow.layout import Layout, LayoutConfig, layout
from aidflow.frontend import FlowBuilder
from aidflow.backend import SvgExporter, MermaidExporter, GraphvizExporter, ReportExporter

__all__ = [
    # Graph model
    "FlowChart",
    "Node",
    "StepNode",
    "DecisionNode",
    "EndNode",
    "ReferenceNode",
    "Choice",
    "Position",
    "ReusableStep",
    "ReportEntry",
    "Report",
    # Errors
    "FlowchartError",
    "InvalidStart",
    "NotADecision",
    "InvalidChoice",
    "DanglingTarget",
    "EmptyTrail",
    "InactiveSession",
    "NodeNotFound",
    "InvalidUpdate",
    # Validation and serialization
    "Issue",
    "validate",
    "JsonSerializer",
    # Traversal
    "FlowRunner",
    "TraversalState",
    # Layout
    "Layout",
    "LayoutConfig",
    "layout",
    # Frontends
    "FlowBuilder",
    # Backends
    "SvgExporter",
    "MermaidExporter",
    "GraphvizExporter",
    "ReportExporter",
]
