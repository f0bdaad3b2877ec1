"""Backend exporters for flowcharts and reports."""

from aidflow.backend.graphviz import GraphvizExporter
from aidflow.backend.mermaid import MermaidExporter
from aidflow.backend.report import ReportExporter
from aidflow.backend.svg import SvgExporter

__all__ = [
    "GraphvizExporter",
    "MermaidExporter",
    "ReportExporter",
    "SvgExporter",
]
