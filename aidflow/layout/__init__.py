"""Automatic layout of flowcharts into drawable diagrams."""

from .engine import (
    Layout, LayoutConfig, PlacedNode, RoutedEdge, CanvasSize, Point, NodeStyle,
    KIND_STYLES, style_for, assign_depths, layout,
)

__all__ = [
    "Layout",
    "LayoutConfig",
    "PlacedNode",
    "RoutedEdge",
    "CanvasSize",
    "Point",
    "NodeStyle",
    "KIND_STYLES",
    "style_for",
    "assign_depths",
    "layout",
]
