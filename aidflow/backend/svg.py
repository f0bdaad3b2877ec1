"""SVG backend for flowcharts.

Draws the diagram computed by ``aidflow.layout``: one card per node with a
colored header naming its kind, a curved arrow per choice with its label,
a dot marking the start node, and a legend. No external tools are needed.

Example:
    >>> from aidflow import SvgExporter
    >>> svg_string = SvgExporter.to_svg(chart)
    >>> with open("output.svg", "w", encoding="utf-8") as f:
    ...     f.write(svg_string)
"""

from typing import List, Optional
from xml.sax.saxutils import escape, quoteattr

from aidflow.core.ir import FlowChart, STEP, DECISION, END, REFERENCE
from aidflow.layout.engine import Layout, LayoutConfig, PlacedNode, RoutedEdge, layout, style_for


__all__ = ["SvgExporter"]

EDGE_COLOR = "#6B7280"
TITLE_LIMIT = 25
INSTRUCTION_LIMIT = 30


def _num(value: float) -> str:
    return f"{value:g}"


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


class SvgExporter:
    """Exports a FlowChart to a standalone SVG document."""

    _LEGEND = [
        (STEP, "Step"),
        (DECISION, "Decision"),
        (END, "End"),
        (REFERENCE, "Reusable"),
    ]

    @staticmethod
    def _edge(edge: RoutedEdge) -> List[str]:
        parts = [
            f'<path d="{edge.path}" stroke="{EDGE_COLOR}" stroke-width="2" '
            f'fill="none" marker-end="url(#arrowhead)"/>'
        ]
        if edge.label:
            pos = edge.label_position
            width = len(edge.label) * 6
            parts.append(
                f'<rect x="{_num(pos.x - width / 2)}" y="{_num(pos.y - 10)}" '
                f'width="{_num(width)}" height="20" fill="white" '
                f'stroke="{EDGE_COLOR}" stroke-width="1" rx="3"/>'
            )
            parts.append(
                f'<text x="{_num(pos.x)}" y="{_num(pos.y + 4)}" text-anchor="middle" '
                f'font-size="12" fill="#374151">{escape(edge.label)}</text>'
            )
        return parts

    @staticmethod
    def _node(placed: PlacedNode) -> List[str]:
        x, y, w, h = placed.x, placed.y, placed.width, placed.height
        color = placed.style.color
        node = placed.node
        parts = [
            f'<g class="node {placed.kind}" id={quoteattr(placed.node_id)}>',
            f'<rect x="{_num(x)}" y="{_num(y)}" width="{_num(w)}" height="{_num(h)}" '
            f'fill="white" stroke="{color}" stroke-width="2" rx="8"/>',
            # Header bar: rounded top, square bottom edge
            f'<rect x="{_num(x)}" y="{_num(y)}" width="{_num(w)}" height="24" fill="{color}" rx="8"/>',
            f'<rect x="{_num(x)}" y="{_num(y + 16)}" width="{_num(w)}" height="8" fill="{color}"/>',
            f'<text x="{_num(x + 12)}" y="{_num(y + 17)}" font-size="14" fill="white">'
            f'{placed.style.icon}</text>',
            f'<text x="{_num(x + 32)}" y="{_num(y + 17)}" font-size="12" fill="white" '
            f'font-weight="bold">{placed.style.badge}</text>',
            f'<text x="{_num(x + w / 2)}" y="{_num(y + 42)}" text-anchor="middle" font-size="14" '
            f'font-weight="bold" fill="#1F2937">{escape(_truncate(node.title, TITLE_LIMIT))}</text>',
            f'<text x="{_num(x + w / 2)}" y="{_num(y + 60)}" text-anchor="middle" font-size="11" '
            f'fill="#6B7280">{escape(_truncate(node.instruction, INSTRUCTION_LIMIT))}</text>',
        ]
        if placed.is_start:
            parts.append(
                f'<circle cx="{_num(x - 10)}" cy="{_num(y + h / 2)}" r="8" '
                f'fill="{style_for(END).color}" stroke="white" stroke-width="2"/>'
            )
        parts.append('</g>')
        return parts

    @staticmethod
    def _legend() -> List[str]:
        parts = [
            '<g class="legend" transform="translate(20, 20)">',
            '<rect x="0" y="0" width="160" height="120" fill="white" stroke="#E5E7EB" '
            'stroke-width="1" rx="4"/>',
            '<text x="8" y="16" font-size="12" font-weight="bold" fill="#1F2937">Legend</text>',
        ]
        y = 32
        for kind, label in SvgExporter._LEGEND + [(None, "Start")]:
            if kind is None:
                parts.append(
                    f'<circle cx="16" cy="{y}" r="6" fill="{style_for(END).color}" '
                    f'stroke="white" stroke-width="2"/>'
                )
            else:
                parts.append(f'<circle cx="16" cy="{y}" r="6" fill="{style_for(kind).color}"/>')
            parts.append(f'<text x="28" y="{y + 4}" font-size="11" fill="#374151">{label}</text>')
            y += 16
        parts.append('</g>')
        return parts

    @staticmethod
    def from_layout(diagram: Layout, title: str = "", include_legend: bool = True) -> str:
        """Render an already computed layout."""
        width = _num(diagram.canvas_size.width)
        height = _num(diagram.canvas_size.height)
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
            f'viewBox="0 0 {width} {height}">',
        ]
        if title:
            lines.append(f'<title>{escape(title)}</title>')
        lines += [
            '<defs>',
            '<marker id="arrowhead" markerWidth="10" markerHeight="7" refX="9" refY="3.5" orient="auto">',
            f'<polygon points="0 0, 10 3.5, 0 7" fill="{EDGE_COLOR}"/>',
            '</marker>',
            '</defs>',
        ]
        for edge in diagram.routed_edges:
            lines += SvgExporter._edge(edge)
        for placed in diagram.placed_nodes:
            lines += SvgExporter._node(placed)
        if include_legend:
            lines += SvgExporter._legend()
        lines.append('</svg>')
        return "\n".join(lines)

    @staticmethod
    def to_svg(
        flowchart: FlowChart,
        config: Optional[LayoutConfig] = None,
        include_legend: bool = True,
    ) -> str:
        """Lay out ``flowchart`` and return it as an SVG string."""
        return SvgExporter.from_layout(layout(flowchart, config), flowchart.name, include_legend)
