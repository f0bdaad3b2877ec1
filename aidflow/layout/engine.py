"""Layered layout for procedure flowcharts.

Phases:
  1. Depth assignment: breadth-first from the start node, shortest distance
     in edges. Each node is fixed at its first visit, so cycles terminate.
     Unreachable nodes share one trailing depth below everything else.
  2. Band grouping: nodes of equal depth form a horizontal band, in the
     order they were reached.
  3. Positioning: fixed-size boxes, centered in the minimum canvas width.
  4. Edge routing: a quadratic curve from the source's bottom edge to the
     target's top center. Successive choices of one source are shifted
     sideways so parallel edges do not overlap.

``layout`` is pure: the same graph and config always give an equal result.
Dangling and unset targets are skipped so graphs render mid-edit.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Tuple

from aidflow.core.ir import FlowChart, Node, STEP, DECISION, END, REFERENCE


@dataclass(frozen=True)
class LayoutConfig:
    node_width: float = 200
    node_height: float = 80
    band_height: float = 150
    node_spacing: float = 50
    margin: float = 50
    min_width: float = 800
    min_height: float = 600
    choice_offset: float = 20
    choice_offset_base: float = -10


@dataclass(frozen=True)
class NodeStyle:
    color: str
    icon: str
    badge: str


KIND_STYLES: Dict[str, NodeStyle] = {
    STEP: NodeStyle("#3B82F6", "📋", "STEP"),
    DECISION: NodeStyle("#F59E0B", "❓", "DECISION"),
    END: NodeStyle("#10B981", "✅", "END"),
    REFERENCE: NodeStyle("#8B5CF6", "🔄", "REUSABLE"),
}

FALLBACK_STYLE = NodeStyle("#6B7280", "⚪", "NODE")


def style_for(kind: str) -> NodeStyle:
    return KIND_STYLES.get(kind, FALLBACK_STYLE)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class PlacedNode:
    node: Node
    depth: int
    x: float
    y: float
    width: float
    height: float
    style: NodeStyle
    is_start: bool = False

    @property
    def node_id(self) -> str:
        return self.node.id

    @property
    def kind(self) -> str:
        return self.node.kind

    @property
    def bottom_center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height)

    @property
    def top_center(self) -> Point:
        return Point(self.x + self.width / 2, self.y)


@dataclass(frozen=True)
class RoutedEdge:
    source_id: str
    target_id: str
    choice_index: int
    label: str
    start: Point
    control: Point
    end: Point

    @property
    def label_position(self) -> Point:
        return self.control

    @property
    def path(self) -> str:
        """SVG path data for the curve."""
        return (
            f"M {_num(self.start.x)} {_num(self.start.y)} "
            f"Q {_num(self.control.x)} {_num(self.control.y)} "
            f"{_num(self.end.x)} {_num(self.end.y)}"
        )


@dataclass(frozen=True)
class CanvasSize:
    width: float
    height: float


@dataclass(frozen=True)
class Layout:
    placed_nodes: Tuple[PlacedNode, ...]
    routed_edges: Tuple[RoutedEdge, ...]
    canvas_size: CanvasSize

    def get(self, node_id: str) -> Optional[PlacedNode]:
        for placed in self.placed_nodes:
            if placed.node_id == node_id:
                return placed
        return None

    def bands(self) -> List[Tuple[PlacedNode, ...]]:
        """Placed nodes grouped by depth, top band first."""
        grouped: Dict[int, List[PlacedNode]] = {}
        for placed in self.placed_nodes:
            grouped.setdefault(placed.depth, []).append(placed)
        return [tuple(grouped[depth]) for depth in sorted(grouped)]


def _num(value: float) -> str:
    return f"{value:g}"


def assign_depths(flowchart: FlowChart) -> List[Tuple[int, int]]:
    """
    Return ``(node index, depth)`` pairs in placement order.

    Nodes are addressed by their index in ``flowchart.nodes`` so a node
    carrying a duplicated id still gets exactly one slot.
    """
    nodes = flowchart.nodes
    if not nodes:
        return []

    first_index: Dict[str, int] = {}
    for index, node in enumerate(nodes):
        first_index.setdefault(node.id, index)

    start = first_index.get(flowchart.start_node_id, 0) if flowchart.start_node_id else 0

    order: List[Tuple[int, int]] = []
    visited = set()
    queue: Deque[Tuple[int, int]] = deque([(start, 0)])
    while queue:
        index, depth = queue.popleft()
        if index in visited:
            continue
        visited.add(index)
        order.append((index, depth))
        for choice in nodes[index].outgoing():
            target = first_index.get(choice.target_node_id)
            if target is not None and target not in visited:
                queue.append((target, depth + 1))

    trailing = max(depth for _, depth in order) + 1
    for index in range(len(nodes)):
        if index not in visited:
            order.append((index, trailing))
    return order


def layout(flowchart: FlowChart, config: Optional[LayoutConfig] = None) -> Layout:
    """Compute placement and edge routing for every node of ``flowchart``."""
    config = config or LayoutConfig()
    nodes = flowchart.nodes

    bands: Dict[int, List[int]] = {}
    for index, depth in assign_depths(flowchart):
        bands.setdefault(depth, []).append(index)

    placed: List[PlacedNode] = []
    for depth in sorted(bands):
        members = bands[depth]
        y = config.margin + depth * config.band_height
        total_width = len(members) * config.node_width + (len(members) - 1) * config.node_spacing
        start_x = max(config.margin, (config.min_width - total_width) / 2)
        for slot, index in enumerate(members):
            node = nodes[index]
            placed.append(PlacedNode(
                node=node,
                depth=depth,
                x=start_x + slot * (config.node_width + config.node_spacing),
                y=y,
                width=config.node_width,
                height=config.node_height,
                style=style_for(node.kind),
                is_start=bool(flowchart.start_node_id) and node.id == flowchart.start_node_id,
            ))

    # Edges attach to the first placed node carrying the target id.
    by_id: Dict[str, PlacedNode] = {}
    for p in placed:
        by_id.setdefault(p.node_id, p)

    edges: List[RoutedEdge] = []
    for source in placed:
        for index, choice in enumerate(source.node.outgoing()):
            target = by_id.get(choice.target_node_id) if choice.target_node_id else None
            if target is None:
                continue
            origin = source.bottom_center
            anchor = Point(origin.x + index * config.choice_offset + config.choice_offset_base, origin.y)
            end = target.top_center
            mid_y = anchor.y + (end.y - anchor.y) / 2
            edges.append(RoutedEdge(
                source_id=source.node_id,
                target_id=target.node_id,
                choice_index=index,
                label=choice.label,
                start=anchor,
                control=Point(anchor.x, mid_y),
                end=end,
            ))

    max_x = max([p.x + p.width for p in placed] + [config.min_width])
    max_y = max([p.y + p.height for p in placed] + [config.min_height])
    canvas = CanvasSize(max_x + config.margin, max_y + config.margin)

    return Layout(tuple(placed), tuple(edges), canvas)
