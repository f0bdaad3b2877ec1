from collections import deque

from aidflow.core.ir import FlowChart, StepNode, DecisionNode, EndNode, Choice
from aidflow.layout import Layout, LayoutConfig, CanvasSize, KIND_STYLES, assign_depths, layout


def chain(n):
    """A straight chain of single-choice decisions ending in an end node."""
    ids = [chr(ord("A") + i) for i in range(n)]
    nodes = [DecisionNode(id=i, title=i, choices=[Choice("next", j)]) for i, j in zip(ids, ids[1:])]
    nodes.append(EndNode(id=ids[-1], title=ids[-1]))
    return FlowChart(start_node_id=ids[0], nodes=nodes)


def shortest_depths(chart):
    """Reference BFS over resolved edges."""
    depths = {chart.start_node_id: 0}
    queue = deque([chart.start_node_id])
    while queue:
        node = chart.get_node(queue.popleft())
        for choice in node.outgoing():
            if chart.has_node(choice.target_node_id) and choice.target_node_id not in depths:
                depths[choice.target_node_id] = depths[node.id] + 1
                queue.append(choice.target_node_id)
    return depths


class TestDepthAssignment:
    """Breadth-first depth assignment."""

    def test_chain_gives_one_band_per_node(self):
        diagram = layout(chain(5))

        bands = diagram.bands()
        assert len(bands) == 5
        assert [[p.node_id for p in band] for band in bands] == [["A"], ["B"], ["C"], ["D"], ["E"]]
        assert len({p.y for p in diagram.placed_nodes}) == 5

    def test_isolated_node_goes_to_deepest_band(self, yes_no_chart):
        chart = FlowChart(
            start_node_id="A",
            nodes=list(yes_no_chart.nodes) + [StepNode(id="lonely", title="Lonely")],
        )
        diagram = layout(chart)

        lonely = diagram.get("lonely")
        assert lonely is not None
        assert lonely.depth == max(p.depth for p in diagram.placed_nodes)
        assert lonely.depth == 2

    def test_unreachable_nodes_share_one_depth(self):
        chart = FlowChart(
            start_node_id="a",
            nodes=[
                StepNode(id="a", next_node_id="b"),
                EndNode(id="b"),
                StepNode(id="x", next_node_id="y"),
                EndNode(id="y"),
                EndNode(id="z"),
            ],
        )
        depths = {chart.nodes[i].id: d for i, d in assign_depths(chart)}
        assert depths == {"a": 0, "b": 1, "x": 2, "y": 2, "z": 2}

    def test_depth_is_shortest_distance(self, sample_flowchart):
        expected = shortest_depths(sample_flowchart)
        diagram = layout(sample_flowchart)
        assert {p.node_id: p.depth for p in diagram.placed_nodes} == expected

    def test_shortcut_wins_over_long_path(self):
        chart = FlowChart(
            start_node_id="s",
            nodes=[
                DecisionNode(id="s", choices=[Choice("long", "a"), Choice("short", "t")]),
                StepNode(id="a", next_node_id="b"),
                StepNode(id="b", next_node_id="t"),
                EndNode(id="t"),
            ],
        )
        assert layout(chart).get("t").depth == 1

    def test_cycles_terminate(self, sample_flowchart):
        diagram = layout(sample_flowchart)
        assert diagram.get("breathing").depth == 2
        assert diagram.get("monitor").depth == 4

    def test_unset_start_falls_back_to_first_node(self):
        chart = FlowChart(nodes=[StepNode(id="first", next_node_id="second"), EndNode(id="second")])
        diagram = layout(chart)
        assert diagram.get("first").depth == 0
        assert diagram.get("second").depth == 1
        assert not any(p.is_start for p in diagram.placed_nodes)

    def test_unresolved_start_falls_back_to_first_node(self):
        chart = FlowChart(start_node_id="gone", nodes=[EndNode(id="first"), EndNode(id="other")])
        assert layout(chart).get("first").depth == 0


class TestTotality:
    """Every node is placed exactly once."""

    def test_every_node_placed(self, sample_flowchart):
        diagram = layout(sample_flowchart)
        assert len(diagram.placed_nodes) == len(sample_flowchart.nodes)
        assert sorted(p.node_id for p in diagram.placed_nodes) == sorted(sample_flowchart.node_ids)

    def test_duplicate_ids_still_placed(self):
        chart = FlowChart(start_node_id="x", nodes=[EndNode(id="x"), EndNode(id="x"), StepNode(id="y")])
        assert len(layout(chart).placed_nodes) == 3

    def test_dangling_edges_are_skipped(self):
        chart = FlowChart(
            start_node_id="d",
            nodes=[
                DecisionNode(id="d", choices=[Choice("ok", "e"), Choice("gone", "deleted"), Choice("unset")]),
                EndNode(id="e"),
            ],
        )
        diagram = layout(chart)
        assert len(diagram.placed_nodes) == 2
        assert [(e.source_id, e.target_id, e.label) for e in diagram.routed_edges] == [("d", "e", "ok")]

    def test_empty_chart(self):
        diagram = layout(FlowChart())
        assert diagram.placed_nodes == ()
        assert diagram.routed_edges == ()
        assert diagram.canvas_size == CanvasSize(850, 650)


class TestPositioning:
    """Coordinates and canvas size."""

    def test_single_node_is_centered(self):
        chart = FlowChart(start_node_id="s", nodes=[EndNode(id="s")])
        placed = layout(chart).get("s")
        assert (placed.x, placed.y) == (300, 50)
        assert (placed.width, placed.height) == (200, 80)

    def test_band_members_spaced_left_to_right(self, yes_no_chart):
        diagram = layout(yes_no_chart)
        b, c = diagram.get("B"), diagram.get("C")
        assert b.y == c.y == 50 + 150
        assert b.x == 175
        assert c.x - b.x == 250

    def test_wide_band_respects_margin(self):
        targets = [EndNode(id=f"e{i}") for i in range(6)]
        chart = FlowChart(
            start_node_id="d",
            nodes=[DecisionNode(id="d", choices=[Choice(str(i), t.id) for i, t in enumerate(targets)])] + targets,
        )
        diagram = layout(chart)
        assert diagram.get("e0").x == 50
        assert diagram.get("e5").x == 50 + 5 * 250
        assert diagram.canvas_size.width == 50 + 5 * 250 + 200 + 50

    def test_small_graph_gets_minimum_canvas(self, yes_no_chart):
        assert layout(yes_no_chart).canvas_size == CanvasSize(850, 650)

    def test_tall_graph_grows_canvas(self):
        diagram = layout(chain(6))
        assert diagram.canvas_size.height == 50 + 5 * 150 + 80 + 50

    def test_custom_config(self):
        config = LayoutConfig(node_width=100, node_height=40, band_height=60, margin=10)
        diagram = layout(chain(2), config)
        b = diagram.get("B")
        assert (b.width, b.height, b.y) == (100, 40, 70)

    def test_start_flag(self, yes_no_chart):
        diagram = layout(yes_no_chart)
        assert [p.node_id for p in diagram.placed_nodes if p.is_start] == ["A"]


class TestEdgeRouting:
    """Edge anchors and curves."""

    def test_choice_anchors_are_offset(self, yes_no_chart):
        diagram = layout(yes_no_chart)
        first, second = diagram.routed_edges
        a = diagram.get("A")
        center = a.x + a.width / 2

        assert first.start.x == center - 10
        assert second.start.x == center + 10
        assert first.start.y == second.start.y == a.y + a.height

    def test_edge_ends_at_target_top_center(self, yes_no_chart):
        diagram = layout(yes_no_chart)
        edge = diagram.routed_edges[1]
        c = diagram.get("C")
        assert (edge.end.x, edge.end.y) == (c.x + c.width / 2, c.y)

    def test_curve_goes_through_vertical_midpoint(self, yes_no_chart):
        edge = layout(yes_no_chart).routed_edges[0]
        assert edge.control.x == edge.start.x
        assert edge.control.y == (edge.start.y + edge.end.y) / 2
        assert edge.label_position == edge.control
        assert edge.path == "M 390 130 Q 390 165 275 200"

    def test_labels_carried(self, yes_no_chart):
        diagram = layout(yes_no_chart)
        assert [(e.label, e.choice_index) for e in diagram.routed_edges] == [("yes", 0), ("no", 1)]

    def test_continue_edges_routed(self, sample_flowchart):
        diagram = layout(sample_flowchart)
        continues = [(e.source_id, e.target_id) for e in diagram.routed_edges if e.label == "Continue"]
        assert ("safety", "responsive") in continues
        assert ("recovery", "monitor") in continues

    def test_back_edge_routed(self, sample_flowchart):
        diagram = layout(sample_flowchart)
        assert any(e.source_id == "monitor" and e.target_id == "breathing" for e in diagram.routed_edges)


class TestDeterminismAndStyle:
    """Purity of the layout function."""

    def test_layout_is_idempotent(self, sample_flowchart):
        assert layout(sample_flowchart) == layout(sample_flowchart)

    def test_layout_does_not_touch_graph(self, sample_flowchart):
        before = sample_flowchart.nodes
        layout(sample_flowchart)
        assert sample_flowchart.nodes == before
        assert all(n.position is None for n in sample_flowchart.nodes)

    def test_style_from_kind(self, sample_flowchart):
        diagram = layout(sample_flowchart)
        for placed in diagram.placed_nodes:
            assert placed.style == KIND_STYLES[placed.kind]
        assert diagram.get("recovery").style.badge == "REUSABLE"

    def test_four_kind_styles(self):
        assert set(KIND_STYLES) == {"step", "decision", "end", "reference"}
        assert len({s.color for s in KIND_STYLES.values()}) == 4

    def test_result_type(self, yes_no_chart):
        assert isinstance(layout(yes_no_chart), Layout)
