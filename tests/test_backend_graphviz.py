"""Tests for the Graphviz backend exporter."""

import pytest
import graphviz
from aidflow.core.ir import FlowChart, StepNode, DecisionNode, EndNode, ReferenceNode, Choice
from aidflow.backend.graphviz import GraphvizExporter


class TestGraphvizExporter:
    """Tests for GraphvizExporter functionality."""

    @pytest.fixture
    def simple_chart(self):
        """Create a simple chart with all node kinds."""
        return FlowChart(
            name="TestGraph",
            start_node_id="A",
            nodes=[
                StepNode(id="A", title="Check", instruction="Look around", next_node_id="B"),
                DecisionNode(id="B", title="Decide", choices=[Choice("Yes", "C"), Choice("No", "D")]),
                ReferenceNode(id="C", title="CPR", reference_id="cpr", next_node_id="D"),
                EndNode(id="D", title="Stop"),
            ],
        )

    def test_to_digraph_structure(self, simple_chart):
        dot = GraphvizExporter.to_digraph(simple_chart)

        assert isinstance(dot, graphviz.Digraph)
        assert dot.name == "TestGraph"

        source = dot.source
        assert "A -> B" in source
        assert "B -> C" in source
        assert "label=Yes" in source
        assert "label=Continue" in source

    def test_to_digraph_shapes(self, simple_chart):
        source = GraphvizExporter.to_digraph(simple_chart).source

        assert "shape=box" in source
        assert "shape=diamond" in source
        assert "shape=component" in source
        assert "shape=ellipse" in source

    def test_kind_colors(self, simple_chart):
        source = GraphvizExporter.to_dot(simple_chart)
        assert "#3B82F6" in source
        assert "#F59E0B" in source
        assert "#10B981" in source
        assert "#8B5CF6" in source

    def test_start_node_is_bold(self, simple_chart):
        source = GraphvizExporter.to_dot(simple_chart)
        assert source.count("penwidth=3") == 1

    def test_html_labels(self, simple_chart):
        source = GraphvizExporter.to_digraph(simple_chart).source
        assert "<B>Check</B>" in source
        assert "Look around" in source

    def test_without_instructions(self, simple_chart):
        source = GraphvizExporter.to_digraph(simple_chart, include_instructions=False).source
        assert "Look around" not in source
        assert "<B>Check</B>" in source

    def test_escaping(self):
        chart = FlowChart(nodes=[StepNode(id="s", title="A & B <C>")])
        source = GraphvizExporter.to_dot(chart)
        assert "A &amp; B &lt;C&gt;" in source

    def test_dangling_edges_skipped(self):
        chart = FlowChart(
            start_node_id="d",
            nodes=[DecisionNode(id="d", choices=[Choice("gone", "deleted"), Choice("unset")])],
        )
        assert "->" not in GraphvizExporter.to_dot(chart)

    def test_kind_badges(self, simple_chart):
        source = GraphvizExporter.to_dot(simple_chart)
        assert ">STEP</FONT>" in source
        assert ">REUSABLE</FONT>" in source

    def test_reference_and_end_details(self):
        chart = FlowChart(nodes=[
            ReferenceNode(id="r", title="Recovery", reference_id="recovery-position"),
            EndNode(id="e", title="Call 112", end_kind="emergency", end_message="Emergency escalated"),
        ])
        source = GraphvizExporter.to_dot(chart)

        assert "Uses: recovery-position" in source
        assert "<I>Emergency escalated</I>" in source
        assert "peripheries=2" in source

    def test_expert_instructions(self):
        chart = FlowChart(nodes=[StepNode(id="s", title="Airway", instruction="Tilt the head", expert_instruction="Jaw thrust")])

        assert "Tilt the head" in GraphvizExporter.to_dot(chart)
        expert = GraphvizExporter.to_dot(chart, expert_mode=True)
        assert "Jaw thrust" in expert
        assert "Tilt the head" not in expert

    def test_show_unwired(self):
        chart = FlowChart(
            start_node_id="d",
            nodes=[DecisionNode(id="d", choices=[Choice("later")])],
        )
        source = GraphvizExporter.to_dot(chart, show_unwired=True)

        assert "d -> d__unwired_0" in source
        assert "style=dashed" in source
