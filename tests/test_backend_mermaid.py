"""Tests for the Mermaid backend exporter."""

import pytest
from aidflow.core.ir import FlowChart, StepNode, DecisionNode, EndNode, ReferenceNode, Choice
from aidflow.backend.mermaid import MermaidExporter


class TestMermaidExporter:
    """Tests for MermaidExporter functionality."""

    @pytest.fixture
    def simple_chart(self):
        """Create a simple chart with all node kinds."""
        return FlowChart(
            name="Test",
            start_node_id="A",
            nodes=[
                StepNode(id="A", title="Check", next_node_id="B"),
                DecisionNode(id="B", title="Decide", choices=[Choice("Yes", "C"), Choice("No", "D")]),
                ReferenceNode(id="C", title="CPR", reference_id="cpr", next_node_id="D"),
                EndNode(id="D", title="Stop"),
            ],
        )

    def test_output_starts_with_graph(self, simple_chart):
        output = MermaidExporter.to_mermaid(simple_chart)
        assert output.startswith("graph TD")

    def test_custom_direction(self, simple_chart):
        assert MermaidExporter.to_mermaid(simple_chart, direction="LR").startswith("graph LR")

    def test_node_shapes(self, simple_chart):
        output = MermaidExporter.to_mermaid(simple_chart, include_instructions=False)

        assert 'A["Check"]:::kind_step' in output
        assert 'B{"Decide"}:::kind_decision' in output
        assert 'C[["CPR"]]:::kind_reference' in output
        assert 'D(["Stop"]):::kind_end' in output

    def test_edges_with_labels(self, simple_chart):
        output = MermaidExporter.to_mermaid(simple_chart)

        assert "A -- Continue --> B" in output
        assert "B -- Yes --> C" in output
        assert "B -- No --> D" in output
        assert "C -- Continue --> D" in output

    def test_dangling_choice_is_skipped(self):
        chart = FlowChart(
            start_node_id="d",
            nodes=[DecisionNode(id="d", choices=[Choice("gone", "deleted"), Choice("unset")])],
        )
        output = MermaidExporter.to_mermaid(chart)
        assert "-->" not in output

    def test_instructions_included(self):
        chart = FlowChart(nodes=[StepNode(id="s", title="Cool", instruction="Use water\nfor 20 min")])
        output = MermaidExporter.to_mermaid(chart)
        assert "Cool<br/><i>Use water<br/>for 20 min</i>" in output

    def test_sanitizes_quotes_and_parens(self):
        chart = FlowChart(nodes=[StepNode(id="s", title='Say "hello" (loud)')])
        output = MermaidExporter.to_mermaid(chart, include_instructions=False)
        assert "#quot;hello#quot; #40;loud#41;" in output

    def test_ids_become_plain_words(self):
        chart = FlowChart(nodes=[
            StepNode(id="node-1", next_node_id="node-2"),
            EndNode(id="node-2"),
        ])
        output = MermaidExporter.to_mermaid(chart)
        assert "node_1 -- Continue --> node_2" in output

    def test_kind_classes_and_start_highlight(self, simple_chart):
        output = MermaidExporter.to_mermaid(simple_chart)

        assert "classDef kind_decision stroke:#F59E0B" in output
        assert "classDef kind_reference stroke:#8B5CF6" in output
        assert "classDef kind_end stroke:#10B981" in output
        assert "style A stroke-width:4px" in output

    def test_no_start_highlight_without_start(self):
        output = MermaidExporter.to_mermaid(FlowChart(nodes=[EndNode(id="e")]))
        assert "style " not in output

    def test_class_names_avoid_reserved_words(self, simple_chart):
        output = MermaidExporter.to_mermaid(simple_chart)

        assert ":::end" not in output
        assert "classDef end " not in output
        assert "classDef step " not in output

    def test_colliding_ids_get_distinct_refs(self):
        chart = FlowChart(
            start_node_id="a_b",
            nodes=[
                DecisionNode(id="a-b", title="First", choices=[Choice("go", "a_b")]),
                EndNode(id="a_b", title="Second"),
            ],
        )
        output = MermaidExporter.to_mermaid(chart, include_instructions=False)

        assert 'a_b{"First"}:::kind_decision' in output
        assert 'a_b_2(["Second"]):::kind_end' in output
        assert "a_b -- go --> a_b_2" in output
        assert "style a_b_2 stroke-width:4px" in output

    def test_duplicate_ids_each_get_a_node_line(self):
        chart = FlowChart(nodes=[EndNode(id="x", title="One"), EndNode(id="x", title="Two")])
        output = MermaidExporter.to_mermaid(chart, include_instructions=False)

        assert 'x(["One"]):::kind_end' in output
        assert 'x_2(["Two"]):::kind_end' in output
