import graphviz
from typing import List

from aidflow.core.ir import FlowChart, Node, EndNode, ReferenceNode, STEP, DECISION, END, REFERENCE, END_EMERGENCY
from aidflow.engine.runner import instruction_for
from aidflow.layout.engine import style_for


class GraphvizExporter:
    """Exports a FlowChart to Graphviz/Dot format or renders it."""

    # Node kind to shape mapping
    _SHAPES = {
        STEP: "box",
        DECISION: "diamond",
        END: "ellipse",
        REFERENCE: "component",
    }

    @staticmethod
    def _escape_html(text: str) -> str:
        """Escape HTML special characters for Graphviz."""
        return (
            text.replace('&', '&amp;')
            .replace('<', '&lt;')
            .replace('>', '&gt;')
            .replace('"', '&quot;')
        )

    @staticmethod
    def _html_label(node: Node, include_instructions: bool, expert_mode: bool) -> str:
        """
        HTML-like label: a colored kind badge, the bold title, then the
        instruction and any kind-specific detail in a smaller font.
        """
        esc = GraphvizExporter._escape_html
        style = style_for(node.kind)
        rows = [
            f'<TR><TD ALIGN="LEFT"><FONT POINT-SIZE="8" COLOR="{style.color}">{style.badge}</FONT></TD></TR>',
            f'<TR><TD ALIGN="LEFT"><B>{esc(node.title)}</B></TD></TR>',
        ]

        details: List[str] = []
        if include_instructions:
            text = instruction_for(node, expert_mode)
            if text:
                details.append(esc(text).replace('\n', '<BR/>'))
        if isinstance(node, EndNode) and node.end_message:
            details.append(f'<I>{esc(node.end_message)}</I>')
        if isinstance(node, ReferenceNode) and node.reference_id:
            details.append(f'<I>Uses: {esc(node.reference_id)}</I>')
        if details:
            rows.append(
                f'<TR><TD ALIGN="LEFT" BALIGN="LEFT"><FONT POINT-SIZE="10">'
                f'{"<BR/>".join(details)}</FONT></TD></TR>'
            )

        return f'<<TABLE BORDER="0" CELLBORDER="0" CELLSPACING="2" CELLPADDING="4">{"".join(rows)}</TABLE>>'

    @staticmethod
    def to_digraph(
        flowchart: FlowChart,
        include_instructions: bool = True,
        expert_mode: bool = False,
        show_unwired: bool = False,
    ) -> graphviz.Digraph:
        """
        Converts FlowChart to a graphviz.Digraph object.

        Args:
            flowchart: The flowchart to convert
            include_instructions: If True, include node instructions in the labels
            expert_mode: Label nodes with their expert instruction where one exists
            show_unwired: Draw choices without a resolvable target as dashed
                edges into a red "?" placeholder instead of dropping them
        """
        dot = graphviz.Digraph(name=flowchart.name, comment=flowchart.name)
        dot.attr(rankdir='TB', label=flowchart.name, labelloc='t')

        for node in flowchart.nodes:
            attrs = {
                "label": GraphvizExporter._html_label(node, include_instructions, expert_mode),
                "shape": GraphvizExporter._SHAPES.get(node.kind, "box"),
                "color": style_for(node.kind).color,
            }
            if node.id == flowchart.start_node_id:
                attrs["penwidth"] = "3"
            if isinstance(node, EndNode) and node.end_kind == END_EMERGENCY:
                attrs["peripheries"] = "2"
            dot.node(node.id, **attrs)

        for node in flowchart.nodes:
            for index, choice in enumerate(node.outgoing()):
                target = flowchart.resolve(choice.target_node_id)
                if target is not None:
                    dot.edge(node.id, target.id, label=choice.label or "")
                elif show_unwired:
                    placeholder = f"{node.id}__unwired_{index}"
                    dot.node(placeholder, label="?", shape="circle", color="red", fontcolor="red")
                    dot.edge(node.id, placeholder, label=choice.label or "", style="dashed", color="red")

        return dot

    @staticmethod
    def to_dot(flowchart: FlowChart, **options) -> str:
        """Returns the DOT source string for the flowchart."""
        return GraphvizExporter.to_digraph(flowchart, **options).source

    @staticmethod
    def render(flowchart: FlowChart, filename: str, format: str = 'png', view: bool = False):
        """Renders the flowchart to a file. Needs the Graphviz executables."""
        dot = GraphvizExporter.to_digraph(flowchart)
        dot.render(filename, format=format, view=view)
