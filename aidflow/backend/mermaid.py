import re
from typing import Dict, List, Tuple

from aidflow.core.ir import FlowChart, STEP, DECISION, END, REFERENCE
from aidflow.layout.engine import KIND_STYLES


class MermaidExporter:
    """Exports a FlowChart to Mermaid.js syntax."""

    # Mermaid shape syntax per node kind
    _SHAPES = {
        STEP: ('["', '"]'),          # Rectangle
        DECISION: ('{"', '"}'),      # Rhombus
        END: ('(["', '"])'),         # Stadium
        REFERENCE: ('[["', '"]]'),   # Subroutine
    }

    @staticmethod
    def _sanitize(text: str) -> str:
        """Escape special characters for Mermaid syntax."""
        return text.replace('"', '#quot;').replace("(", "#40;").replace(")", "#41;")

    @staticmethod
    def _class_name(kind: str) -> str:
        # "end" is a Mermaid keyword, so kinds get a prefix
        return f"kind_{kind}"

    @staticmethod
    def _node_refs(flowchart: FlowChart) -> Tuple[List[str], Dict[str, str]]:
        """
        Mermaid ids for every node, in node order, plus a lookup by node id.

        Ids must be plain words, so other characters become underscores and
        a numeric suffix keeps ids that collide after that apart. The lookup
        points at the first node carrying an id.
        """
        refs: List[str] = []
        by_id: Dict[str, str] = {}
        taken = set()
        for node in flowchart.nodes:
            base = re.sub(r"\W", "_", node.id) or "node"
            ref, n = base, 1
            while ref in taken:
                n += 1
                ref = f"{base}_{n}"
            taken.add(ref)
            refs.append(ref)
            by_id.setdefault(node.id, ref)
        return refs, by_id

    @staticmethod
    def _format_node(ref: str, label: str, kind: str) -> str:
        left, right = MermaidExporter._SHAPES[kind]
        return f"{ref}{left}{label}{right}:::{MermaidExporter._class_name(kind)}"

    @staticmethod
    def to_mermaid(flowchart: FlowChart, direction: str = "TD", include_instructions: bool = True) -> str:
        """
        Convert flowchart to Mermaid diagram syntax.

        Args:
            flowchart: The flowchart to convert
            direction: Graph direction (TD, LR, etc.)
            include_instructions: If True, add the instruction text under each title
        """
        lines = [f"graph {direction}"]
        refs, by_id = MermaidExporter._node_refs(flowchart)

        for ref, node in zip(refs, flowchart.nodes):
            label = MermaidExporter._sanitize(node.title)
            if include_instructions and node.instruction:
                instruction = MermaidExporter._sanitize(node.instruction).replace('\n', '<br/>')
                label = f"{label}<br/><i>{instruction}</i>"
            lines.append("    " + MermaidExporter._format_node(ref, label, node.kind))

        # Unset and dangling targets have nothing to point at
        for source, _, choice, target in flowchart.edges():
            src = by_id[source.id]
            dst = by_id[target.id]
            if choice.label:
                lines.append(f"    {src} -- {MermaidExporter._sanitize(choice.label)} --> {dst}")
            else:
                lines.append(f"    {src} --> {dst}")

        for kind, style in KIND_STYLES.items():
            lines.append(f"    classDef {MermaidExporter._class_name(kind)} stroke:{style.color},stroke-width:2px")

        if flowchart.start_node is not None:
            lines.append(f"    style {by_id[flowchart.start_node_id]} stroke-width:4px")

        return "\n".join(lines)
