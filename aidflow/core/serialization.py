"""
JSON serialization for FlowChart and Report objects.

The serialized format uses the camelCase field names shared with the editor
UI. Every common field is always present (optional ones as null) and
kind-specific fields are only written for the node kind that owns them, so
a snapshot round-trips through the graph model exactly.

Loading is tolerant: missing optional fields take their defaults, and the
field names used by older exports (``type``, ``choices``/``text``/
``nextNodeId``, ``instructionFirstResponder``, ``endType``) are accepted.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from aidflow.core.ir import (
    FlowChart, Node, Choice, Position, Report, ReportEntry,
    DecisionNode, EndNode, StepNode, ReferenceNode,
    NODE_CLASSES, END_SUCCESS,
)


def _dump_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _load_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now(timezone.utc)
    # fromisoformat only learned the "Z" suffix in 3.11
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class JsonSerializer:
    """Serializes and deserializes flowcharts and traversal reports."""

    @staticmethod
    def node_to_dict(node: Node) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": node.id,
            "kind": node.kind,
            "title": node.title,
            "instruction": node.instruction,
            "expertInstruction": node.expert_instruction,
            "image": node.image,
            "position": (
                {"x": node.position.x, "y": node.position.y} if node.position else None
            ),
        }
        if isinstance(node, DecisionNode):
            data["decisionChoices"] = [
                {
                    "label": choice.label,
                    "targetNodeId": choice.target_node_id,
                    "condition": choice.condition,
                }
                for choice in node.choices
            ]
        elif isinstance(node, EndNode):
            data["endKind"] = node.end_kind
            data["endMessage"] = node.end_message
        elif isinstance(node, ReferenceNode):
            data["referenceId"] = node.reference_id
            data["nextNodeId"] = node.next_node_id
        elif isinstance(node, StepNode):
            data["nextNodeId"] = node.next_node_id
        return data

    @staticmethod
    def node_from_dict(data: Dict[str, Any]) -> Node:
        kind = data.get("kind") or data.get("type") or "step"
        cls = NODE_CLASSES.get(kind)
        if cls is None:
            raise ValueError(f"Unknown node kind: {kind}")

        position = data.get("position")
        common = dict(
            id=data["id"],
            title=data.get("title") or "",
            instruction=data.get("instruction") or "",
            expert_instruction=data.get("expertInstruction", data.get("instructionFirstResponder")),
            image=data.get("image"),
            position=Position(position["x"], position["y"]) if position else None,
        )

        # Fields that belong to other kinds are ignored, never trusted.
        if cls is DecisionNode:
            raw_choices = data.get("decisionChoices", data.get("choices")) or []
            choices = [
                Choice(
                    label=c.get("label") or c.get("text") or "",
                    target_node_id=c.get("targetNodeId", c.get("nextNodeId", "")) or "",
                    condition=c.get("condition"),
                )
                for c in raw_choices
            ]
            return DecisionNode(choices=choices, **common)
        if cls is EndNode:
            return EndNode(
                end_kind=data.get("endKind", data.get("endType")) or END_SUCCESS,
                end_message=data.get("endMessage"),
                **common,
            )
        if cls is ReferenceNode:
            return ReferenceNode(
                reference_id=data.get("referenceId"),
                next_node_id=data.get("nextNodeId"),
                **common,
            )
        return StepNode(next_node_id=data.get("nextNodeId"), **common)

    @staticmethod
    def to_dict(flowchart: FlowChart) -> Dict[str, Any]:
        return {
            "id": flowchart.id,
            "name": flowchart.name,
            "description": flowchart.description,
            "categoryId": flowchart.category_id,
            "startNodeId": flowchart.start_node_id,
            "version": flowchart.version,
            "createdAt": _dump_datetime(flowchart.created_at),
            "updatedAt": _dump_datetime(flowchart.updated_at),
            "nodes": [JsonSerializer.node_to_dict(node) for node in flowchart.nodes],
        }

    @staticmethod
    def to_json(flowchart: FlowChart, indent: int = 2) -> str:
        return json.dumps(JsonSerializer.to_dict(flowchart), indent=indent, ensure_ascii=False)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> FlowChart:
        kwargs: Dict[str, Any] = dict(
            name=data.get("name") or "LoadedFlowChart",
            description=data.get("description") or "",
            category_id=data.get("categoryId") or "",
            start_node_id=data.get("startNodeId") or "",
            version=int(data.get("version", 1)),
            created_at=_load_datetime(data.get("createdAt")),
            updated_at=_load_datetime(data.get("updatedAt")),
            nodes=[JsonSerializer.node_from_dict(n) for n in data.get("nodes", [])],
        )
        if data.get("id"):
            kwargs["id"] = data["id"]
        return FlowChart(**kwargs)

    @staticmethod
    def from_json(json_str: str) -> FlowChart:
        return JsonSerializer.from_dict(json.loads(json_str))

    @staticmethod
    def load_many(json_str: str) -> List[FlowChart]:
        """Load a document holding either one flowchart or a list of them."""
        data = json.loads(json_str)
        if isinstance(data, list):
            return [JsonSerializer.from_dict(item) for item in data]
        return [JsonSerializer.from_dict(data)]

    @staticmethod
    def entry_to_dict(entry: ReportEntry) -> Dict[str, Any]:
        return {
            "nodeId": entry.node_id,
            "title": entry.title,
            "instruction": entry.instruction,
            "timestamp": _dump_datetime(entry.timestamp),
            "chosenLabel": entry.chosen_label,
        }

    @staticmethod
    def report_to_dict(report: Report) -> Dict[str, Any]:
        return {
            "flowchartId": report.flowchart_id,
            "flowchartName": report.flowchart_name,
            "generatedAt": _dump_datetime(report.generated_at),
            "expertMode": report.expert_mode,
            "endReason": report.end_reason,
            "steps": [JsonSerializer.entry_to_dict(entry) for entry in report.steps],
        }

    @staticmethod
    def report_to_json(report: Report, indent: int = 2) -> str:
        return json.dumps(JsonSerializer.report_to_dict(report), indent=indent, ensure_ascii=False)
