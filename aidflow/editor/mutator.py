"""Structural editing operations on flowcharts.

Every operation takes a ``FlowChart`` and returns a new one; the input is
never modified. Operations that add a node append it, so the new node is always
``result.nodes[-1]``.

Edits only touch ``updated_at``. ``save`` is the one place that bumps
``version``.
"""

import logging
from dataclasses import fields, replace
from typing import Any, Dict, Optional

from aidflow.core.errors import InvalidChoice, InvalidUpdate, NodeNotFound, NotADecision
from aidflow.core.ir import (
    FlowChart, Node, Choice, Position, ReusableStep,
    StepNode, DecisionNode, ReferenceNode,
    NODE_CLASSES, DECISION, END, END_SUCCESS,
    new_id, utcnow,
)

logger = logging.getLogger(__name__)

DEFAULT_POSITION = Position(100, 100)
DUPLICATE_OFFSET = (50, 50)
COPY_SUFFIX = " (copy)"
NEW_CHOICE_LABEL = "New choice"


def _defaults(kind: str) -> Dict[str, Any]:
    if kind == DECISION:
        return dict(
            title="New decision",
            instruction="What is the situation?",
            choices=(Choice("Yes"), Choice("No")),
        )
    if kind == END:
        return dict(
            title="End",
            instruction="Completed",
            end_kind=END_SUCCESS,
            end_message="Procedure completed",
        )
    return dict(title="New step", instruction="Perform this action")


def _touch(flowchart: FlowChart, **changes) -> FlowChart:
    return replace(flowchart, updated_at=utcnow(), **changes)


def _find(flowchart: FlowChart, node_id: str) -> Node:
    node = flowchart.get_node(node_id)
    if node is None:
        raise NodeNotFound(f"Node '{node_id}' not found in '{flowchart.name}'.", node_id)
    return node


def _replace_node(flowchart: FlowChart, old: Node, new: Node) -> FlowChart:
    nodes = tuple(new if n is old else n for n in flowchart.nodes)
    return _touch(flowchart, nodes=nodes)


def _decision(flowchart: FlowChart, node_id: str) -> DecisionNode:
    node = _find(flowchart, node_id)
    if not isinstance(node, DecisionNode):
        raise NotADecision(f"'{node.title}' is a {node.kind} node, not a decision.", node_id)
    return node


def _check_index(node: DecisionNode, index: int) -> None:
    if index < 0 or index >= len(node.choices):
        raise InvalidChoice(
            f"Choice {index} is out of range for '{node.title}' ({len(node.choices)} choices).",
            node.id,
        )


def create_flowchart(name: str, description: str = "", category_id: str = "") -> FlowChart:
    """A new, empty flowchart with no start node."""
    return FlowChart(name=name, description=description, category_id=category_id)


def save(flowchart: FlowChart) -> FlowChart:
    """The snapshot to hand to storage: same content, next version."""
    return replace(flowchart, version=flowchart.version + 1)


def add_node(flowchart: FlowChart, kind: str) -> FlowChart:
    cls = NODE_CLASSES.get(kind)
    if cls is None:
        raise ValueError(f"Unknown node kind: {kind}")
    node = cls(id=new_id(), position=DEFAULT_POSITION, **_defaults(kind))
    logger.debug("Adding %s node %s to '%s'", kind, node.id, flowchart.name)
    return _touch(flowchart, nodes=flowchart.nodes + (node,))


def add_reusable_step(flowchart: FlowChart, step: ReusableStep) -> FlowChart:
    """Add a reference node seeded from a catalog entry."""
    node = ReferenceNode(
        id=new_id(),
        title=step.title,
        instruction=step.instruction,
        expert_instruction=step.expert_instruction,
        image=step.image,
        position=DEFAULT_POSITION,
        reference_id=step.id,
    )
    logger.debug("Adding reference node %s for catalog step %s", node.id, step.id)
    return _touch(flowchart, nodes=flowchart.nodes + (node,))


def update_node(flowchart: FlowChart, node_id: str, **changes) -> FlowChart:
    """Merge ``changes`` into a node. Only fields of the node's own kind are accepted."""
    node = _find(flowchart, node_id)
    allowed = {f.name for f in fields(node)} - {"id"}
    rejected = sorted(set(changes) - allowed)
    if rejected:
        raise InvalidUpdate(
            f"Cannot set {', '.join(rejected)} on {node.kind} node '{node.title}'.",
            node_id,
        )
    _check_structured_values(changes, node_id)
    try:
        updated = replace(node, **changes)
    except (TypeError, ValueError) as e:
        raise InvalidUpdate(str(e), node_id) from e
    return _replace_node(flowchart, node, updated)


def _check_structured_values(changes: Dict[str, Any], node_id: str):
    """Positions and choices must arrive as model values, not raw data."""
    if "position" in changes:
        position = changes["position"]
        if position is not None and not isinstance(position, Position):
            raise InvalidUpdate(f"position must be a Position, not {type(position).__name__}.", node_id)
    if "choices" in changes:
        choices = changes["choices"]
        if choices is None or isinstance(choices, (str, bytes, dict)):
            raise InvalidUpdate("choices must be a sequence of Choice values.", node_id)
        try:
            entries = list(choices)
        except TypeError as e:
            raise InvalidUpdate("choices must be a sequence of Choice values.", node_id) from e
        bad = [entry for entry in entries if not isinstance(entry, Choice)]
        if bad:
            raise InvalidUpdate(f"Not a choice: {bad[0]!r}.", node_id)
        changes["choices"] = tuple(entries)


def delete_node(flowchart: FlowChart, node_id: str) -> FlowChart:
    """Remove a node. References to it elsewhere are left dangling."""
    _find(flowchart, node_id)
    logger.debug("Deleting node %s from '%s'", node_id, flowchart.name)
    return _touch(flowchart, nodes=tuple(n for n in flowchart.nodes if n.id != node_id))


def duplicate_node(flowchart: FlowChart, node_id: str) -> FlowChart:
    """Clone a node under a new id. Its outgoing targets are kept as they are."""
    node = _find(flowchart, node_id)
    position = (node.position or Position()).offset(*DUPLICATE_OFFSET)
    clone = replace(node, id=new_id(), title=node.title + COPY_SUFFIX, position=position)
    logger.debug("Duplicated node %s as %s", node_id, clone.id)
    return _touch(flowchart, nodes=flowchart.nodes + (clone,))


def set_start_node(flowchart: FlowChart, node_id: str) -> FlowChart:
    _find(flowchart, node_id)
    return _touch(flowchart, start_node_id=node_id)


def _remap(node: Node, new_node_id: str, id_map: Dict[str, str]) -> Node:
    def target(old: Optional[str]) -> Optional[str]:
        # Unset and dangling targets are carried over unchanged
        return id_map.get(old, old) if old else old

    if isinstance(node, DecisionNode):
        choices = tuple(replace(c, target_node_id=target(c.target_node_id)) for c in node.choices)
        return replace(node, id=new_node_id, choices=choices)
    if isinstance(node, (StepNode, ReferenceNode)):
        return replace(node, id=new_node_id, next_node_id=target(node.next_node_id))
    return replace(node, id=new_node_id)


def duplicate_graph(flowchart: FlowChart) -> FlowChart:
    """Deep copy with fresh ids for the flowchart and every node."""
    fresh_ids = [new_id() for _ in flowchart.nodes]
    id_map: Dict[str, str] = {}
    for node, fresh in zip(flowchart.nodes, fresh_ids):
        id_map.setdefault(node.id, fresh)

    nodes = tuple(_remap(node, fresh, id_map) for node, fresh in zip(flowchart.nodes, fresh_ids))
    now = utcnow()
    copy = replace(
        flowchart,
        id=new_id("flowchart"),
        name=flowchart.name + COPY_SUFFIX,
        start_node_id=id_map.get(flowchart.start_node_id, flowchart.start_node_id),
        nodes=nodes,
        version=1,
        created_at=now,
        updated_at=now,
    )
    logger.debug("Duplicated flowchart %s as %s (%d nodes)", flowchart.id, copy.id, len(nodes))
    return copy


def add_choice(
    flowchart: FlowChart,
    node_id: str,
    label: str = NEW_CHOICE_LABEL,
    target_node_id: str = "",
) -> FlowChart:
    node = _decision(flowchart, node_id)
    choices = node.choices + (Choice(label, target_node_id),)
    return _replace_node(flowchart, node, replace(node, choices=choices))


def update_choice(flowchart: FlowChart, node_id: str, index: int, **changes) -> FlowChart:
    """Edit the label, target or condition of one choice, keeping its position."""
    node = _decision(flowchart, node_id)
    _check_index(node, index)
    allowed = {f.name for f in fields(Choice)}
    rejected = sorted(set(changes) - allowed)
    if rejected:
        raise InvalidUpdate(f"Cannot set {', '.join(rejected)} on a choice.", node_id)
    choices = list(node.choices)
    choices[index] = replace(choices[index], **changes)
    return _replace_node(flowchart, node, replace(node, choices=choices))


def remove_choice(flowchart: FlowChart, node_id: str, index: int) -> FlowChart:
    node = _decision(flowchart, node_id)
    _check_index(node, index)
    choices = node.choices[:index] + node.choices[index + 1:]
    return _replace_node(flowchart, node, replace(node, choices=choices))
