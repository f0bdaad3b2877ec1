"""Structural checks for flowcharts under construction.

Validation never raises. A graph being edited is expected to be invalid
most of the time, so problems are returned as a list of ``Issue`` values
that the editor can display next to the offending node.
"""

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Set

from aidflow.core.ir import FlowChart, DecisionNode, EndNode, ReferenceNode

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class Issue:
    severity: str
    code: str
    message: str
    node_id: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == ERROR


def validate(flowchart: FlowChart) -> List[Issue]:
    """Return every problem found in ``flowchart``, errors first."""
    issues: List[Issue] = []

    counts = Counter(flowchart.node_ids)
    for node_id, count in counts.items():
        if count > 1:
            issues.append(Issue(
                ERROR, "duplicate-id",
                f"Node id '{node_id}' is used by {count} nodes.",
                node_id,
            ))

    if flowchart.nodes:
        if not flowchart.start_node_id:
            issues.append(Issue(ERROR, "missing-start", "Flowchart has nodes but no start node."))
        elif flowchart.start_node is None:
            issues.append(Issue(
                ERROR, "dangling-start",
                f"Start node '{flowchart.start_node_id}' does not exist.",
                flowchart.start_node_id,
            ))

    has_incoming: Set[str] = set()
    has_outgoing: Set[str] = set()
    for source, _, _, target in flowchart.edges():
        has_outgoing.add(source.id)
        has_incoming.add(target.id)

    for node in flowchart.nodes:
        for index, choice in enumerate(node.outgoing()):
            if not choice.target_node_id:
                issues.append(Issue(
                    WARNING, "unset-target",
                    f"Choice {index} ('{choice.label}') of '{node.title}' has no target.",
                    node.id,
                ))
            elif not flowchart.has_node(choice.target_node_id):
                issues.append(Issue(
                    ERROR, "dangling-target",
                    f"Choice {index} ('{choice.label}') of '{node.title}' points at "
                    f"missing node '{choice.target_node_id}'.",
                    node.id,
                ))

        if isinstance(node, DecisionNode) and not node.choices:
            issues.append(Issue(WARNING, "no-choices", f"Decision '{node.title}' has no choices.", node.id))

        if isinstance(node, ReferenceNode) and not node.reference_id:
            issues.append(Issue(
                WARNING, "missing-reference",
                f"Reference node '{node.title}' does not name a catalog step.",
                node.id,
            ))

        if (
            not isinstance(node, EndNode)
            and node.id not in has_incoming
            and node.id not in has_outgoing
        ):
            issues.append(Issue(
                WARNING, "isolated-dead-end",
                f"Node '{node.title}' has no incoming or outgoing edges.",
                node.id,
            ))

    issues.sort(key=lambda issue: 0 if issue.is_error else 1)
    return issues


def has_errors(issues: List[Issue]) -> bool:
    return any(issue.is_error for issue in issues)
