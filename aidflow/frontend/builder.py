"""Imperative FlowBuilder for assembling procedures in code."""

from dataclasses import replace
from typing import Dict, List, Optional

from aidflow.core.ir import (
    FlowChart, Node, Choice, StepNode, DecisionNode, EndNode, ReferenceNode,
    END_SUCCESS, new_id,
)


class FlowBuilder:
    """
    Imperative API for building flowcharts by adding nodes and wiring them.

    Node-creating methods return the new node's id. The first node added
    becomes the start node unless ``start_at`` says otherwise.

    Example:
        builder = FlowBuilder("Burns")
        cool = builder.step("Cool the burn", "Hold under lukewarm water for 20 minutes.")
        severe = builder.decision("Is the burn larger than a hand?")
        builder.connect(cool, severe)
        builder.connect(severe, builder.end("Call 112", end_kind="emergency"), "Yes")
        builder.connect(severe, builder.end("Cover the burn"), "No")
        chart = builder.build()
    """

    def __init__(self, name: str = "FlowChart", description: str = "", category_id: str = ""):
        self.name = name
        self.description = description
        self.category_id = category_id
        self.start_node_id = ""
        self._order: List[str] = []
        self._nodes: Dict[str, Node] = {}

    def _add(self, node: Node) -> str:
        if node.id in self._nodes:
            raise ValueError(f"Node with id {node.id} already exists.")
        self._nodes[node.id] = node
        self._order.append(node.id)
        if not self.start_node_id:
            self.start_node_id = node.id
        return node.id

    def step(
        self,
        title: str,
        instruction: str = "",
        node_id: Optional[str] = None,
        expert_instruction: Optional[str] = None,
        image: Optional[str] = None,
    ) -> str:
        return self._add(StepNode(
            id=node_id or new_id(), title=title, instruction=instruction,
            expert_instruction=expert_instruction, image=image,
        ))

    def decision(
        self,
        title: str,
        instruction: str = "",
        node_id: Optional[str] = None,
        expert_instruction: Optional[str] = None,
        image: Optional[str] = None,
    ) -> str:
        return self._add(DecisionNode(
            id=node_id or new_id(), title=title, instruction=instruction,
            expert_instruction=expert_instruction, image=image,
        ))

    def end(
        self,
        title: str = "End",
        instruction: str = "",
        node_id: Optional[str] = None,
        end_kind: str = END_SUCCESS,
        end_message: Optional[str] = None,
    ) -> str:
        return self._add(EndNode(
            id=node_id or new_id(), title=title, instruction=instruction,
            end_kind=end_kind, end_message=end_message,
        ))

    def reference(
        self,
        title: str,
        reference_id: str,
        instruction: str = "",
        node_id: Optional[str] = None,
    ) -> str:
        return self._add(ReferenceNode(
            id=node_id or new_id(), title=title, instruction=instruction,
            reference_id=reference_id,
        ))

    def connect(
        self,
        source_id: str,
        target_id: str,
        label: Optional[str] = None,
        condition: Optional[str] = None,
    ) -> None:
        """
        Wire ``source_id`` to ``target_id``.

        Decisions get a new choice (label defaults to the target's title);
        steps and references get their single continuation.
        """
        if source_id not in self._nodes:
            raise ValueError(f"Source node {source_id} does not exist.")
        if target_id not in self._nodes:
            raise ValueError(f"Target node {target_id} does not exist.")

        source = self._nodes[source_id]
        if isinstance(source, DecisionNode):
            choice = Choice(label or self._nodes[target_id].title, target_id, condition)
            source = replace(source, choices=source.choices + (choice,))
        elif isinstance(source, EndNode):
            raise ValueError(f"End node {source_id} cannot have outgoing edges.")
        else:
            if source.next_node_id:
                raise ValueError(
                    f"Node {source_id} already continues to {source.next_node_id}; "
                    "use a decision to branch."
                )
            source = replace(source, next_node_id=target_id)
        self._nodes[source_id] = source

    def start_at(self, node_id: str) -> None:
        if node_id not in self._nodes:
            raise ValueError(f"Start node {node_id} does not exist.")
        self.start_node_id = node_id

    def build(self) -> FlowChart:
        return FlowChart(
            name=self.name,
            description=self.description,
            category_id=self.category_id,
            start_node_id=self.start_node_id,
            nodes=tuple(self._nodes[node_id] for node_id in self._order),
        )
