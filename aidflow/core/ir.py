"""Graph model for first-aid procedure flowcharts.

A flowchart is an ordered collection of nodes. Each node kind is its own
class, so kind-specific fields (decision choices, end classification,
catalog reference) only exist on the variant that owns them. All values are
frozen; editing produces new values (see ``aidflow.editor``).
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, Dict, Iterator, List, Optional, Tuple

# Node kinds
STEP = "step"
DECISION = "decision"
END = "end"
REFERENCE = "reference"
NODE_KINDS = (STEP, DECISION, END, REFERENCE)

# End classifications
END_SUCCESS = "success"
END_CONTINUE = "continue"
END_EMERGENCY = "emergency"
END_KINDS = (END_SUCCESS, END_CONTINUE, END_EMERGENCY)

# Label used for the single forced continuation of step/reference nodes
CONTINUE_LABEL = "Continue"


def new_id(prefix: str = "node") -> str:
    """Return a fresh collision-resistant identifier."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Position:
    x: float = 0
    y: float = 0

    def offset(self, dx: float, dy: float) -> "Position":
        return Position(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class Choice:
    """A labeled outgoing edge. An empty target means 'not wired yet'."""
    label: str
    target_node_id: str = ""
    condition: Optional[str] = None


@dataclass(frozen=True)
class Node:
    """Base class for all nodes in a procedure graph."""
    id: str
    title: str = ""
    instruction: str = ""
    expert_instruction: Optional[str] = None
    image: Optional[str] = None
    position: Optional[Position] = None

    kind: ClassVar[str] = ""

    def outgoing(self) -> Tuple[Choice, ...]:
        """Outgoing edges in display order, resolved or not."""
        return ()

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id} title='{self.title}'>"


@dataclass(frozen=True, repr=False)
class StepNode(Node):
    """A single instruction. May continue to one next node."""
    next_node_id: Optional[str] = None

    kind: ClassVar[str] = STEP

    def outgoing(self) -> Tuple[Choice, ...]:
        if self.next_node_id:
            return (Choice(CONTINUE_LABEL, self.next_node_id),)
        return ()


@dataclass(frozen=True, repr=False)
class DecisionNode(Node):
    """A branching point offering ordered, labeled choices."""
    choices: Tuple[Choice, ...] = ()

    kind: ClassVar[str] = DECISION

    def __post_init__(self):
        object.__setattr__(self, "choices", tuple(self.choices))

    def outgoing(self) -> Tuple[Choice, ...]:
        return self.choices


@dataclass(frozen=True, repr=False)
class EndNode(Node):
    """A terminal node. Never has outgoing edges."""
    end_kind: str = END_SUCCESS
    end_message: Optional[str] = None

    kind: ClassVar[str] = END

    def __post_init__(self):
        if self.end_kind not in END_KINDS:
            raise ValueError(f"Unknown end kind: {self.end_kind}")


@dataclass(frozen=True, repr=False)
class ReferenceNode(Node):
    """A step whose content comes from the reusable-step catalog."""
    reference_id: Optional[str] = None
    next_node_id: Optional[str] = None

    kind: ClassVar[str] = REFERENCE

    def outgoing(self) -> Tuple[Choice, ...]:
        if self.next_node_id:
            return (Choice(CONTINUE_LABEL, self.next_node_id),)
        return ()


NODE_CLASSES = {
    STEP: StepNode,
    DECISION: DecisionNode,
    END: EndNode,
    REFERENCE: ReferenceNode,
}


@dataclass(frozen=True)
class FlowChart:
    """A named, versioned procedure graph."""
    id: str = field(default_factory=lambda: new_id("flowchart"))
    name: str = "FlowChart"
    description: str = ""
    category_id: str = ""
    start_node_id: str = ""
    nodes: Tuple[Node, ...] = ()
    version: int = 1
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    _index: Dict[str, Node] = field(init=False, repr=False, compare=False, default=None)

    def __post_init__(self):
        nodes = tuple(self.nodes)
        index: Dict[str, Node] = {}
        for node in nodes:
            # First occurrence wins when ids collide; validate() reports the rest.
            index.setdefault(node.id, node)
        object.__setattr__(self, "nodes", nodes)
        object.__setattr__(self, "_index", index)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._index.get(node_id)

    def resolve(self, node_id: Optional[str]) -> Optional[Node]:
        """Return the referenced node, or None for empty and dangling ids."""
        if not node_id:
            return None
        return self._index.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._index

    @property
    def start_node(self) -> Optional[Node]:
        return self.resolve(self.start_node_id)

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def outgoing(self, node: Node) -> List[Tuple[int, Choice]]:
        return list(enumerate(node.outgoing()))

    def edges(self) -> Iterator[Tuple[Node, int, Choice, Node]]:
        """Yield (source, choice index, choice, target) for every resolved edge."""
        for node in self.nodes:
            for index, choice in enumerate(node.outgoing()):
                target = self.resolve(choice.target_node_id)
                if target is not None:
                    yield node, index, choice, target


@dataclass(frozen=True)
class ReusableStep:
    """An entry in the reusable-step catalog."""
    id: str
    name: str
    title: str
    instruction: str
    expert_instruction: Optional[str] = None
    image: Optional[str] = None
    step_type: str = "common"
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ReportEntry:
    """One step of a traversal trail."""
    node_id: str
    title: str
    instruction: str
    timestamp: datetime
    chosen_label: Optional[str] = None


@dataclass(frozen=True)
class Report:
    """A finished (or interrupted) traversal, packaged for export."""
    flowchart_id: str
    flowchart_name: str
    steps: Tuple[ReportEntry, ...]
    generated_at: datetime
    expert_mode: bool = False
    end_reason: Optional[str] = None
