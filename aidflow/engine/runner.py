"""Step-by-step traversal of a procedure flowchart.

A session is an immutable ``TraversalState``. The module-level functions
(``start``, ``advance``, ``advance_linear``, ``back``, ``abort``) are pure
transitions: they take a state and return a new one, or raise a
``FlowchartError`` and leave the caller's state untouched. ``FlowRunner``
wraps one session for callers that prefer an object.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from aidflow.core.errors import (
    DanglingTarget, EmptyTrail, InactiveSession, InvalidChoice, InvalidStart, NotADecision,
)
from aidflow.core.ir import (
    FlowChart, Node, Choice, DecisionNode, EndNode, StepNode, ReferenceNode,
    Report, ReportEntry, END_EMERGENCY, utcnow,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Session status
IDLE = "idle"
ACTIVE = "active"
ENDED = "ended"

# End reasons
COMPLETED = "completed"
EMERGENCY_ESCALATED = "emergency-escalated"
ABORTED = "aborted"


@dataclass(frozen=True)
class TraversalState:
    status: str = IDLE
    current_node_id: Optional[str] = None
    trail: Tuple[ReportEntry, ...] = ()
    end_reason: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    @property
    def is_ended(self) -> bool:
        return self.status == ENDED


def instruction_for(node: Node, expert_mode: bool = False) -> str:
    """Instruction text to show, preferring the expert variant in expert mode."""
    if expert_mode and node.expert_instruction:
        return node.expert_instruction
    return node.instruction


def _entry(node: Node, clock: Clock, expert_mode: bool, label: Optional[str] = None) -> ReportEntry:
    return ReportEntry(
        node_id=node.id,
        title=node.title,
        instruction=instruction_for(node, expert_mode),
        timestamp=clock(),
        chosen_label=label,
    )


def _arrive(node: Node, trail: Tuple[ReportEntry, ...]) -> TraversalState:
    if isinstance(node, EndNode):
        reason = EMERGENCY_ESCALATED if node.end_kind == END_EMERGENCY else COMPLETED
        return TraversalState(ENDED, node.id, trail, reason)
    return TraversalState(ACTIVE, node.id, trail)


def start(
    flowchart: FlowChart,
    clock: Clock = utcnow,
    expert_mode: bool = False,
) -> TraversalState:
    """Begin a session at the flowchart's start node."""
    if not flowchart.start_node_id:
        raise InvalidStart(f"Flowchart '{flowchart.name}' has no start node.")
    node = flowchart.start_node
    if node is None:
        raise InvalidStart(
            f"Start node '{flowchart.start_node_id}' does not exist.",
            flowchart.start_node_id,
        )
    logger.debug("Starting '%s' at %s", flowchart.name, node.id)
    return _arrive(node, (_entry(node, clock, expert_mode),))


def _current(state: TraversalState, flowchart: FlowChart) -> Node:
    if not state.is_active:
        raise InactiveSession(f"Session is {state.status}, not active.", state.current_node_id)
    node = flowchart.resolve(state.current_node_id)
    if node is None:
        raise DanglingTarget(
            f"Current node '{state.current_node_id}' no longer exists.",
            state.current_node_id,
        )
    return node


def _follow(
    state: TraversalState,
    flowchart: FlowChart,
    node: Node,
    choice: Choice,
    clock: Clock,
    expert_mode: bool,
) -> TraversalState:
    target = flowchart.resolve(choice.target_node_id)
    if target is None:
        logger.warning(
            "Refusing to follow '%s' from %s: target '%s' is unresolved",
            choice.label, node.id, choice.target_node_id,
        )
        raise DanglingTarget(
            f"Choice '{choice.label}' of '{node.title}' points at "
            f"unresolved node '{choice.target_node_id}'.",
            node.id,
        )
    trail = state.trail + (_entry(target, clock, expert_mode, choice.label),)
    new_state = _arrive(target, trail)
    logger.debug("%s --%s--> %s (%s)", node.id, choice.label, target.id, new_state.status)
    return new_state


def advance(
    state: TraversalState,
    flowchart: FlowChart,
    choice_index: int,
    clock: Clock = utcnow,
    expert_mode: bool = False,
) -> TraversalState:
    """Take choice ``choice_index`` of the current decision node."""
    node = _current(state, flowchart)
    if not isinstance(node, DecisionNode):
        raise NotADecision(f"'{node.title}' is a {node.kind} node, not a decision.", node.id)
    if choice_index < 0 or choice_index >= len(node.choices):
        raise InvalidChoice(
            f"Choice {choice_index} is out of range for '{node.title}' "
            f"({len(node.choices)} choices).",
            node.id,
        )
    return _follow(state, flowchart, node, node.choices[choice_index], clock, expert_mode)


def advance_linear(
    state: TraversalState,
    flowchart: FlowChart,
    clock: Clock = utcnow,
    expert_mode: bool = False,
) -> TraversalState:
    """Follow the single forced continuation of the current node.

    Applies to decisions with exactly one choice and to step/reference
    nodes with a ``next_node_id``.
    """
    node = _current(state, flowchart)
    if isinstance(node, DecisionNode):
        if len(node.choices) != 1:
            raise InvalidChoice(
                f"'{node.title}' has {len(node.choices)} choices; pick one explicitly.",
                node.id,
            )
        return _follow(state, flowchart, node, node.choices[0], clock, expert_mode)
    if isinstance(node, (StepNode, ReferenceNode)) and node.next_node_id:
        return _follow(state, flowchart, node, node.outgoing()[0], clock, expert_mode)
    raise NotADecision(f"'{node.title}' has no continuation.", node.id)


def back(state: TraversalState) -> TraversalState:
    """Undo the last step. The initial step can never be popped."""
    if state.status == IDLE or len(state.trail) <= 1:
        raise EmptyTrail("Nothing to go back to.", state.current_node_id)
    trail = state.trail[:-1]
    logger.debug("Back from %s to %s", state.current_node_id, trail[-1].node_id)
    return TraversalState(ACTIVE, trail[-1].node_id, trail)


def abort(state: TraversalState) -> TraversalState:
    """End the session immediately, keeping the trail for the report."""
    logger.debug("Aborting session at %s", state.current_node_id)
    return replace(state, status=ENDED, end_reason=ABORTED)


class FlowRunner:
    """
    Drives one traversal session over a flowchart.

    Each method applies the matching transition function and only stores the
    new state once it succeeded, so a failed call leaves the session as it was.
    """

    def __init__(
        self,
        flowchart: FlowChart,
        expert_mode: bool = False,
        clock: Optional[Clock] = None,
    ):
        self.flowchart = flowchart
        self.expert_mode = expert_mode
        self.clock: Clock = clock or utcnow
        self.state = TraversalState()

    @property
    def current_node(self) -> Optional[Node]:
        return self.flowchart.resolve(self.state.current_node_id)

    @property
    def trail(self) -> Tuple[ReportEntry, ...]:
        return self.state.trail

    @property
    def history(self) -> List[str]:
        return [entry.node_id for entry in self.state.trail]

    @property
    def status(self) -> str:
        return self.state.status

    @property
    def end_reason(self) -> Optional[str]:
        return self.state.end_reason

    def start(self) -> None:
        self.state = start(self.flowchart, self.clock, self.expert_mode)

    def advance(self, choice_index: int) -> None:
        self.state = advance(self.state, self.flowchart, choice_index, self.clock, self.expert_mode)

    def advance_linear(self) -> None:
        self.state = advance_linear(self.state, self.flowchart, self.clock, self.expert_mode)

    def back(self) -> None:
        self.state = back(self.state)

    def abort(self) -> None:
        self.state = abort(self.state)

    def get_options(self) -> List[Choice]:
        """Outgoing choices of the current node, in display order."""
        node = self.current_node
        if node is None or not self.state.is_active:
            return []
        return list(node.outgoing())

    def instruction_for(self, node: Node) -> str:
        return instruction_for(node, self.expert_mode)

    def report(self) -> Report:
        return Report(
            flowchart_id=self.flowchart.id,
            flowchart_name=self.flowchart.name,
            steps=self.state.trail,
            generated_at=self.clock(),
            expert_mode=self.expert_mode,
            end_reason=self.state.end_reason,
        )
