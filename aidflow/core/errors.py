"""Errors raised by the traversal engine and the editor."""

from typing import Optional


class FlowchartError(Exception):
    """Base class for all aidflow errors."""

    def __init__(self, message: str, node_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.node_id = node_id

    def __str__(self):
        return self.message


class InvalidStart(FlowchartError):
    """Traversal cannot begin: the start node is unset or unresolved."""


class NotADecision(FlowchartError):
    """A choice operation targeted a node that is not a decision."""


class InvalidChoice(FlowchartError, IndexError):
    """A choice index is out of bounds."""


class DanglingTarget(FlowchartError):
    """A reference points at a node that does not exist."""


class EmptyTrail(FlowchartError):
    """Nothing left to undo past the initial step."""


class InactiveSession(FlowchartError, RuntimeError):
    """The traversal session is not started or already finished."""


class NodeNotFound(FlowchartError, KeyError):
    """An operation addressed a node id that is not in the graph."""


class InvalidUpdate(FlowchartError, ValueError):
    """A field update does not fit the node's kind."""
