"""Editing operations that return new flowchart values."""

from .mutator import (
    create_flowchart, save, add_node, add_reusable_step, update_node, delete_node,
    duplicate_node, duplicate_graph, set_start_node, add_choice, update_choice, remove_choice,
)

__all__ = [
    "create_flowchart",
    "save",
    "add_node",
    "add_reusable_step",
    "update_node",
    "delete_node",
    "duplicate_node",
    "duplicate_graph",
    "set_start_node",
    "add_choice",
    "update_choice",
    "remove_choice",
]
