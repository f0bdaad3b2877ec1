"""
aidflow frontend modules for building flowcharts.

- FlowBuilder: Imperative API for manual graph construction
"""

from .builder import FlowBuilder

__all__ = [
    "FlowBuilder",
]
