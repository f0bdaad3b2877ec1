import sys
import os
from datetime import datetime, timedelta, timezone

import pytest
sys.path.append(os.path.dirname(__file__))

from sample_flow import create_unconscious_victim_flow
from aidflow.core.ir import FlowChart, DecisionNode, EndNode, Choice


@pytest.fixture
def sample_flowchart():
    return create_unconscious_victim_flow()


@pytest.fixture
def yes_no_chart():
    """A(decision: yes->B, no->C), B(end), C(end)."""
    return FlowChart(
        name="Yes/No",
        start_node_id="A",
        nodes=[
            DecisionNode(id="A", title="A", instruction="Pick one", choices=[Choice("yes", "B"), Choice("no", "C")]),
            EndNode(id="B", title="B", instruction="Done via yes"),
            EndNode(id="C", title="C", instruction="Done via no"),
        ],
    )


@pytest.fixture
def fixed_clock():
    """A clock that ticks one second per call, starting at a fixed instant."""
    def make():
        state = {"now": datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)}

        def clock():
            current = state["now"]
            state["now"] = current + timedelta(seconds=1)
            return current
        return clock
    return make
