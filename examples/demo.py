import sys
import os

# Ensure aidflow is in path
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from aidflow.frontend import FlowBuilder
from aidflow.engine import FlowRunner, ACTIVE
from aidflow.core import validate
from aidflow.backend import ReportExporter
from aidflow.core.errors import FlowchartError


def build_burns_flow():
    builder = FlowBuilder("Burns", description="Thermal burn to the skin.", category_id="burns")

    cool = builder.step(
        "Cool the burn",
        "Hold the burn under cool running water for 20 minutes.",
        expert_instruction="Cool within 3 hours of the injury; avoid ice.",
    )
    size = builder.decision("Is the burn larger than the victim's hand?", "Compare with their palm.")
    builder.connect(cool, size)

    builder.connect(size, builder.end(
        "Call 112",
        "Keep cooling and call emergency services.",
        end_kind="emergency",
        end_message="Emergency escalated",
    ), "Yes")

    cover = builder.step("Cover the burn", "Use cling film or a clean plastic bag.")
    builder.connect(size, cover, "No")
    builder.connect(cover, builder.end("Done", "See a doctor if pain persists."))

    return builder.build()


def main():
    print("Building flowchart...")
    chart = build_burns_flow()
    print(f"Flowchart built with {len(chart.nodes)} nodes and {len(list(chart.edges()))} edges.")

    for issue in validate(chart):
        print(f"  {issue.severity}: {issue.message}")

    expert = "--expert" in sys.argv
    print("\nRunning flowchart...")
    runner = FlowRunner(chart, expert_mode=expert)
    runner.start()

    while runner.status == ACTIVE:
        node = runner.current_node
        print(f"\n{node.title}")
        print(f"  {runner.instruction_for(node)}")

        options = runner.get_options()
        try:
            if len(options) == 1:
                print(f"  -> {options[0].label}")
                runner.advance_linear()
                continue

            print("  Choices:")
            for i, opt in enumerate(options):
                print(f"    [{i}] {opt.label}")
            print("    [b] Back")
            answer = input("  Enter choice: ").strip()
            if answer == "b":
                runner.back()
            else:
                runner.advance(int(answer))
        except (ValueError, FlowchartError) as e:
            print(f"  {e}")
            if not options:
                runner.abort()

    print(f"\n{runner.current_node.title}")
    print()
    print(ReportExporter.to_text(runner.report()))


if __name__ == "__main__":
    main()
