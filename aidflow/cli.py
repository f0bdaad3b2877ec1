"""
Command-line interface for aidflow.

Usage:
    aidflow ./cpr.json -o ./build/
    aidflow ./cpr.json -o ./build/ --format mermaid
    aidflow ./cpr.json -o ./build/ --format layout --node-width 240
    aidflow ./cpr.json --validate
    aidflow ./library.json -n "Unconscious Victim" -f mermaid
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from aidflow.core.ir import FlowChart
from aidflow.core.serialization import JsonSerializer
from aidflow.core.validation import has_errors, validate
from aidflow.layout.engine import LayoutConfig, layout
from aidflow.backend.mermaid import MermaidExporter
from aidflow.backend.graphviz import GraphvizExporter
from aidflow.backend.svg import SvgExporter

logger = logging.getLogger(__name__)

FORMATS = ["svg", "mermaid", "graphviz", "dot", "json", "layout"]


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
    package_logger = logging.getLogger("aidflow")
    package_logger.setLevel(level)
    for h in list(package_logger.handlers):
        package_logger.removeHandler(h)
    package_logger.addHandler(handler)


def load_flowcharts(filepath: Path) -> List[FlowChart]:
    """Load every flowchart stored in a JSON file."""
    return JsonSerializer.load_many(filepath.read_text(encoding="utf-8"))


def layout_to_json(chart: FlowChart, config: LayoutConfig) -> str:
    """The layout as plain data for renderers outside Python."""
    diagram = layout(chart, config)
    data = {
        "flowchartId": chart.id,
        "canvasSize": asdict(diagram.canvas_size),
        "placedNodes": [
            {
                "id": p.node_id,
                "kind": p.kind,
                "title": p.node.title,
                "depth": p.depth,
                "x": p.x,
                "y": p.y,
                "width": p.width,
                "height": p.height,
                "color": p.style.color,
                "icon": p.style.icon,
                "isStart": p.is_start,
            }
            for p in diagram.placed_nodes
        ],
        "routedEdges": [
            {
                "source": e.source_id,
                "target": e.target_id,
                "choiceIndex": e.choice_index,
                "label": e.label,
                "path": e.path,
                "labelPosition": asdict(e.label_position),
            }
            for e in diagram.routed_edges
        ],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def export_flowchart(
    chart: FlowChart,
    output_path: Path,
    format: str,
    config: Optional[LayoutConfig] = None,
) -> Path:
    """Export a flowchart to the specified format."""
    config = config or LayoutConfig()

    if format == "svg":
        content = SvgExporter.to_svg(chart, config)
        ext = ".svg"
    elif format == "mermaid":
        content = MermaidExporter.to_mermaid(chart)
        ext = ".mmd"
    elif format == "graphviz" or format == "dot":
        content = GraphvizExporter.to_dot(chart)
        ext = ".dot"
    elif format == "json":
        content = JsonSerializer.to_json(chart)
        ext = ".json"
    elif format == "layout":
        content = layout_to_json(chart, config)
        ext = ".layout.json"
    else:
        raise ValueError(f"Unknown format: {format}. Use: {', '.join(FORMATS)}")

    # Sanitize the chart name for use as filename
    safe_name = chart.name.lower().replace(" ", "_").replace("/", "_")
    safe_name = "".join(c for c in safe_name if c.isalnum() or c == "_") or chart.id

    output_file = output_path / f"{safe_name}{ext}"
    output_file.write_text(content, encoding="utf-8")
    logger.debug("Wrote %s", output_file)

    return output_file


def main(argv: List[str] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="aidflow",
        description="Validate, lay out and export first-aid procedure flowcharts.",
        epilog="Example: aidflow ./cpr.json -o ./build/ -f svg"
    )

    parser.add_argument(
        "input",
        type=Path,
        help="JSON file holding one flowchart or a list of flowcharts"
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("."),
        help="Output directory (default: current directory)"
    )

    parser.add_argument(
        "-f", "--format",
        choices=FORMATS,
        default="svg",
        help="Output format (default: svg)"
    )

    parser.add_argument(
        "-n", "--name",
        help="Only process the flowchart with this id or name"
    )

    parser.add_argument(
        "-l", "--list",
        action="store_true",
        help="List flowcharts in file without exporting"
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Report structural issues; exit 1 if any error is found"
    )

    parser.add_argument("--node-width", type=float, help="Layout node width")
    parser.add_argument("--node-height", type=float, help="Layout node height")
    parser.add_argument("--node-spacing", type=float, help="Horizontal gap between nodes")

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if not args.input.exists():
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1

    if not args.input.is_file():
        print(f"Error: Not a file: {args.input}", file=sys.stderr)
        return 1

    try:
        flowcharts = load_flowcharts(args.input)
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        print(f"Error loading file: {e}", file=sys.stderr)
        return 1

    if not flowcharts:
        print(f"No flowcharts found in {args.input}", file=sys.stderr)
        return 1

    if args.name:
        flowcharts = [c for c in flowcharts if args.name in (c.id, c.name)]
        if not flowcharts:
            print(f"Error: No flowchart named '{args.name}' in {args.input}", file=sys.stderr)
            return 1

    if args.list:
        print(f"Flowcharts in {args.input}:")
        for chart in flowcharts:
            print(f"  {chart.id}: \"{chart.name}\" v{chart.version} ({len(chart.nodes)} nodes)")
        return 0

    if args.validate:
        failed = False
        for chart in flowcharts:
            issues = validate(chart)
            print(f"{chart.name}: {len(issues)} issue(s)")
            for issue in issues:
                where = f" [{issue.node_id}]" if issue.node_id else ""
                print(f"  {issue.severity}: {issue.code}{where}: {issue.message}")
            failed = failed or has_errors(issues)
        return 1 if failed else 0

    overrides = {
        name: value
        for name, value in (
            ("node_width", args.node_width),
            ("node_height", args.node_height),
            ("node_spacing", args.node_spacing),
        )
        if value is not None
    }
    config = LayoutConfig(**overrides)

    args.output.mkdir(parents=True, exist_ok=True)

    for chart in flowcharts:
        try:
            output_file = export_flowchart(chart, args.output, args.format, config)
        except (OSError, ValueError) as e:
            print(f"Error exporting {chart.name}: {e}", file=sys.stderr)
            return 1
        if args.verbose:
            print(f"Exported '{chart.name}' -> {output_file}")
        else:
            print(f"{output_file}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
