"""Plain-text and JSON rendering of traversal reports."""

from aidflow.core.ir import Report
from aidflow.core.serialization import JsonSerializer


class ReportExporter:
    """Exports a traversal Report for hand-off or printing."""

    @staticmethod
    def to_text(report: Report) -> str:
        lines = [
            f"Report: {report.flowchart_name}",
            f"Generated: {report.generated_at:%Y-%m-%d %H:%M}",
            f"Expert mode: {'yes' if report.expert_mode else 'no'}",
        ]
        if report.end_reason:
            lines.append(f"Outcome: {report.end_reason}")
        lines += ["", "Steps taken:"]

        for number, entry in enumerate(report.steps, start=1):
            lines.append(f"{number}. {entry.timestamp:%H:%M:%S}")
            lines.append(f"   {entry.title}")
            for text_line in entry.instruction.splitlines() or [""]:
                lines.append(f"   {text_line}")
            if entry.chosen_label:
                lines.append(f"   Chosen: {entry.chosen_label}")
            lines.append("")

        return "\n".join(lines).rstrip("\n") + "\n"

    @staticmethod
    def to_json(report: Report) -> str:
        return JsonSerializer.report_to_json(report)

    @staticmethod
    def save(report: Report, filename: str):
        """Saves the text report to a file."""
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(ReportExporter.to_text(report))
