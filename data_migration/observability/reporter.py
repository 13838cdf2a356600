"""
Generate human-readable run reports in Markdown format.

This module provides RunReporter, which transforms RunMetrics into a
formatted Markdown report for human consumption.

Report sections:
- Header with run metadata (ID, direction, partition, duration)
- Summary table with core metrics
- One row per executed migration
- Errors, if any

Design decisions:
- Markdown output for readability and version control friendliness
- Uses tabulate library for clean table formatting (GitHub-flavored)
- Reports saved with timestamp for historical tracking
"""
from datetime import datetime
from pathlib import Path

from tabulate import tabulate

from .metrics import RunMetrics


class RunReporter:
    """Generates Markdown reports from data migration run metrics."""

    def generate_report(self, metrics: RunMetrics) -> str:
        """
        Generate full run report in Markdown format.

        Args:
            metrics: RunMetrics of a (possibly failed) run

        Returns:
            Markdown-formatted report as string
        """
        lines = []

        # Header
        lines.append("# Data Migration Run Report")
        lines.append(f"**Run ID:** {metrics.run_id}")
        lines.append(f"**Direction:** {metrics.direction}")
        lines.append(f"**Partition:** {metrics.partition_current}/{metrics.partition_total}")
        lines.append(f"**Started:** {metrics.started_at.isoformat()}")
        if metrics.completed_at:
            duration = (metrics.completed_at - metrics.started_at).total_seconds()
            lines.append(f"**Duration:** {duration:.1f} seconds")
        lines.append("")

        # Summary table
        lines.append("## Summary")
        summary_data = [
            ["Migrations", len(metrics.migrations)],
            ["Documents Processed", metrics.documents_processed],
            ["Errors", metrics.errors],
        ]
        lines.append(tabulate(summary_data, headers=["Metric", "Value"], tablefmt="github"))
        lines.append("")

        # Migrations
        if metrics.migrations:
            lines.append("## Migrations")
            migration_data = []
            for result in metrics.migrations.values():
                duration = result.duration_seconds
                migration_data.append([
                    result.migration,
                    result.status,
                    result.documents_total,
                    result.documents_selected,
                    result.documents_processed,
                    f"{duration:.2f}s" if duration is not None else "-",
                ])
            lines.append(tabulate(
                migration_data,
                headers=["Migration", "Status", "Rows", "Selected", "Processed", "Duration"],
                tablefmt="github"
            ))
            lines.append("")

        # Errors
        if metrics.error_log:
            lines.append("## Errors")
            error_data = [
                [entry["context"].get("migration", "-"), entry["message"]]
                for entry in metrics.error_log
            ]
            lines.append(tabulate(error_data, headers=["Migration", "Error"], tablefmt="github"))
            lines.append("")

        return "\n".join(lines)

    def save_report(self, report: str, output_dir: Path) -> Path:
        """
        Save report to file with timestamp.

        Args:
            report: Markdown report content
            output_dir: Directory to save report in

        Returns:
            Path to saved report file
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S")
        filepath = output_dir / f"run-report-{timestamp}.md"
        filepath.write_text(report)
        return filepath
