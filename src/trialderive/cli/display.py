"""Rich display helpers for the batch and validation reports."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.text import Text

from trialderive.pipeline.report import BatchReport
from trialderive.validation.report import ValidationReport
from trialderive.validation.rules.base import RuleResult, RuleSeverity

_SEVERITY_ORDER = {RuleSeverity.ERROR: 0, RuleSeverity.WARNING: 1, RuleSeverity.NOTICE: 2}
_SEVERITY_STYLE = {
    RuleSeverity.ERROR: "bold red",
    RuleSeverity.WARNING: "yellow",
    RuleSeverity.NOTICE: "dim",
}


def display_batch_report(report: BatchReport, console: Console) -> None:
    """Print one row per pipeline unit, with failures and rejected subjects."""
    table = Table(title=f"Derivation Batch: {report.study_id}", show_lines=True)
    table.add_column("Dataset", style="bold cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Rows", justify="right", style="green")
    table.add_column("Seconds", justify="right", style="dim")
    table.add_column("Rejected", justify="right")
    table.add_column("Detail", max_width=60)

    for r in report.results:
        status = Text("OK", style="bold green") if r.ok else Text("FAILED", style="bold red")
        detail = r.error_message or ", ".join(r.rejected_subjects)
        table.add_row(
            r.unit,
            status,
            str(r.row_count),
            f"{r.elapsed_seconds:.2f}",
            str(len(r.rejected_subjects)),
            detail or "-",
        )

    console.print(table)
    summary_style = "bold red" if report.failure_count else "bold green"
    console.print(
        f"[{summary_style}]{report.success_count} succeeded, "
        f"{report.failure_count} failed[/{summary_style}]"
    )


def display_validation_summary(report: ValidationReport, console: Console) -> None:
    """Print severity counts and the overall status."""
    table = Table(title="Validation Summary", show_lines=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Datasets Validated", str(len(report.datasets_validated)))
    table.add_row(
        "Errors",
        Text(str(report.error_count), style="bold red" if report.error_count else "green"),
    )
    table.add_row(
        "Warnings",
        Text(str(report.warning_count), style="yellow" if report.warning_count else "green"),
    )
    table.add_row("Notices", str(report.notice_count))
    table.add_row(
        "Status",
        Text("PASSED", style="bold green") if report.passed else Text("FAILED", style="bold red"),
    )
    console.print(table)


def display_validation_issues(
    results: list[RuleResult],
    *,
    console: Console,
    limit: int = 20,
) -> None:
    """Print findings, errors first then by affected count."""
    if not results:
        console.print("[dim]No validation issues found.[/dim]")
        return

    ranked = sorted(results, key=lambda r: (_SEVERITY_ORDER[r.severity], -r.affected_count))
    shown = ranked[:limit]

    table = Table(title=f"Issues ({len(shown)} of {len(results)} shown)", show_lines=True)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Rule", style="bold", no_wrap=True)
    table.add_column("Dataset", no_wrap=True)
    table.add_column("Variable", no_wrap=True)
    table.add_column("Count", justify="right")
    table.add_column("Message", max_width=60)

    for r in shown:
        table.add_row(
            Text(r.severity.display_name, style=_SEVERITY_STYLE[r.severity]),
            r.rule_id,
            r.dataset or "-",
            r.variable or "-",
            str(r.affected_count),
            r.message,
        )
    console.print(table)
