"""Validation report model.

Aggregates validation results into a structured report with severity
counts and per-dataset and per-category breakdowns, plus Markdown export.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from trialderive.validation.rules.base import RuleCategory, RuleResult, RuleSeverity


def _counts(results: list[RuleResult]) -> dict[str, int]:
    return {
        "errors": sum(1 for r in results if r.severity == RuleSeverity.ERROR),
        "warnings": sum(1 for r in results if r.severity == RuleSeverity.WARNING),
        "notices": sum(1 for r in results if r.severity == RuleSeverity.NOTICE),
    }


class ValidationReport(BaseModel):
    """Aggregated validation report for a set of analysis datasets.

    The passed flag is True when no ERROR finding was raised.
    """

    study_id: str = Field(..., description="Study identifier")
    datasets_validated: list[str] = Field(
        default_factory=list, description="Names of the datasets validated"
    )
    results: list[RuleResult] = Field(default_factory=list, description="All validation findings")
    error_count: int = Field(default=0, description="Number of ERROR findings")
    warning_count: int = Field(default=0, description="Number of WARNING findings")
    notice_count: int = Field(default=0, description="Number of NOTICE findings")
    passed: bool = Field(default=True, description="True if there are no ERROR findings")
    generated_at: str = Field(default="", description="ISO 8601 timestamp of report generation")
    summary_by_dataset: dict[str, dict[str, int]] = Field(
        default_factory=dict,
        description="Dataset -> {errors, warnings, notices} counts",
    )
    summary_by_category: dict[str, dict[str, int]] = Field(
        default_factory=dict,
        description="Category -> {errors, warnings, notices} counts",
    )

    @classmethod
    def from_results(
        cls,
        study_id: str,
        results: list[RuleResult],
        datasets: list[str],
    ) -> ValidationReport:
        """Create a ValidationReport by computing summaries from raw results.

        Args:
            study_id: Study identifier.
            results: All RuleResult findings from validation.
            datasets: Names of the datasets that were validated.

        Returns:
            A fully populated ValidationReport.
        """
        totals = _counts(results)

        summary_by_dataset = {
            name: _counts([r for r in results if r.dataset == name]) for name in datasets
        }

        summary_by_category: dict[str, dict[str, int]] = {}
        for cat in RuleCategory:
            cat_results = [r for r in results if r.category == cat]
            if cat_results:
                summary_by_category[cat.value] = _counts(cat_results)

        return cls(
            study_id=study_id,
            datasets_validated=list(datasets),
            results=results,
            error_count=totals["errors"],
            warning_count=totals["warnings"],
            notice_count=totals["notices"],
            passed=totals["errors"] == 0,
            generated_at=datetime.now(tz=UTC).isoformat(),
            summary_by_dataset=summary_by_dataset,
            summary_by_category=summary_by_category,
        )

    def to_markdown(self) -> str:
        """Render the validation report as a Markdown document."""
        lines: list[str] = [
            f"# Validation Report: {self.study_id}",
            "",
            f"**Generated:** {self.generated_at}",
            "",
            "## Summary",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Datasets Validated | {len(self.datasets_validated)} |",
            f"| Errors | {self.error_count} |",
            f"| Warnings | {self.warning_count} |",
            f"| Notices | {self.notice_count} |",
            f"| Status | {'PASSED' if self.passed else 'FAILED'} |",
            "",
        ]

        if self.summary_by_dataset:
            lines += [
                "## Per-Dataset Breakdown",
                "",
                "| Dataset | Errors | Warnings | Notices |",
                "|---------|--------|----------|---------|",
            ]
            for name in sorted(self.summary_by_dataset):
                c = self.summary_by_dataset[name]
                lines.append(f"| {name} | {c['errors']} | {c['warnings']} | {c['notices']} |")
            lines.append("")

        if self.results:
            lines += [
                "## Findings",
                "",
                "| Rule | Severity | Dataset | Variable | Count | Message |",
                "|------|----------|---------|----------|-------|---------|",
            ]
            for r in self.results:
                lines.append(
                    f"| {r.rule_id} | {r.severity.value} | {r.dataset or ''} | "
                    f"{r.variable or ''} | {r.affected_count} | {r.message} |"
                )
            lines.append("")

        return "\n".join(lines)
