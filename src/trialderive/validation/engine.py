"""Validation engine orchestrator.

Registers and runs conformance rules against analysis datasets. A rule that
raises is reported as a WARNING finding instead of aborting the run.
"""

from __future__ import annotations

import pandas as pd
from loguru import logger

from trialderive.models.config import StudyConfig
from trialderive.validation.rules.base import (
    RuleCategory,
    RuleResult,
    RuleSeverity,
    ValidationRule,
)
from trialderive.validation.rules.derivation import get_derivation_rules
from trialderive.validation.rules.presence import get_presence_rules


class ValidationEngine:
    """Orchestrates validation rule execution across analysis datasets."""

    def __init__(self, config: StudyConfig, *, register_defaults: bool = True) -> None:
        """Initialize the validation engine.

        Args:
            config: Study configuration handed to every rule.
            register_defaults: Register the built-in presence and derivation rules.
        """
        self._config = config
        self._rules: list[ValidationRule] = []
        if register_defaults:
            self.register_defaults()

    @property
    def rules(self) -> list[ValidationRule]:
        """Return the list of registered validation rules."""
        return list(self._rules)

    def register(self, rule: ValidationRule) -> None:
        """Register a validation rule with the engine."""
        self._rules.append(rule)
        logger.debug("Registered validation rule: {}", rule.rule_id)

    def register_defaults(self) -> None:
        """Register all built-in rules."""
        for rule in [*get_presence_rules(), *get_derivation_rules()]:
            self.register(rule)

    def validate_dataset(self, dataset: str, df: pd.DataFrame) -> list[RuleResult]:
        """Run all registered rules against one dataset.

        Args:
            dataset: Dataset name (e.g., 'ADLB').
            df: The analysis DataFrame.

        Returns:
            List of all RuleResult findings from all rules.
        """
        dataset = dataset.upper()
        results: list[RuleResult] = []
        for rule in self._rules:
            try:
                results.extend(rule.evaluate(dataset=dataset, df=df, config=self._config))
            except Exception as exc:
                logger.error("Rule {} failed on dataset {}: {}", rule.rule_id, dataset, exc)
                results.append(
                    RuleResult(
                        rule_id=rule.rule_id,
                        rule_description=rule.description,
                        category=rule.category,
                        severity=RuleSeverity.WARNING,
                        dataset=dataset,
                        message=f"Rule execution failed: {exc}",
                    )
                )
        return results

    def validate_all(self, datasets: dict[str, pd.DataFrame]) -> list[RuleResult]:
        """Run all registered rules across multiple datasets."""
        all_results: list[RuleResult] = []
        for name, df in datasets.items():
            logger.info(
                "Validating {} ({} rows, {} rules)",
                name,
                len(df),
                len(self._rules),
            )
            all_results.extend(self.validate_dataset(name, df))
        return all_results

    @staticmethod
    def filter_results(
        results: list[RuleResult],
        *,
        category: RuleCategory | None = None,
        severity: RuleSeverity | None = None,
        dataset: str | None = None,
    ) -> list[RuleResult]:
        """Filter validation results by category, severity, and/or dataset."""
        filtered = results
        if category is not None:
            filtered = [r for r in filtered if r.category == category]
        if severity is not None:
            filtered = [r for r in filtered if r.severity == severity]
        if dataset is not None:
            filtered = [r for r in filtered if r.dataset == dataset]
        return filtered
