"""Base models for ADaM conformance rules.

Defines the core abstractions: RuleSeverity, RuleCategory, RuleResult,
and ValidationRule. All concrete rules subclass ValidationRule and
implement the evaluate() method.
"""

from __future__ import annotations

from abc import abstractmethod
from enum import StrEnum

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from trialderive.models.config import StudyConfig


class RuleSeverity(StrEnum):
    """Severity classification for validation findings.

    ERROR: Dataset is not fit for analysis until fixed.
    WARNING: Should be reviewed and explained if left unfixed.
    NOTICE: Informational data-quality observation.
    """

    ERROR = "ERROR"
    WARNING = "WARNING"
    NOTICE = "NOTICE"

    @property
    def display_name(self) -> str:
        """Human-friendly display name."""
        return self.value.capitalize()


class RuleCategory(StrEnum):
    """Validation rule category.

    PRESENCE: Required variables and unique records.
    DERIVATION: Consistency of derived study day, baseline, and change values.
    COMPLETENESS: Missing derivations beyond configured tolerances.
    """

    PRESENCE = "PRESENCE"
    DERIVATION = "DERIVATION"
    COMPLETENESS = "COMPLETENESS"


class RuleResult(BaseModel):
    """Structured result from evaluating a single validation rule.

    Each RuleResult represents one finding -- a specific issue found
    when a rule is evaluated against a dataset.
    """

    rule_id: str = Field(..., description="Unique rule identifier (e.g., 'TD-D001')")
    rule_description: str = Field(..., description="Human-readable rule description")
    category: RuleCategory = Field(..., description="Rule category")
    severity: RuleSeverity = Field(..., description="Finding severity")
    dataset: str | None = Field(default=None, description="Dataset name (e.g., 'ADLB')")
    variable: str | None = Field(default=None, description="Variable name if variable-specific")
    message: str = Field(..., description="Detailed finding message")
    affected_count: int = Field(default=0, description="Number of affected records/rows")
    fix_suggestion: str | None = Field(default=None, description="Suggested remediation action")


class ValidationRule(BaseModel):
    """Abstract base class for all ADaM conformance rules.

    Uses model_config to allow arbitrary types (pd.DataFrame) in evaluate().
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    rule_id: str = Field(..., description="Unique rule identifier")
    description: str = Field(..., description="Human-readable rule description")
    category: RuleCategory = Field(..., description="Rule category")
    severity: RuleSeverity = Field(..., description="Default severity for findings")

    @abstractmethod
    def evaluate(
        self,
        dataset: str,
        df: pd.DataFrame,
        config: StudyConfig,
    ) -> list[RuleResult]:
        """Evaluate this rule against an analysis dataset.

        Args:
            dataset: Dataset name (e.g., 'ADLB', 'ADSL').
            df: The analysis DataFrame.
            config: Study configuration (thresholds, anchor variable).

        Returns:
            List of RuleResult findings. Empty list means rule passed.
        """
        ...

    def _result(
        self,
        dataset: str,
        message: str,
        *,
        variable: str | None = None,
        affected_count: int = 0,
        fix_suggestion: str | None = None,
        severity: RuleSeverity | None = None,
    ) -> RuleResult:
        return RuleResult(
            rule_id=self.rule_id,
            rule_description=self.description,
            category=self.category,
            severity=severity or self.severity,
            dataset=dataset,
            variable=variable,
            message=message,
            affected_count=affected_count,
            fix_suggestion=fix_suggestion,
        )
