"""ADaM conformance validation for derived analysis datasets."""

from trialderive.validation.engine import ValidationEngine
from trialderive.validation.report import ValidationReport
from trialderive.validation.rules.base import (
    RuleCategory,
    RuleResult,
    RuleSeverity,
    ValidationRule,
)

__all__ = [
    "RuleCategory",
    "RuleResult",
    "RuleSeverity",
    "ValidationEngine",
    "ValidationReport",
    "ValidationRule",
]
