"""Required variable and duplicate record rules.

Checks that analysis datasets carry their key variables and that key
combinations identify one record each.
"""

from __future__ import annotations

import pandas as pd

from trialderive.models.config import StudyConfig
from trialderive.validation.rules.base import (
    RuleCategory,
    RuleResult,
    RuleSeverity,
    ValidationRule,
)

REQUIRED_VARIABLES: dict[str, list[str]] = {
    "ADSL": ["STUDYID", "USUBJID", "TRT01P", "TRT01A", "SAFFL", "ITTFL"],
    "ADLB": ["STUDYID", "USUBJID", "PARAMCD", "AVAL"],
    "ADVS": ["STUDYID", "USUBJID", "PARAMCD"],
    "ADEG": ["STUDYID", "USUBJID", "PARAMCD"],
    "ADAE": ["STUDYID", "USUBJID", "PARAMCD", "ASTDT", "TRTEMFL"],
    "ADCM": ["STUDYID", "USUBJID", "PARAMCD", "ASTDT"],
}

_BDS_DEFAULT = ["STUDYID", "USUBJID", "PARAMCD", "AVAL", "ABLFL"]


def _key_variables(dataset: str, df: pd.DataFrame) -> list[str]:
    if dataset == "ADSL":
        return ["STUDYID", "USUBJID"]
    seq = f"{dataset[2:]}SEQ"
    if seq in df.columns:
        return ["STUDYID", "USUBJID", "PARAMCD", seq]
    return []


class RequiredVariableRule(ValidationRule):
    """Check that all required variables exist as columns."""

    rule_id: str = "TD-P001"
    description: str = "Required analysis variables must be present in the dataset"
    category: RuleCategory = RuleCategory.PRESENCE
    severity: RuleSeverity = RuleSeverity.ERROR

    def evaluate(self, dataset: str, df: pd.DataFrame, config: StudyConfig) -> list[RuleResult]:
        """Check for missing required variables."""
        required = REQUIRED_VARIABLES.get(dataset, _BDS_DEFAULT)
        cols = {str(c).upper() for c in df.columns}
        return [
            self._result(
                dataset,
                f"Required variable {var} is missing from {dataset}",
                variable=var,
                affected_count=len(df),
                fix_suggestion=f"Add {var} column to the {dataset} dataset",
            )
            for var in required
            if var not in cols
        ]


class DuplicateKeyRule(ValidationRule):
    """Check that key variables identify one record each.

    ADSL is keyed on STUDYID/USUBJID; BDS datasets on
    STUDYID/USUBJID/PARAMCD/--SEQ when the sequence number is present.
    """

    rule_id: str = "TD-P002"
    description: str = "Key variables must uniquely identify each record"
    category: RuleCategory = RuleCategory.PRESENCE
    severity: RuleSeverity = RuleSeverity.ERROR

    def evaluate(self, dataset: str, df: pd.DataFrame, config: StudyConfig) -> list[RuleResult]:
        """Count records sharing a key with another record."""
        keys = _key_variables(dataset, df)
        if not keys or any(k not in df.columns for k in keys) or df.empty:
            return []

        dup_count = int(df.duplicated(subset=keys, keep=False).sum())
        if dup_count == 0:
            return []
        return [
            self._result(
                dataset,
                f"{dataset} has {dup_count} duplicate records on {', '.join(keys)}",
                affected_count=dup_count,
                fix_suggestion="Remove duplicate source records or extend the key",
            )
        ]


def get_presence_rules() -> list[ValidationRule]:
    """Return all presence rules."""
    return [RequiredVariableRule(), DuplicateKeyRule()]
