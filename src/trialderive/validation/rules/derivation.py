"""Derived-variable consistency rules for analysis datasets.

Re-checks the longitudinal derivations on a finished dataset (possibly
read back from disk): no Day 0, one baseline per subject and parameter,
baseline on or before the anchor, CHG = AVAL - BASE, no PCHG against a
zero baseline, and missing baselines within tolerance.
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


_DAY_VARIABLES: tuple[str, ...] = ("ADY", "ASTDY", "AENDY")


def _has(df: pd.DataFrame, *cols: str) -> bool:
    return all(c in df.columns for c in cols)


class NoDayZeroRule(ValidationRule):
    """Relative days (ADY, ASTDY, AENDY) must never be 0 (Day 1 is the anchor date)."""

    rule_id: str = "TD-D001"
    description: str = "Analysis relative day must not be zero"
    category: RuleCategory = RuleCategory.DERIVATION
    severity: RuleSeverity = RuleSeverity.ERROR

    def evaluate(self, dataset: str, df: pd.DataFrame, config: StudyConfig) -> list[RuleResult]:
        results: list[RuleResult] = []
        for var in _DAY_VARIABLES:
            if not _has(df, var):
                continue
            n_zero = int((pd.to_numeric(df[var], errors="coerce") == 0).sum())
            if n_zero:
                results.append(
                    self._result(
                        dataset,
                        f"{n_zero} record(s) have {var} = 0",
                        variable=var,
                        affected_count=n_zero,
                        fix_suggestion=f"Recompute {var} with the no-Day-0 convention",
                    )
                )
        return results


class BaselineUniquenessRule(ValidationRule):
    """At most one ABLFL = 'Y' record per USUBJID and PARAMCD."""

    rule_id: str = "TD-D002"
    description: str = "At most one baseline record per subject and parameter"
    category: RuleCategory = RuleCategory.DERIVATION
    severity: RuleSeverity = RuleSeverity.ERROR

    def evaluate(self, dataset: str, df: pd.DataFrame, config: StudyConfig) -> list[RuleResult]:
        if not _has(df, "USUBJID", "PARAMCD", "ABLFL"):
            return []
        flagged = df.loc[df["ABLFL"] == "Y"]
        counts = flagged.groupby(["USUBJID", "PARAMCD"]).size()
        multi = counts[counts > 1]
        if multi.empty:
            return []
        return [
            self._result(
                dataset,
                f"{len(multi)} subject/parameter group(s) have more than one baseline record",
                variable="ABLFL",
                affected_count=int(multi.sum()),
                fix_suggestion="Select a single baseline per group (last on or before anchor)",
            )
        ]


class BaselineEligibilityRule(ValidationRule):
    """The baseline record's ADT must be on or before the subject anchor."""

    rule_id: str = "TD-D003"
    description: str = "Baseline record must be dated on or before the reference anchor"
    category: RuleCategory = RuleCategory.DERIVATION
    severity: RuleSeverity = RuleSeverity.ERROR

    def evaluate(self, dataset: str, df: pd.DataFrame, config: StudyConfig) -> list[RuleResult]:
        anchor = config.anchor_variable
        if not _has(df, "ABLFL", "ADT", anchor):
            return []
        base = df.loc[df["ABLFL"] == "Y"]
        adt = pd.to_datetime(base["ADT"], errors="coerce")
        ref = pd.to_datetime(base[anchor], errors="coerce")
        late = int((adt > ref).sum())
        missing_anchor = int(ref.isna().sum())
        results: list[RuleResult] = []
        if late:
            results.append(
                self._result(
                    dataset,
                    f"{late} baseline record(s) are dated after {anchor}",
                    variable="ABLFL",
                    affected_count=late,
                )
            )
        if missing_anchor:
            results.append(
                self._result(
                    dataset,
                    f"{missing_anchor} baseline record(s) belong to subjects without {anchor}",
                    variable=anchor,
                    affected_count=missing_anchor,
                )
            )
        return results


class ChangeConsistencyRule(ValidationRule):
    """CHG must equal AVAL - BASE, and PCHG must be absent when BASE is 0."""

    rule_id: str = "TD-D004"
    description: str = "Change from baseline must be consistent with AVAL and BASE"
    category: RuleCategory = RuleCategory.DERIVATION
    severity: RuleSeverity = RuleSeverity.ERROR

    def evaluate(self, dataset: str, df: pd.DataFrame, config: StudyConfig) -> list[RuleResult]:
        if not _has(df, "AVAL", "BASE", "CHG"):
            return []
        aval = pd.to_numeric(df["AVAL"], errors="coerce")
        base = pd.to_numeric(df["BASE"], errors="coerce")
        chg = pd.to_numeric(df["CHG"], errors="coerce")

        results: list[RuleResult] = []
        present = chg.notna()
        mismatch = int((present & (aval.isna() | base.isna() | (chg != aval - base))).sum())
        if mismatch:
            results.append(
                self._result(
                    dataset,
                    f"{mismatch} record(s) have CHG inconsistent with AVAL - BASE",
                    variable="CHG",
                    affected_count=mismatch,
                )
            )

        if "PCHG" in df.columns:
            pchg = pd.to_numeric(df["PCHG"], errors="coerce")
            div_zero = int((pchg.notna() & (base == 0)).sum())
            if div_zero:
                results.append(
                    self._result(
                        dataset,
                        f"{div_zero} record(s) have PCHG with a zero baseline",
                        variable="PCHG",
                        affected_count=div_zero,
                        fix_suggestion="Leave PCHG missing when BASE is 0",
                    )
                )
        return results


class MissingBaselineRule(ValidationRule):
    """Warn when more subject/parameter groups lack a baseline than allowed."""

    rule_id: str = "TD-C001"
    description: str = "Subject/parameter groups without a baseline exceed tolerance"
    category: RuleCategory = RuleCategory.COMPLETENESS
    severity: RuleSeverity = RuleSeverity.WARNING

    def evaluate(self, dataset: str, df: pd.DataFrame, config: StudyConfig) -> list[RuleResult]:
        if not _has(df, "USUBJID", "PARAMCD", "ABLFL") or df.empty:
            return []
        has_base = (df["ABLFL"] == "Y").groupby([df["USUBJID"], df["PARAMCD"]]).any()
        n_missing = int((~has_base).sum())
        limit = config.validation.max_missing_baseline
        if n_missing <= limit:
            return []
        return [
            self._result(
                dataset,
                f"{n_missing} subject/parameter group(s) have no baseline "
                f"(tolerance {limit})",
                variable="BASE",
                affected_count=n_missing,
            )
        ]


def get_derivation_rules() -> list[ValidationRule]:
    """Return all derivation consistency and completeness rules."""
    return [
        NoDayZeroRule(),
        BaselineUniquenessRule(),
        BaselineEligibilityRule(),
        ChangeConsistencyRule(),
        MissingBaselineRule(),
    ]
