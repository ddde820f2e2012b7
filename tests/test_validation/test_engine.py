"""Tests for the validation engine and report."""

from __future__ import annotations

import pandas as pd

from trialderive.models.config import StudyConfig
from trialderive.validation.engine import ValidationEngine
from trialderive.validation.report import ValidationReport
from trialderive.validation.rules.base import (
    RuleCategory,
    RuleResult,
    RuleSeverity,
    ValidationRule,
)

CONFIG = StudyConfig(study_id="STUDY1")


class _ExplodingRule(ValidationRule):
    rule_id: str = "TEST-X"
    description: str = "Always raises"
    category: RuleCategory = RuleCategory.DERIVATION
    severity: RuleSeverity = RuleSeverity.ERROR

    def evaluate(self, dataset: str, df: pd.DataFrame, config: StudyConfig) -> list[RuleResult]:
        raise RuntimeError("boom")


def _adlb(ady: list[int]) -> pd.DataFrame:
    n = len(ady)
    return pd.DataFrame(
        {
            "STUDYID": ["STUDY1"] * n,
            "USUBJID": ["S1"] * n,
            "PARAMCD": ["HGB"] * n,
            "AVAL": [13.0] * n,
            "ABLFL": ["Y"] + ["N"] * (n - 1),
            "ADY": ady,
        }
    )


class TestValidationEngine:
    """Registration and execution."""

    def test_defaults_registered(self) -> None:
        ids = {r.rule_id for r in ValidationEngine(CONFIG).rules}
        assert {"TD-P001", "TD-P002", "TD-D001", "TD-D002", "TD-D003", "TD-D004", "TD-C001"} <= ids

    def test_no_defaults(self) -> None:
        assert ValidationEngine(CONFIG, register_defaults=False).rules == []

    def test_clean_dataset(self) -> None:
        assert ValidationEngine(CONFIG).validate_dataset("adlb", _adlb([-1, 8])) == []

    def test_findings_carry_dataset(self) -> None:
        results = ValidationEngine(CONFIG).validate_dataset("ADLB", _adlb([-1, 0]))
        assert [r.rule_id for r in results] == ["TD-D001"]
        assert results[0].dataset == "ADLB"

    def test_crashing_rule_becomes_warning(self) -> None:
        engine = ValidationEngine(CONFIG, register_defaults=False)
        engine.register(_ExplodingRule())
        results = engine.validate_dataset("ADLB", _adlb([1]))
        assert len(results) == 1
        assert results[0].severity == RuleSeverity.WARNING
        assert "boom" in results[0].message

    def test_validate_all_and_filter(self) -> None:
        engine = ValidationEngine(CONFIG)
        results = engine.validate_all({"ADLB": _adlb([0]), "ADVS": _adlb([2])})
        assert {r.dataset for r in results} == {"ADLB"}
        errors = ValidationEngine.filter_results(results, severity=RuleSeverity.ERROR)
        assert len(errors) == 1
        assert ValidationEngine.filter_results(results, dataset="ADVS") == []
        assert ValidationEngine.filter_results(results, category=RuleCategory.PRESENCE) == []


class TestValidationReport:
    """Aggregated counts and pass flag."""

    def test_passed_with_only_warnings(self) -> None:
        warning = RuleResult(
            rule_id="TD-C001",
            rule_description="d",
            category=RuleCategory.COMPLETENESS,
            severity=RuleSeverity.WARNING,
            dataset="ADLB",
            message="m",
        )
        report = ValidationReport.from_results("STUDY1", [warning], ["ADLB", "ADVS"])
        assert report.passed
        assert report.warning_count == 1
        assert report.summary_by_dataset["ADVS"] == {"errors": 0, "warnings": 0, "notices": 0}
        assert report.summary_by_category == {
            "COMPLETENESS": {"errors": 0, "warnings": 1, "notices": 0}
        }

    def test_failed_on_error(self) -> None:
        results = ValidationEngine(CONFIG).validate_dataset("ADLB", _adlb([0]))
        report = ValidationReport.from_results("STUDY1", results, ["ADLB"])
        assert not report.passed
        assert report.error_count == 1

    def test_markdown(self) -> None:
        results = ValidationEngine(CONFIG).validate_dataset("ADLB", _adlb([0]))
        md = ValidationReport.from_results("STUDY1", results, ["ADLB"]).to_markdown()
        assert md.startswith("# Validation Report: STUDY1")
        assert "FAILED" in md
        assert "TD-D001" in md
