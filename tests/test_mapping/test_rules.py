"""Tests for declarative mapping rules and the domain rule tables."""

from __future__ import annotations

import pandas as pd
import pytest
from pydantic import ValidationError

from trialderive.mapping.domains import (
    OBSERVATION_FIELDS,
    findings_rules,
    get_domain_rules,
)
from trialderive.mapping.rules import MappingRule, apply_mapping_rules
from trialderive.models.errors import ErrorKind, StructuralInputError


class TestMappingRule:
    """Rule model validation."""

    def test_defaults(self) -> None:
        rule = MappingRule(source="A", target="B")
        assert rule.transform == "direct"
        assert rule.required is False

    def test_unknown_transform_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown transform"):
            MappingRule(source="A", target="B", transform="titlecase")


class TestApplyMappingRules:
    """One generic function consumes any rule table."""

    def test_targets_in_rule_order(self) -> None:
        df = pd.DataFrame({"X": [" 1 "], "Y": ["a"]})
        rules = [
            MappingRule(source="Y", target="second", transform="upper"),
            MappingRule(source="X", target="first", transform="to_numeric"),
        ]
        out = apply_mapping_rules(df, rules)
        assert list(out.columns) == ["second", "first"]
        assert out.iloc[0].tolist() == ["A", 1.0]

    def test_missing_required_column(self) -> None:
        rules = [MappingRule(source="USUBJID", target="subject_id", required=True)]
        with pytest.raises(StructuralInputError) as exc_info:
            apply_mapping_rules(pd.DataFrame({"X": [1]}), rules)
        assert exc_info.value.kind == ErrorKind.MISSING_REQUIRED_COLUMN
        assert "USUBJID" in str(exc_info.value)

    def test_missing_optional_column_is_null(self) -> None:
        rules = [MappingRule(source="LBCAT", target="PARCAT1")]
        out = apply_mapping_rules(pd.DataFrame({"X": [1, 2]}), rules)
        assert out["PARCAT1"].tolist() == [None, None]

    def test_index_preserved(self) -> None:
        df = pd.DataFrame({"A": ["x", "y"]}, index=[10, 20])
        out = apply_mapping_rules(df, [MappingRule(source="A", target="a")])
        assert list(out.index) == [10, 20]

    def test_recode_uses_codelist(self) -> None:
        rule = MappingRule(source="NR", target="ANRIND", transform="recode", codelist={"H": "HIGH"})
        out = apply_mapping_rules(pd.DataFrame({"NR": ["H", "N"]}), [rule])
        assert out["ANRIND"].tolist() == ["HIGH", "N"]


class TestDomainRules:
    """Every Findings domain maps onto the same Observation fields."""

    @pytest.mark.parametrize("domain", ["VS", "LB", "EG"])
    def test_core_fields_present(self, domain: str) -> None:
        targets = [r.target for r in get_domain_rules(domain)]
        for field in OBSERVATION_FIELDS:
            assert field in targets

    def test_lab_extras(self) -> None:
        targets = {r.target for r in get_domain_rules("lb")}
        assert {"PARCAT1", "ANRLO", "ANRHI", "ANRIND"} <= targets

    def test_unregistered_domain_uses_generic_rules(self) -> None:
        rules = get_domain_rules("QS")
        assert [r.source for r in rules] == [r.source for r in findings_rules("QS")]
        assert rules[1].source == "QSTESTCD"
