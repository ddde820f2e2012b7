"""Tests for ReferenceDateResolver."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from trialderive.derivation.reference_date import ReferenceDateResolver
from trialderive.models.errors import DuplicateReferenceAnchorError, ErrorKind, MalformedDateError
from trialderive.models.observation import ReferenceDate


def _refs(*pairs: tuple[str, date | None]) -> list[ReferenceDate]:
    return [ReferenceDate(subject_id=s, anchor_date=d) for s, d in pairs]


class TestResolve:
    """Pure key lookup with no fallback."""

    def test_known_subject(self) -> None:
        resolver = ReferenceDateResolver(_refs(("S1", date(2024, 1, 10))))
        assert resolver.resolve("S1") == date(2024, 1, 10)

    def test_unknown_subject_is_none(self) -> None:
        resolver = ReferenceDateResolver(_refs(("S1", date(2024, 1, 10))))
        assert resolver.resolve("S9") is None

    def test_empty_anchor_is_none(self) -> None:
        resolver = ReferenceDateResolver(_refs(("S3", None)))
        assert resolver.resolve("S3") is None
        assert "S3" in resolver

    def test_len_and_subjects(self) -> None:
        resolver = ReferenceDateResolver(_refs(("S2", None), ("S1", date(2024, 1, 1))))
        assert len(resolver) == 2
        assert resolver.subjects == ["S1", "S2"]
        assert resolver.as_dict() == {"S1": date(2024, 1, 1), "S2": None}


class TestDuplicateAnchors:
    """Duplicate subject keys are never silently collapsed."""

    def test_strict_raises(self) -> None:
        refs = _refs(("S1", date(2024, 1, 1)), ("S1", date(2024, 1, 2)), ("S2", None))
        with pytest.raises(DuplicateReferenceAnchorError) as exc_info:
            ReferenceDateResolver(refs)
        assert exc_info.value.kind == ErrorKind.DUPLICATE_REFERENCE_ANCHOR
        assert exc_info.value.subject_ids == ["S1"]

    def test_non_strict_rejects_subject(self) -> None:
        refs = _refs(("S1", date(2024, 1, 1)), ("S1", date(2024, 1, 2)), ("S2", date(2024, 2, 1)))
        resolver = ReferenceDateResolver(refs, strict=False)
        assert resolver.rejected_subjects == ["S1"]
        assert resolver.resolve("S1") is None
        assert resolver.resolve("S2") == date(2024, 2, 1)
        assert "S1" not in resolver


class TestFromFrame:
    """Building a resolver from a subject-level DataFrame."""

    def test_string_dates(self) -> None:
        adsl = pd.DataFrame({"USUBJID": ["S1", "S2"], "TRTSDT": ["2024-01-10", None]})
        resolver = ReferenceDateResolver.from_frame(adsl)
        assert resolver.resolve("S1") == date(2024, 1, 10)
        assert resolver.resolve("S2") is None

    def test_custom_columns(self) -> None:
        adsl = pd.DataFrame({"SUBJ": ["S1"], "RANDDT": [date(2024, 5, 1)]})
        resolver = ReferenceDateResolver.from_frame(adsl, anchor_col="RANDDT", subject_col="SUBJ")
        assert resolver.resolve("S1") == date(2024, 5, 1)

    def test_missing_column_raises(self) -> None:
        with pytest.raises(KeyError, match="TRTSDT"):
            ReferenceDateResolver.from_frame(pd.DataFrame({"USUBJID": ["S1"]}))

    def test_duplicate_rows_raise(self) -> None:
        adsl = pd.DataFrame({"USUBJID": ["S1", "S1"], "TRTSDT": ["2024-01-10", "2024-01-11"]})
        with pytest.raises(DuplicateReferenceAnchorError):
            ReferenceDateResolver.from_frame(adsl)

    def test_malformed_anchor_rejects_subject_only(self) -> None:
        adsl = pd.DataFrame(
            {"USUBJID": ["S1", "S2", "S3"], "TRTSDT": ["2024-01-10", "10JAN2024", None]}
        )
        resolver = ReferenceDateResolver.from_frame(adsl)
        assert resolver.resolve("S1") == date(2024, 1, 10)
        assert resolver.resolve("S2") is None
        assert "S2" not in resolver
        assert "S3" in resolver
        assert resolver.rejected_subjects == ["S2"]
        assert [e.kind for e in resolver.errors] == [ErrorKind.MALFORMED_DATE]

    def test_missing_subject_rows_skipped(self) -> None:
        adsl = pd.DataFrame({"USUBJID": ["S1", None], "TRTSDT": ["2024-01-10", "2024-01-11"]})
        resolver = ReferenceDateResolver.from_frame(adsl)
        assert resolver.subjects == ["S1"]


class TestResolverErrors:
    """Rejections are reported as structural errors."""

    def test_non_strict_duplicates_reported(self) -> None:
        refs = _refs(("S1", date(2024, 1, 1)), ("S1", date(2024, 1, 2)))
        resolver = ReferenceDateResolver(refs, strict=False)
        assert [e.kind for e in resolver.errors] == [ErrorKind.DUPLICATE_REFERENCE_ANCHOR]

    def test_malformed_combined_with_duplicates(self) -> None:
        refs = _refs(("S1", date(2024, 1, 1)), ("S1", date(2024, 1, 2)), ("S3", None))
        resolver = ReferenceDateResolver(
            refs, strict=False, malformed=[MalformedDateError("2024/01/01", "S2")]
        )
        assert resolver.rejected_subjects == ["S1", "S2"]
        assert resolver.subjects == ["S3"]

    def test_clean_table_has_no_errors(self) -> None:
        resolver = ReferenceDateResolver(_refs(("S1", date(2024, 1, 1))))
        assert resolver.errors == []
        assert resolver.rejected_subjects == []
