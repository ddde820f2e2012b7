"""Tests for ADY (study day) calculation."""

from __future__ import annotations

from datetime import date, timedelta

import pandas as pd
import pytest

from trialderive.derivation.study_day import calculate_study_day, calculate_study_day_column, day
from trialderive.models.errors import MalformedDateError

ANCHOR = date(2024, 1, 10)


class TestCalculateStudyDay:
    """Test the scalar calculate_study_day function."""

    def test_day_1_is_anchor(self) -> None:
        """Observation on the anchor date is Day 1."""
        assert calculate_study_day(ANCHOR, ANCHOR) == 1

    def test_day_after_anchor(self) -> None:
        """The day after the anchor is Day 2."""
        assert calculate_study_day(ANCHOR + timedelta(days=1), ANCHOR) == 2

    def test_day_before_anchor_no_day_zero(self) -> None:
        """The day before the anchor is Day -1 (no Day 0)."""
        assert calculate_study_day(ANCHOR - timedelta(days=1), ANCHOR) == -1

    def test_one_week_later(self) -> None:
        assert calculate_study_day(date(2024, 1, 17), ANCHOR) == 8

    def test_across_year_boundary(self) -> None:
        assert calculate_study_day(date(2023, 12, 31), date(2024, 1, 1)) == -1
        assert calculate_study_day(date(2024, 1, 1), date(2023, 12, 31)) == 2

    def test_absent_observation_date(self) -> None:
        assert calculate_study_day(None, ANCHOR) is None

    def test_absent_anchor(self) -> None:
        assert calculate_study_day(ANCHOR, None) is None

    def test_both_absent(self) -> None:
        assert calculate_study_day(None, None) is None

    def test_never_zero_over_a_window(self) -> None:
        """No offset around the anchor produces Day 0."""
        days = [calculate_study_day(ANCHOR + timedelta(days=n), ANCHOR) for n in range(-400, 400)]
        assert 0 not in days

    def test_day_alias(self) -> None:
        assert day is calculate_study_day


class TestCalculateStudyDayColumn:
    """Test the vectorized column calculation."""

    def test_basic_column(self) -> None:
        df = pd.DataFrame(
            {
                "USUBJID": ["S1", "S1", "S2"],
                "ADT": ["2024-01-08", "2024-01-10", "2024-03-05"],
            }
        )
        lookup = {"S1": ANCHOR, "S2": date(2024, 3, 1)}
        result = calculate_study_day_column(df, "ADT", lookup)
        assert result.tolist() == [-2, 1, 5]
        assert str(result.dtype) == "Int64"

    def test_unknown_subject_is_na(self) -> None:
        df = pd.DataFrame({"USUBJID": ["S9"], "ADT": ["2024-01-10"]})
        result = calculate_study_day_column(df, "ADT", {"S1": ANCHOR})
        assert pd.isna(result.iloc[0])

    def test_missing_date_is_na(self) -> None:
        df = pd.DataFrame({"USUBJID": ["S1", "S1"], "ADT": [None, ""]})
        result = calculate_study_day_column(df, "ADT", {"S1": ANCHOR})
        assert result.isna().all()

    def test_custom_subject_column(self) -> None:
        df = pd.DataFrame({"SUBJ": ["S1"], "ADT": [date(2024, 1, 11)]})
        result = calculate_study_day_column(df, "ADT", {"S1": ANCHOR}, subject_col="SUBJ")
        assert result.tolist() == [2]

    def test_missing_column_raises(self) -> None:
        df = pd.DataFrame({"USUBJID": ["S1"]})
        with pytest.raises(KeyError, match="Missing required columns"):
            calculate_study_day_column(df, "ADT", {"S1": ANCHOR})

    def test_malformed_date_raises(self) -> None:
        df = pd.DataFrame({"USUBJID": ["S1"], "ADT": ["10/01/2024"]})
        with pytest.raises(MalformedDateError):
            calculate_study_day_column(df, "ADT", {"S1": ANCHOR})

    def test_empty_frame(self) -> None:
        df = pd.DataFrame({"USUBJID": [], "ADT": []})
        result = calculate_study_day_column(df, "ADT", {})
        assert len(result) == 0
