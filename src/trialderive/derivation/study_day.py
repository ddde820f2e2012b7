"""ADaM ADY / SDTM --DY (study day) calculation.

Implements the CDISC "no Day 0" convention:
- Day 1 = anchor date (e.g., TRTSDT)
- Day -1 = day before the anchor date
- No Day 0 exists

All functions are deterministic and never substitute a default for an
absent date.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date

import pandas as pd

from trialderive.derivation.dates import coerce_date


def calculate_study_day(observation_date: date | None, anchor_date: date | None) -> int | None:
    """Calculate the study day of an observation relative to an anchor date.

    - If observation_date >= anchor_date: (observation_date - anchor_date).days + 1
    - If observation_date < anchor_date: (observation_date - anchor_date).days

    Args:
        observation_date: Calendar date of the observation, or None.
        anchor_date: Subject reference anchor date, or None.

    Returns:
        Study day as integer, or None if either date is absent.

    Examples:
        >>> calculate_study_day(date(2024, 1, 10), date(2024, 1, 10))
        1
        >>> calculate_study_day(date(2024, 1, 17), date(2024, 1, 10))
        8
        >>> calculate_study_day(date(2024, 1, 9), date(2024, 1, 10))
        -1
        >>> calculate_study_day(None, date(2024, 1, 10)) is None
        True
    """
    if observation_date is None or anchor_date is None:
        return None

    delta_days = (observation_date - anchor_date).days

    if delta_days >= 0:
        return delta_days + 1  # Day 1 = anchor date, Day 2 = next day, etc.
    return delta_days  # Day -1 = day before anchor date


day = calculate_study_day


def calculate_study_day_column(
    df: pd.DataFrame,
    date_col: str,
    anchor_lookup: Mapping[str, date | None],
    subject_col: str = "USUBJID",
) -> pd.Series:
    """Calculate study day for an entire DataFrame column.

    Looks up each subject's anchor from a mapping and computes the study day
    for each row.

    Args:
        df: Source DataFrame containing date and subject columns.
        date_col: Column name containing observation dates (date objects,
            timestamps, or ISO 8601 strings).
        anchor_lookup: Mapping of subject id -> anchor date.
        subject_col: Column name for the subject identifier. Default "USUBJID".

    Returns:
        pandas Series with Int64 dtype (nullable integer). NA for rows where
        study day cannot be calculated (missing dates, unknown subject, etc.).

    Raises:
        KeyError: If required columns are missing from the DataFrame.
        MalformedDateError: If a date value cannot be parsed.
    """
    missing = [c for c in [date_col, subject_col] if c not in df.columns]
    if missing:
        raise KeyError(f"Missing required columns: {missing}")

    def _compute_row(row: pd.Series) -> int | None:
        subject = str(row[subject_col])
        anchor = anchor_lookup.get(subject)
        if anchor is None:
            return None
        return calculate_study_day(coerce_date(row[date_col], subject), anchor)

    if df.empty:
        return pd.Series([], dtype="Int64", index=df.index)

    result = df.apply(_compute_row, axis=1)
    return result.astype("Int64")
