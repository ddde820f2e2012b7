"""Date normalisation for the derivation engine.

Collapses the date representations that reach the core (``date``,
``datetime``, pandas ``Timestamp``, ISO 8601 strings, NaT/NaN/blank) into
``datetime.date | None``. Partial ISO dates (``YYYY``, ``YYYY-MM``) cannot be
placed on a calendar day and are treated as absent. Anything else non-empty is
a structural problem and raises MalformedDateError.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime

import pandas as pd

from trialderive.models.errors import MalformedDateError

_PATTERN_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:T[\d:.]*)?$")
_PATTERN_ISO_PARTIAL = re.compile(r"^\d{4}(?:-\d{2})?$")


def _is_nan(value: object) -> bool:
    """Check if a value is NaN (works for float and numpy types)."""
    if value is None:
        return True
    try:
        return math.isnan(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False


def coerce_date(value: object, subject_id: str | None = None) -> date | None:
    """Convert a supported date representation to ``datetime.date``.

    Args:
        value: A date, datetime, pandas Timestamp, ISO 8601 string, or an
            absent marker (None, NaN, NaT, blank string).
        subject_id: Subject the value belongs to, used in error reporting.

    Returns:
        The calendar date, or None for absent and partial dates.

    Raises:
        MalformedDateError: If the value is present but not a recognisable date.

    Examples:
        >>> coerce_date("2024-01-10")
        datetime.date(2024, 1, 10)
        >>> coerce_date("2024-01-10T08:30") == date(2024, 1, 10)
        True
        >>> coerce_date("2024-01") is None
        True
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if _PATTERN_ISO_PARTIAL.match(text):
            return None
        match = _PATTERN_ISO_DATE.match(text)
        if match is None:
            raise MalformedDateError(value, subject_id)
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError as exc:
            raise MalformedDateError(value, subject_id) from exc
    if _is_nan(value):
        return None
    raise MalformedDateError(value, subject_id)
