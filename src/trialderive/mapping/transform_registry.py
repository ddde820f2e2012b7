"""Registry of deterministic column transforms for mapping rules.

Each transform takes a pandas Series (and, for ``recode``, a static
codelist) and returns a new Series. Mapping rules reference transforms by
name so that rule tables stay declarative data. Text and date transforms
always return object Series holding None for absent values, whatever the
input dtype.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

import pandas as pd

from trialderive.derivation.dates import coerce_date

ColumnTransform = Callable[..., pd.Series]


def _map_object(series: pd.Series, fn: Callable[[object], object]) -> pd.Series:
    values = [fn(v) for v in series.astype(object)]
    return pd.Series(values, index=series.index, dtype=object)


def _none(value: object) -> object:
    return None if value is None or pd.isna(value) else value


def direct(series: pd.Series) -> pd.Series:
    """Carry values unchanged."""
    return series.copy()


def _clean_text(value: object) -> str | None:
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def strip(series: pd.Series) -> pd.Series:
    """Strip surrounding whitespace; blank and missing values become None."""
    return _map_object(series, _clean_text)


def _upper_text(value: object) -> str | None:
    text = _clean_text(value)
    return text.upper() if text is not None else None


def upper(series: pd.Series) -> pd.Series:
    """Strip and uppercase string values."""
    return _map_object(series, _upper_text)


def to_numeric(series: pd.Series) -> pd.Series:
    """Parse numeric values; non-numeric text becomes NaN."""
    return pd.to_numeric(series.astype(object), errors="coerce").astype(float)


def to_date(series: pd.Series) -> pd.Series:
    """Convert to ``datetime.date`` objects (None for absent/partial).

    Raises:
        MalformedDateError: For non-empty values that are not ISO 8601 dates.
    """
    return _map_object(series, coerce_date)


def iso_date(series: pd.Series) -> pd.Series:
    """Convert to ISO 8601 ``YYYY-MM-DD`` strings (None for absent/partial)."""
    return _map_object(to_date(series), lambda d: d.isoformat() if d is not None else None)


def recode(series: pd.Series, codelist: Mapping[str, str] | None = None) -> pd.Series:
    """Substitute values through a static controlled-terminology map.

    Values without an entry are kept as-is (extensible codelist semantics).
    """
    if not codelist:
        return series.copy()
    return _map_object(series, lambda v: codelist.get(v, v) if isinstance(v, str) else _none(v))


AVAILABLE_TRANSFORMS: dict[str, ColumnTransform] = {
    "direct": direct,
    "strip": strip,
    "upper": upper,
    "to_numeric": to_numeric,
    "to_date": to_date,
    "iso_date": iso_date,
    "recode": recode,
}


def get_transform(name: str) -> ColumnTransform | None:
    """Look up a transform function by name.

    Args:
        name: Transform function name (e.g., "to_numeric").

    Returns:
        The callable transform function, or None if not found.
    """
    return AVAILABLE_TRANSFORMS.get(name)


def list_transforms() -> list[str]:
    """Return names of all registered transforms.

    Returns:
        Sorted list of transform function names.
    """
    return sorted(AVAILABLE_TRANSFORMS.keys())
