"""Export analysis datasets to CSV and SAS Transport v5."""

from __future__ import annotations

import numbers
from collections.abc import Sequence
from datetime import date, datetime
from pathlib import Path

import pandas as pd
from loguru import logger

from trialderive.adam.labels import ADAM_LABELS, DATASET_LABELS
from trialderive.io.xpt_writer import write_xpt_v5


def _iso(value: object) -> str | None:
    if value is pd.NaT:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return None


def _dates_to_iso(df: pd.DataFrame) -> pd.DataFrame:
    """Render date columns as ``YYYY-MM-DD`` text (None when missing)."""
    out = df.copy()
    for col in out.columns:
        series = out[col]
        if pd.api.types.is_datetime64_any_dtype(series):
            out[col] = series.map(_iso).astype(object)
        elif series.dtype == object and series.map(lambda v: isinstance(v, date)).any():
            out[col] = series.map(lambda v: _iso(v) if isinstance(v, date) else v)
    return out


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _for_xpt(df: pd.DataFrame) -> pd.DataFrame:
    """Give every column a plain float64 or text type.

    XPT has only numeric and character variables: nullable integers and
    object columns holding numbers become float64, all-missing object
    columns become empty text.
    """
    out = df.copy()
    for col in out.columns:
        series = out[col]
        nullable = isinstance(series.dtype, pd.api.extensions.ExtensionDtype)
        if nullable and pd.api.types.is_numeric_dtype(series):
            out[col] = series.astype("float64")
        elif series.dtype == object:
            present = series.dropna()
            if present.empty:
                out[col] = ""
            elif present.map(_is_number).all():
                out[col] = pd.to_numeric(series, errors="coerce").astype("float64")
    return out


def write_dataset(
    df: pd.DataFrame,
    out_dir: str | Path,
    name: str,
    label: str | None = None,
    formats: Sequence[str] = ("csv", "xpt"),
) -> list[Path]:
    """Write one analysis dataset in each requested format.

    Args:
        df: Analysis dataset.
        out_dir: Output directory (created if needed).
        name: Dataset name, also the file stem (lower-cased).
        label: Dataset label; defaults to the standard label for ``name``.
        formats: Any of "csv" and "xpt".

    Returns:
        Paths of the files written.

    Raises:
        ValueError: For an unknown format.
        XPTValidationError: If the dataset cannot be written as XPT v5.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    name = name.upper()
    label = label if label is not None else DATASET_LABELS.get(name)
    export = _dates_to_iso(df)

    written: list[Path] = []
    for fmt in formats:
        if fmt == "csv":
            path = out_dir / f"{name.lower()}.csv"
            export.to_csv(path, index=False, na_rep="")
        elif fmt == "xpt":
            path = out_dir / f"{name.lower()}.xpt"
            labels = {str(c): ADAM_LABELS.get(str(c), str(c)) for c in export.columns}
            write_xpt_v5(_for_xpt(export), path, name, labels, table_label=label)
        else:
            raise ValueError(f"Unsupported export format: {fmt}")
        written.append(path)

    logger.info("Wrote {} ({} rows) as {}", name, len(df), ", ".join(formats))
    return written
