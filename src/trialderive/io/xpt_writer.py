"""SAS Transport v5 writer for analysis datasets.

Checks the v5 limits up front because pyreadstat truncates silently:

- dataset and variable names: at most 8 characters, letter first
- dataset and variable labels: at most 40 characters
- character values: at most 200 bytes, ASCII only

Every written file is read back and compared on columns and row count.
"""

from __future__ import annotations

import re
from pathlib import Path

import pandas as pd
import pyreadstat
from loguru import logger

_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,7}$")
_TABLE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]{0,7}$")
MAX_LABEL = 40
MAX_CHAR_BYTES = 200


class XPTValidationError(Exception):
    """Raised when a dataset breaks SAS Transport v5 limits.

    ``errors`` holds every violation found, not only the first.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        detail = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"XPT v5 validation failed with {len(errors)} error(s):\n{detail}")


def _character_problems(col: str, values: pd.Series) -> list[str]:
    text = values.dropna().astype(str)
    if text.empty:
        return []
    problems: list[str] = []
    widest = int(text.map(lambda s: len(s.encode("utf-8"))).max())
    if widest > MAX_CHAR_BYTES:
        problems.append(f"Column '{col}' has values of {widest} bytes (limit {MAX_CHAR_BYTES})")
    n_non_ascii = int((~text.map(str.isascii)).sum())
    if n_non_ascii:
        problems.append(f"Column '{col}' contains {n_non_ascii} non-ASCII value(s)")
    return problems


def validate_for_xpt_v5(
    df: pd.DataFrame,
    column_labels: dict[str, str],
    table_name: str,
    table_label: str | None = None,
) -> list[str]:
    """List every SAS Transport v5 violation in a DataFrame.

    Args:
        df: DataFrame about to be written.
        column_labels: Column name -> label. Every column needs one.
        table_name: Dataset name.
        table_label: Optional dataset label.

    Returns:
        Violation messages; empty when the frame can be written as-is.
    """
    errors: list[str] = []

    if not _TABLE_RE.match(table_name):
        errors.append(
            f"Table name '{table_name}' must be 1-8 alphanumeric characters starting with a letter"
        )
    if table_label is not None and len(table_label) > MAX_LABEL:
        errors.append(f"Table label exceeds {MAX_LABEL} characters: '{table_label}'")

    labels = {k.upper(): v for k, v in column_labels.items()}
    for col in map(str, df.columns):
        if not _NAME_RE.match(col):
            errors.append(
                f"Column name '{col}' must be 1-8 characters (letters, digits, underscore) "
                f"starting with a letter"
            )
        label = labels.get(col.upper())
        if label is None:
            errors.append(f"Column '{col}' has no label")
        elif len(label) > MAX_LABEL:
            errors.append(f"Label for '{col}' exceeds {MAX_LABEL} characters: '{label}'")
        if pd.api.types.is_string_dtype(df[col]):
            errors.extend(_character_problems(col, df[col]))

    return errors


def write_xpt_v5(
    df: pd.DataFrame,
    path: str | Path,
    table_name: str,
    column_labels: dict[str, str],
    table_label: str | None = None,
) -> None:
    """Validate, write, and read back a SAS Transport v5 file.

    Column and table names are upper-cased on the way out.

    Raises:
        XPTValidationError: If the frame breaks v5 limits.
        RuntimeError: If the read-back columns or row count differ.
    """
    path = Path(path)
    errors = validate_for_xpt_v5(df, column_labels, table_name, table_label=table_label)
    if errors:
        raise XPTValidationError(errors)

    out = df.rename(columns=lambda c: str(c).upper())
    labels = {k.upper(): v for k, v in column_labels.items()}
    kwargs: dict[str, object] = {
        "table_name": table_name.upper(),
        "column_labels": labels,
        "file_format_version": 5,
    }
    if table_label is not None:
        kwargs["file_label"] = table_label

    logger.debug(
        "Writing {} ({} rows x {} cols) -> {}", table_name, len(out), len(out.columns), path
    )
    pyreadstat.write_xport(out, str(path), **kwargs)

    back, _ = pyreadstat.read_xport(str(path))
    if set(back.columns) != set(out.columns):
        missing = set(out.columns) - set(back.columns)
        extra = set(back.columns) - set(out.columns)
        raise RuntimeError(f"Read-back column mismatch: missing={missing}, extra={extra}")
    if len(back) != len(out):
        raise RuntimeError(f"Read-back row count mismatch: wrote {len(out)}, read {len(back)}")
    logger.info("XPT v5 write verified: {} ({} rows)", path.name, len(back))
