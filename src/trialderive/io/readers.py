"""Dataset readers for SAS (.sas7bdat), SAS Transport (.xpt), and CSV files.

SAS formats are read with pyreadstat, CSV with pandas. Character columns
are normalised so blank strings and NaN both arrive as missing, which keeps
absence uniform before the mapping layer turns it into None.
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pyreadstat
from loguru import logger

SUPPORTED_SUFFIXES: tuple[str, ...] = (".sas7bdat", ".xpt", ".csv")


def _blank(value: object) -> object:
    if isinstance(value, str):
        return value if value.strip() else None
    return None if value is None or pd.isna(value) else value


def _blank_to_none(df: pd.DataFrame) -> pd.DataFrame:
    for col in df.columns:
        series = df[col]
        if series.dtype == object or pd.api.types.is_string_dtype(series):
            values = [_blank(v) for v in series.astype(object)]
            df[col] = pd.Series(values, index=df.index, dtype=object)
    return df


def read_dataset(path: str | Path) -> pd.DataFrame:
    """Read one dataset file into a DataFrame.

    CSV columns are read as text so identifiers like ``"001"`` keep their
    leading zeros; numeric conversion happens in the mapping rules.

    Args:
        path: Path to a .sas7bdat, .xpt, or .csv file.

    Returns:
        DataFrame with blank character values replaced by None.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the suffix is not supported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".sas7bdat":
        df, meta = pyreadstat.read_sas7bdat(str(path))
        logger.debug("{}: encoding {}", path.name, meta.file_encoding)
    elif suffix == ".xpt":
        df, _ = pyreadstat.read_xport(str(path))
    elif suffix == ".csv":
        df = pd.read_csv(path, dtype=str)
    else:
        raise ValueError(f"Unsupported dataset format: {path.suffix}")

    df = _blank_to_none(df)
    logger.info("Read {}: {} rows x {} cols", path.name, len(df), len(df.columns))
    return df


def read_study_folder(data_dir: str | Path) -> dict[str, pd.DataFrame]:
    """Read every supported dataset file in a directory.

    Args:
        data_dir: Directory holding SDTM (and optionally ADSL) files.

    Returns:
        Dict keyed by lower-case filename stem (e.g., "dm", "lb").

    Raises:
        FileNotFoundError: If the directory does not exist.
        ValueError: If no supported files are found, or two files share a stem.
    """
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    files = sorted(p for p in data_dir.iterdir() if p.suffix.lower() in SUPPORTED_SUFFIXES)
    if not files:
        raise ValueError(f"No dataset files found in: {data_dir}")

    logger.info("Found {} dataset files in {}", len(files), data_dir)

    results: dict[str, pd.DataFrame] = {}
    for file in files:
        stem = file.stem.lower()
        if stem in results:
            raise ValueError(f"More than one file for dataset '{stem}' in {data_dir}")
        try:
            results[stem] = read_dataset(file)
        except Exception:
            logger.exception("Failed to read dataset file: {}", file.name)
            raise
    return results
