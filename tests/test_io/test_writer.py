"""Tests for write_dataset (CSV and XPT export)."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pyreadstat
import pytest

from trialderive.io.writer import write_dataset
from trialderive.io.xpt_writer import XPTValidationError


def _adlb() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "USUBJID": ["S1", "S1", "S3"],
            "PARAMCD": ["HGB", "HGB", "HGB"],
            "ADT": [date(2024, 1, 10), date(2024, 1, 17), None],
            "ADY": pd.array([1, 8, None], dtype="Int64"),
            "AVAL": [13.2, 12.5, 11.0],
            "LBSEQ": [1.0, 2.0, None],
            "PCHG": [None, -5.3, None],
            "SHIFT1": [None, None, None],
            "ABLFL": ["Y", "N", "N"],
        }
    )


class TestWriteDataset:
    def test_writes_both_formats(self, tmp_path) -> None:
        paths = write_dataset(_adlb(), tmp_path / "out", "adlb")
        assert [p.name for p in paths] == ["adlb.csv", "adlb.xpt"]
        assert all(p.exists() for p in paths)

    def test_csv_dates_iso_and_blanks(self, tmp_path) -> None:
        (path,) = write_dataset(_adlb(), tmp_path, "ADLB", formats=["csv"])
        lines = path.read_text().splitlines()
        assert lines[0].startswith("USUBJID,PARAMCD,ADT,ADY")
        assert lines[1].startswith("S1,HGB,2024-01-10,1,13.2")
        assert lines[3].startswith("S3,HGB,,,11.0")

    def test_xpt_round_trip(self, tmp_path) -> None:
        (path,) = write_dataset(_adlb(), tmp_path, "ADLB", formats=["xpt"])
        back, meta = pyreadstat.read_xport(str(path))
        assert back["ADT"].tolist()[:2] == ["2024-01-10", "2024-01-17"]
        assert back["ADY"].tolist()[:2] == [1.0, 8.0]
        assert meta.column_names_to_labels["AVAL"] == "Analysis Value"
        assert meta.file_label == "Analysis Dataset Laboratory"

    def test_unknown_format(self, tmp_path) -> None:
        with pytest.raises(ValueError, match="Unsupported export format"):
            write_dataset(_adlb(), tmp_path, "ADLB", formats=["parquet"])

    def test_xpt_limits_enforced(self, tmp_path) -> None:
        df = _adlb().assign(LONGCOLUMN=1.0)
        with pytest.raises(XPTValidationError):
            write_dataset(df, tmp_path, "ADLB", formats=["xpt"])
