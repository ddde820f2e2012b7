"""Tests for the column transform registry."""

from __future__ import annotations

from datetime import date

import numpy as np
import pandas as pd
import pytest

from trialderive.mapping.transform_registry import (
    AVAILABLE_TRANSFORMS,
    get_transform,
    list_transforms,
)
from trialderive.models.errors import MalformedDateError


class TestRegistry:
    """Lookup by name."""

    def test_known_names(self) -> None:
        assert list_transforms() == sorted(AVAILABLE_TRANSFORMS)
        assert {"direct", "strip", "upper", "to_numeric", "to_date", "iso_date", "recode"} <= set(
            list_transforms()
        )

    def test_unknown_is_none(self) -> None:
        assert get_transform("nope") is None


class TestTextTransforms:
    """strip / upper normalise blanks to None."""

    def test_strip(self) -> None:
        fn = get_transform("strip")
        result = fn(pd.Series([" a ", "", None, np.nan, "b"]))
        assert result.tolist() == ["a", None, None, None, "b"]

    def test_upper(self) -> None:
        fn = get_transform("upper")
        assert fn(pd.Series([" hgb", None])).tolist() == ["HGB", None]

    @pytest.mark.parametrize("dtype", [object, "string"])
    def test_missing_is_none_for_any_text_dtype(self, dtype: object) -> None:
        src = pd.Series(["a", None, " "], dtype=dtype)
        for name in ("strip", "upper"):
            result = get_transform(name)(src)
            assert result.dtype == object
            assert result.tolist()[1:] == [None, None]

    def test_recode_string_dtype(self) -> None:
        src = pd.Series(["L", None], dtype="string")
        assert get_transform("recode")(src, {"L": "LOW"}).tolist() == ["LOW", None]

    def test_direct_copies(self) -> None:
        src = pd.Series([1, 2])
        out = get_transform("direct")(src)
        out.iloc[0] = 99
        assert src.iloc[0] == 1


class TestNumericAndDates:
    """to_numeric, to_date, iso_date."""

    def test_to_numeric(self) -> None:
        result = get_transform("to_numeric")(pd.Series(["13.2", "<2", None, "0"]))
        assert result.iloc[0] == 13.2
        assert np.isnan(result.iloc[1])
        assert np.isnan(result.iloc[2])
        assert result.iloc[3] == 0.0

    def test_to_date(self) -> None:
        result = get_transform("to_date")(pd.Series(["2024-01-10", "2024-01", None]))
        assert result.tolist() == [date(2024, 1, 10), None, None]

    def test_to_date_malformed(self) -> None:
        with pytest.raises(MalformedDateError):
            get_transform("to_date")(pd.Series(["01/10/2024"]))

    def test_iso_date(self) -> None:
        result = get_transform("iso_date")(pd.Series([date(2024, 1, 10), None]))
        assert result.tolist() == ["2024-01-10", None]


class TestRecode:
    """Static codelist substitution."""

    def test_recode(self) -> None:
        fn = get_transform("recode")
        codelist = {"L": "LOW", "H": "HIGH", "N": "NORMAL"}
        result = fn(pd.Series(["L", "H", "N", "ABNORMAL", None]), codelist)
        assert result.tolist() == ["LOW", "HIGH", "NORMAL", "ABNORMAL", None]

    def test_recode_without_codelist(self) -> None:
        assert get_transform("recode")(pd.Series(["L"])).tolist() == ["L"]
