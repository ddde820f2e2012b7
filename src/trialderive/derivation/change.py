"""Change and percent change from baseline (CHG / PCHG)."""

from __future__ import annotations

import math
from typing import NamedTuple


class ChangeResult(NamedTuple):
    """Change from baseline and percent change from baseline."""

    change: float | None
    percent_change: float | None


def _absent(x: float | None) -> bool:
    return x is None or (isinstance(x, float) and math.isnan(x))


def derive_change(value: float | None, baseline_value: float | None) -> ChangeResult:
    """Derive CHG and PCHG for one observation.

    A zero baseline leaves percent change absent while change is still
    computed. No rounding is applied; display precision is a reporting concern.

    Args:
        value: Analysis value (AVAL), or None.
        baseline_value: Baseline value (BASE), or None.

    Returns:
        ChangeResult(change, percent_change); both None if either input is absent.

    Examples:
        >>> derive_change(0.5, 0.0)
        ChangeResult(change=0.5, percent_change=None)
        >>> derive_change(None, 13.2)
        ChangeResult(change=None, percent_change=None)
    """
    if _absent(value) or _absent(baseline_value):
        return ChangeResult(None, None)

    change = value - baseline_value  # type: ignore[operator]
    if baseline_value == 0:
        return ChangeResult(change, None)
    return ChangeResult(change, change / baseline_value * 100)  # type: ignore[operator]
