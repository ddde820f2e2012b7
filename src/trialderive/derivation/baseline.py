"""Baseline record selection for one (subject, parameter) group.

The baseline is the last observation on or before the subject's anchor date
that carries a numeric value. Ties on the latest eligible date go to the
observation recorded last (largest input position), so the choice never
depends on sort stability or dictionary ordering.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from trialderive.models.observation import Observation


def baseline_position(observations: Sequence[Observation], anchor_date: date | None) -> int | None:
    """Return the index of the baseline observation within ``observations``.

    Args:
        observations: The group's observations in input (collection) order.
        anchor_date: The subject's anchor date, or None.

    Returns:
        Index into ``observations`` of the selected baseline, or None if no
        observation is eligible.
    """
    if anchor_date is None:
        return None

    best: int | None = None
    best_date: date | None = None
    for idx, obs in enumerate(observations):
        obs_date = obs.observation_date
        if obs_date is None or obs.value is None or obs_date > anchor_date:
            continue
        # ">=" so a later input position wins a same-date tie
        if best_date is None or obs_date >= best_date:
            best = idx
            best_date = obs_date
    return best


def select_baseline(
    observations: Sequence[Observation], anchor_date: date | None
) -> Observation | None:
    """Select the authoritative baseline observation for a group.

    Args:
        observations: All observations of one (subject, parameter) group,
            in input order.
        anchor_date: The subject's anchor date, or None.

    Returns:
        The baseline Observation, or None when there is no eligible record
        (absent anchor, only post-anchor data, or no numeric value on or
        before the anchor).

    Examples:
        >>> obs = [
        ...     Observation(subject_id="S5", parameter_code="WT",
        ...                 observation_date=date(2024, 1, 1), value=70.0),
        ...     Observation(subject_id="S5", parameter_code="WT",
        ...                 observation_date=date(2024, 1, 1), value=71.0),
        ... ]
        >>> select_baseline(obs, date(2024, 1, 1)).value
        71.0
    """
    idx = baseline_position(observations, anchor_date)
    if idx is None:
        return None
    return observations[idx]
