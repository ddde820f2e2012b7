"""Record models for the longitudinal derivation engine.

Observation is one collected value (a row of an SDTM Findings domain once
mapped), ReferenceDate is the per-subject anchor, and AnalysisRecord is an
Observation enriched with study day, baseline, and change from baseline.
All three are frozen: derived records are projections, never updated in place.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _nan_to_none(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


class Observation(BaseModel):
    """One measured or collected value for a subject and parameter.

    Missing data is a first-class state: ``value`` and ``observation_date``
    are None when absent, never zero or a sentinel string.
    """

    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(..., min_length=1, description="Unique subject identifier (USUBJID)")
    parameter_code: str = Field(
        ..., min_length=1, description="Parameter code (e.g., 'HGB', 'SYSBP', 'QTCF')"
    )
    observation_date: date | None = Field(
        default=None, description="Calendar date of collection, None if unknown"
    )
    value: float | None = Field(default=None, description="Numeric result, None if absent")
    character_value: str | None = Field(
        default=None, description="Original result as collected (may be non-numeric)"
    )
    extras: dict[str, Any] = Field(
        default_factory=dict,
        description="Domain passthrough columns (PARAM, units, ranges) the core never reads",
    )

    @field_validator("value", mode="before")
    @classmethod
    def _value_nan_is_absent(cls, v: Any) -> Any:
        return _nan_to_none(v)


class ReferenceDate(BaseModel):
    """The fixed per-subject temporal anchor (e.g., first exposure date)."""

    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(..., min_length=1, description="Unique subject identifier (USUBJID)")
    anchor_date: date | None = Field(
        default=None, description="Anchor date (e.g., TRTSDT), None if not on file"
    )


class AnalysisRecord(BaseModel):
    """An Observation enriched with its longitudinal derivations.

    ``baseline_value`` and ``baseline_character_value`` are copied onto every
    record of the (subject, parameter) group; ``is_baseline`` is True for at
    most one record per group.
    """

    model_config = ConfigDict(frozen=True)

    subject_id: str
    parameter_code: str
    observation_date: date | None = None
    value: float | None = None
    character_value: str | None = None
    extras: dict[str, Any] = Field(default_factory=dict)

    anchor_date: date | None = Field(default=None, description="Subject anchor used for derivation")
    study_day: int | None = Field(
        default=None, description="Study day relative to anchor (no Day 0)"
    )
    is_baseline: bool = Field(default=False, description="True for the selected baseline record")
    is_post_baseline: bool = Field(
        default=False, description="True if the record qualified for change derivation"
    )
    baseline_value: float | None = None
    baseline_character_value: str | None = None
    change_from_baseline: float | None = None
    percent_change_from_baseline: float | None = None

    @classmethod
    def from_observation(cls, obs: Observation, **derived: Any) -> AnalysisRecord:
        """Build a record carrying all Observation fields plus derived values."""
        return cls(
            subject_id=obs.subject_id,
            parameter_code=obs.parameter_code,
            observation_date=obs.observation_date,
            value=obs.value,
            character_value=obs.character_value,
            extras=dict(obs.extras),
            **derived,
        )
