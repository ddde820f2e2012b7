"""Declarative source -> target mapping rules.

Per-domain field mapping is expressed as a table of MappingRule entries and
applied by one generic function, instead of a hand-written normaliser per
domain. A rule names its source column, its target field, and the registry
transform that converts values on the way.
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from trialderive.mapping.transform_registry import get_transform, list_transforms
from trialderive.models.errors import ErrorKind, StructuralInputError


class MappingRule(BaseModel):
    """One source column -> target field mapping.

    ``codelist`` is only consulted by the ``recode`` transform. A missing
    ``required`` source is a structural error; a missing optional source
    produces an all-null target column.
    """

    source: str = Field(..., min_length=1, description="Source column name (e.g., 'LBSTRESN')")
    target: str = Field(..., min_length=1, description="Target field name (e.g., 'value')")
    transform: str = Field(default="direct", description="Registered transform name")
    codelist: dict[str, str] | None = Field(
        default=None, description="Static CT substitution map for the recode transform"
    )
    required: bool = Field(default=False, description="Source column must be present")

    @field_validator("transform")
    @classmethod
    def _known_transform(cls, v: str) -> str:
        if get_transform(v) is None:
            msg = f"Unknown transform '{v}'. Available: {', '.join(list_transforms())}"
            raise ValueError(msg)
        return v


def apply_mapping_rules(df: pd.DataFrame, rules: Sequence[MappingRule]) -> pd.DataFrame:
    """Apply a rule table to a source DataFrame.

    Args:
        df: Source DataFrame.
        rules: Mapping rules; output columns follow rule order.

    Returns:
        New DataFrame with one column per rule target, same index as ``df``.

    Raises:
        StructuralInputError: If a required source column is absent.
    """
    missing_required = [r.source for r in rules if r.required and r.source not in df.columns]
    if missing_required:
        raise StructuralInputError(
            ErrorKind.MISSING_REQUIRED_COLUMN,
            f"Missing required source columns: {missing_required}",
        )

    result = pd.DataFrame(index=df.index)
    for rule in rules:
        if rule.source not in df.columns:
            logger.debug(
                "Optional source column {!r} absent; {} set to null", rule.source, rule.target
            )
            result[rule.target] = pd.Series([None] * len(df), index=df.index, dtype=object)
            continue

        fn = get_transform(rule.transform)
        assert fn is not None  # checked by the model validator
        if rule.transform == "recode":
            result[rule.target] = fn(df[rule.source], rule.codelist)
        else:
            result[rule.target] = fn(df[rule.source])

    return result
