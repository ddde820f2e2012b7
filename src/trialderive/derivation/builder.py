"""Record-level pass composing study day, baseline, and change derivations.

AnalysisRecordBuilder turns a sequence of Observations into exactly one
AnalysisRecord per input, in input order. Subjects without an anchor and
groups without a baseline still produce records, with the derived fields
left absent.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import date

import pandas as pd
from loguru import logger

from trialderive.derivation.baseline import baseline_position
from trialderive.derivation.change import ChangeResult, derive_change
from trialderive.derivation.reference_date import ReferenceDateResolver
from trialderive.derivation.study_day import calculate_study_day
from trialderive.models.observation import AnalysisRecord, Observation

RECORD_COLUMNS: list[str] = [
    "subject_id",
    "parameter_code",
    "observation_date",
    "value",
    "character_value",
    "anchor_date",
    "study_day",
    "is_baseline",
    "is_post_baseline",
    "baseline_value",
    "baseline_character_value",
    "change_from_baseline",
    "percent_change_from_baseline",
]


def is_post_baseline(
    study_day: int | None,
    observation_date: date | None,
    anchor_date: date | None,
) -> bool:
    """Decide whether an observation qualifies for change derivation.

    A positive study day qualifies. Without a study day, an observation dated
    after a known anchor qualifies.
    """
    if study_day is not None:
        return study_day > 0
    if observation_date is not None and anchor_date is not None:
        return observation_date > anchor_date
    return False


class AnalysisRecordBuilder:
    """Derive the enriched longitudinal record set from Observations.

    Args:
        resolver: Per-subject anchor lookup. Resolved once per subject.
    """

    def __init__(self, resolver: ReferenceDateResolver) -> None:
        self.resolver = resolver

    def build(self, observations: Sequence[Observation]) -> list[AnalysisRecord]:
        """Run the derivation pass.

        Args:
            observations: Input observations in collection order. Order within
                a (subject, parameter) group is the baseline tie-break key.

        Returns:
            One AnalysisRecord per input Observation, in the same order.
        """
        anchors: dict[str, date | None] = {}
        groups: dict[tuple[str, str], list[int]] = defaultdict(list)
        for idx, obs in enumerate(observations):
            if obs.subject_id not in anchors:
                anchors[obs.subject_id] = self.resolver.resolve(obs.subject_id)
            groups[(obs.subject_id, obs.parameter_code)].append(idx)

        baseline_index: dict[tuple[str, str], int | None] = {}
        for key, indices in groups.items():
            members = [observations[i] for i in indices]
            pos = baseline_position(members, anchors[key[0]])
            baseline_index[key] = indices[pos] if pos is not None else None

        records: list[AnalysisRecord] = []
        for idx, obs in enumerate(observations):
            key = (obs.subject_id, obs.parameter_code)
            anchor = anchors[obs.subject_id]
            base_idx = baseline_index[key]
            base = observations[base_idx] if base_idx is not None else None

            study_day = calculate_study_day(obs.observation_date, anchor)
            post = is_post_baseline(study_day, obs.observation_date, anchor)
            if post and base is not None:
                result = derive_change(obs.value, base.value)
            else:
                result = ChangeResult(None, None)

            records.append(
                AnalysisRecord.from_observation(
                    obs,
                    anchor_date=anchor,
                    study_day=study_day,
                    is_baseline=idx == base_idx,
                    is_post_baseline=post,
                    baseline_value=base.value if base is not None else None,
                    baseline_character_value=base.character_value if base is not None else None,
                    change_from_baseline=result.change,
                    percent_change_from_baseline=result.percent_change,
                )
            )

        missing_anchor = sum(1 for a in anchors.values() if a is None)
        missing_baseline = sum(1 for b in baseline_index.values() if b is None)
        logger.debug(
            "Derived {} records: {} subjects ({} without anchor), "
            "{} parameter groups ({} without baseline)",
            len(records),
            len(anchors),
            missing_anchor,
            len(groups),
            missing_baseline,
        )
        return records


def records_to_frame(records: Sequence[AnalysisRecord]) -> pd.DataFrame:
    """Flatten AnalysisRecords into a DataFrame, one column per field.

    Passthrough ``extras`` become additional columns after the record fields.
    Numeric columns are float with NaN for absent values; ``study_day`` is a
    nullable Int64.
    """
    if not records:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    rows = []
    for rec in records:
        row = rec.model_dump(exclude={"extras"})
        row.update(rec.extras)
        rows.append(row)

    df = pd.DataFrame(rows)
    extra_cols = [c for c in df.columns if c not in RECORD_COLUMNS]
    df = df[RECORD_COLUMNS + extra_cols]
    df["study_day"] = df["study_day"].astype("Int64")
    for col in (
        "value",
        "baseline_value",
        "change_from_baseline",
        "percent_change_from_baseline",
    ):
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    return df
