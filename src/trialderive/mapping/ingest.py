"""Convert mapped Findings DataFrames into typed Observation records.

This is the typed edge of the derivation core: after ingestion, absence is
uniformly None and dates are ``datetime.date``. A subject with a malformed
date anywhere in its rows is rejected as a whole (its rows are not
ingested) and reported in ``IngestResult.errors``; other subjects proceed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

import pandas as pd
from loguru import logger

from trialderive.derivation.dates import coerce_date
from trialderive.mapping.domains import OBSERVATION_FIELDS, get_domain_rules
from trialderive.mapping.rules import MappingRule, apply_mapping_rules
from trialderive.models.errors import MalformedDateError, StructuralInputError
from trialderive.models.observation import Observation


@dataclass
class IngestResult:
    """Observations that ingested cleanly plus the per-subject rejections."""

    observations: list[Observation] = field(default_factory=list)
    errors: list[StructuralInputError] = field(default_factory=list)

    @property
    def rejected_subjects(self) -> list[str]:
        """Subjects excluded because of structural errors."""
        return sorted({s for e in self.errors for s in e.subject_ids})


def _clean(value: object) -> object:
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    return value


def parse_subject_dates(
    subjects: Iterable[object],
    values: Iterable[object],
    malformed: dict[str, MalformedDateError],
) -> list[date | None]:
    """Parse one date column row by row, collecting failures per subject.

    A value that cannot be parsed yields None and records the subject in
    ``malformed`` (first error kept), so one bad row never stops the rest.

    Args:
        subjects: Subject identifier of each row.
        values: Raw date value of each row.
        malformed: Subject -> first MalformedDateError, updated in place.

    Returns:
        Parsed dates aligned with the input rows.
    """
    parsed: list[date | None] = []
    for subject, raw in zip(subjects, values, strict=True):
        try:
            parsed.append(coerce_date(raw, None if subject is None else str(subject)))
        except MalformedDateError as exc:
            parsed.append(None)
            malformed.setdefault(str(subject), exc)
    return parsed


def observations_from_frame(
    df: pd.DataFrame,
    domain: str,
    rules: Sequence[MappingRule] | None = None,
) -> IngestResult:
    """Map an SDTM Findings DataFrame to Observations.

    Args:
        df: SDTM Findings DataFrame (e.g., LB).
        domain: Domain code used to pick the rule table.
        rules: Override rule table (defaults to ``get_domain_rules(domain)``).

    Returns:
        IngestResult with observations in input order and the
        malformed-date rejections.

    Raises:
        StructuralInputError: If a required source column is absent.
    """
    mapped = apply_mapping_rules(df, rules if rules is not None else get_domain_rules(domain))
    extra_cols = [c for c in mapped.columns if c not in OBSERVATION_FIELDS]

    bad_subjects: dict[str, MalformedDateError] = {}
    parsed_dates = parse_subject_dates(
        mapped["subject_id"], mapped["observation_date"], bad_subjects
    )

    result = IngestResult(errors=list(bad_subjects.values()))
    for pos, (row, obs_date) in enumerate(
        zip(mapped.to_dict(orient="records"), parsed_dates, strict=True)
    ):
        subject = _clean(row["subject_id"])
        if subject is None:
            logger.warning("{} row {} has no USUBJID; skipped", domain, pos)
            continue
        if subject in bad_subjects:
            continue
        if _clean(row["parameter_code"]) is None:
            logger.warning("{} row {} for {} has no test code; skipped", domain, pos, subject)
            continue
        result.observations.append(
            Observation(
                subject_id=subject,
                parameter_code=row["parameter_code"],
                observation_date=obs_date,
                value=_clean(row["value"]),
                character_value=_clean(row["character_value"]),
                extras={c: _clean(row[c]) for c in extra_cols},
            )
        )

    for err in result.errors:
        logger.warning("{}: rejected subject(s) {}: {}", domain, ", ".join(err.subject_ids), err)
    logger.debug(
        "Ingested {} of {} {} rows ({} subject(s) rejected)",
        len(result.observations),
        len(df),
        domain,
        len(result.rejected_subjects),
    )
    return result
