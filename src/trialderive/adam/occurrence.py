"""Occurrence analysis datasets (ADAE, ADCM) from SDTM event domains.

Events carry a start and end date rather than a single collection date.
Both are placed on the study-day axis against the same per-subject anchor
used by the BDS datasets, so ASTDY/AENDY follow the no-Day-0 convention and
absent anchors propagate as missing days.
"""

from __future__ import annotations

from collections.abc import Callable

import pandas as pd
from loguru import logger

from trialderive.adam.bds import carry_adsl_variables
from trialderive.adam.result import DerivedDataset
from trialderive.derivation.reference_date import ReferenceDateResolver
from trialderive.derivation.study_day import calculate_study_day_column
from trialderive.mapping.ingest import parse_subject_dates
from trialderive.mapping.rules import MappingRule, apply_mapping_rules
from trialderive.models.config import StudyConfig
from trialderive.models.errors import MalformedDateError, StructuralInputError


def _event_rules(prefix: str, term: str) -> list[MappingRule]:
    return [
        MappingRule(source="STUDYID", target="STUDYID", transform="strip"),
        MappingRule(source="USUBJID", target="USUBJID", transform="strip", required=True),
        MappingRule(source=f"{prefix}SEQ", target=f"{prefix}SEQ", transform="to_numeric"),
        MappingRule(source=term, target=term, transform="strip", required=True),
        MappingRule(source=f"{prefix}DECOD", target=f"{prefix}DECOD", transform="upper"),
        MappingRule(source=f"{prefix}STDTC", target="ASTDT", transform="strip"),
        MappingRule(source=f"{prefix}ENDTC", target="AENDT", transform="strip"),
    ]


AE_RULES: list[MappingRule] = [
    *_event_rules("AE", "AETERM"),
    MappingRule(source="AEBODSYS", target="AEBODSYS", transform="upper"),
    MappingRule(source="AESEV", target="ASEV", transform="upper"),
    MappingRule(source="AESER", target="ASER", transform="upper"),
    MappingRule(source="AEREL", target="AREL", transform="upper"),
    MappingRule(source="AEOUT", target="AOUT", transform="upper"),
    MappingRule(source="AETOXGR", target="ATOXGR", transform="strip"),
]

CM_RULES: list[MappingRule] = [
    *_event_rules("CM", "CMTRT"),
    MappingRule(source="CMCAT", target="CMCAT", transform="upper"),
    MappingRule(source="CMDOSE", target="CMDOSE", transform="to_numeric"),
    MappingRule(source="CMDOSU", target="CMDOSU", transform="strip"),
    MappingRule(source="CMDOSFRQ", target="CMDOSFRQ", transform="strip"),
    MappingRule(source="CMROUTE", target="CMROUTE", transform="upper"),
]

OCCURRENCE_RULES: dict[str, list[MappingRule]] = {
    "AE": AE_RULES,
    "CM": CM_RULES,
}

OCCDS_COLUMN_ORDER: list[str] = [
    "STUDYID", "USUBJID", "{prefix}SEQ",
    "TRT01P", "TRT01PN", "TRT01A", "TRT01AN", "TRTSDT", "TRTEDT",
    "PARAMCD", "PARAM", "PARCAT1", "PARCAT2",
    "AETERM", "AEDECOD", "AEBODSYS", "CMTRT", "CMDECOD", "AVALC",
    "ASTDT", "AENDT", "ASTDY", "AENDY", "ADURN",
    "ASEV", "ASEVN", "ASER", "ASERN", "AOUT", "AREL", "ARELN", "ATOXGR", "ATOXGRN",
    "CMDOSE", "CMDOSU", "CMDOSFRQ", "CMROUTE",
    "TRTEMFL", "APRIFL", "ACONFL", "AOCCFL", "AOCCPFL", "AOCC01FL", "SAFFL",
    "AGE", "SEX", "RACE",
]  # fmt: skip

_SEVERITY_CODES: dict[str, int] = {"MILD": 1, "MODERATE": 2, "SEVERE": 3}


def _yn(flags: list[bool]) -> list[str]:
    return ["Y" if f else "N" for f in flags]


def _code(values: pd.Series, fn: Callable[[str], int | None]) -> pd.Series:
    return pd.Series(
        [fn(v) if isinstance(v, str) else None for v in values], index=values.index, dtype="Int64"
    )


def derive_adverse_event_flags(df: pd.DataFrame) -> pd.DataFrame:
    """ADAE parameters, numeric codes, and the treatment-emergent flag.

    TRTEMFL is "Y" when the event starts on or after the subject's anchor;
    an event with no start date or a subject with no anchor is "N".
    """
    df["PARAMCD"] = "AETOT"
    df["PARAM"] = "Total Adverse Events"
    df["PARCAT1"] = df["AEBODSYS"]
    df["PARCAT2"] = df["AEDECOD"]
    df["ASEVN"] = _code(df["ASEV"], _SEVERITY_CODES.get)
    df["ASERN"] = _code(df["ASER"], lambda v: 1 if v == "Y" else 0)
    df["ARELN"] = _code(df["AREL"], lambda v: 1 if v == "RELATED" else 0)
    df["ATOXGRN"] = pd.to_numeric(df["ATOXGR"], errors="coerce")
    df["TRTEMFL"] = _yn(
        [
            start is not None and anchor is not None and start >= anchor
            for start, anchor in zip(df["ASTDT"], df["anchor_date"], strict=True)
        ]
    )
    return df


def derive_medication_flags(df: pd.DataFrame) -> pd.DataFrame:
    """ADCM parameters plus prior and concomitant flags.

    APRIFL is "Y" when the medication ended before the anchor. ACONFL is "Y"
    when it was still taken on or after the anchor (ended then, or has no
    end date). Both are "N" for a subject with no anchor.
    """
    df["PARAMCD"] = "CMTRT"
    df["PARAM"] = "Concomitant Medication"
    df["PARCAT1"] = df["CMCAT"]
    df["PARCAT2"] = df["CMDECOD"]
    df["AVALC"] = df["CMTRT"]
    ends = list(zip(df["AENDT"], df["anchor_date"], strict=True))
    df["APRIFL"] = _yn([a is not None and e is not None and e < a for e, a in ends])
    df["ACONFL"] = _yn([a is not None and (e is None or e >= a) for e, a in ends])
    return df


OCCURRENCE_DERIVATIONS: dict[str, Callable[[pd.DataFrame], pd.DataFrame]] = {
    "AE": derive_adverse_event_flags,
    "CM": derive_medication_flags,
}


def _occurrence_flags(df: pd.DataFrame, decod: str) -> pd.DataFrame:
    """AOCCFL on every record; AOCCPFL/AOCC01FL on the first per term/subject."""
    df["AOCCFL"] = "Y"
    df["AOCCPFL"] = _yn(list(~df.duplicated(["USUBJID", decod])))
    df["AOCC01FL"] = _yn(list(~df.duplicated(["USUBJID"])))
    return df


def build_occurrence_dataset(
    events: pd.DataFrame,
    adsl: pd.DataFrame,
    domain: str,
    config: StudyConfig,
) -> DerivedDataset:
    """Build ADAE or ADCM from an SDTM event domain and ADSL.

    Args:
        events: SDTM AE or CM DataFrame.
        adsl: Subject-level dataset holding the anchor variable.
        domain: "AE" or "CM".
        config: Study configuration (anchor variable, strictness).

    Returns:
        DerivedDataset with one row per event in input order. Subjects with a
        malformed start or end date are left out and listed in ``errors``,
        together with any subjects the reference table rejected.

    Raises:
        ValueError: If ``domain`` is not an event domain.
        StructuralInputError: If a required event column is missing.
        DuplicateReferenceAnchorError: If ADSL has duplicate subjects and
            ``config.strict_reference`` is set.
        KeyError: If ADSL lacks the anchor or subject variable.
    """
    domain = domain.upper()
    rules = OCCURRENCE_RULES.get(domain)
    if rules is None:
        raise ValueError(f"Unsupported occurrence domain: {domain}")

    df = apply_mapping_rules(events, rules).reset_index(drop=True)
    no_subject = df["USUBJID"].isna()
    if no_subject.any():
        logger.warning("{}: {} row(s) without USUBJID skipped", domain, int(no_subject.sum()))
        df = df.loc[~no_subject].reset_index(drop=True)

    malformed: dict[str, MalformedDateError] = {}
    for col in ("ASTDT", "AENDT"):
        df[col] = pd.Series(
            parse_subject_dates(df["USUBJID"], df[col], malformed), index=df.index, dtype=object
        )
    if malformed:
        df = df.loc[~df["USUBJID"].isin(list(malformed))].reset_index(drop=True)
    errors: list[StructuralInputError] = list(malformed.values())

    resolver = ReferenceDateResolver.from_frame(
        adsl,
        anchor_col=config.anchor_variable,
        subject_col=config.subject_variable,
        strict=config.strict_reference,
    )
    errors.extend(resolver.errors)
    anchors = resolver.as_dict()

    df["ASTDY"] = calculate_study_day_column(df, "ASTDT", anchors)
    df["AENDY"] = calculate_study_day_column(df, "AENDT", anchors)
    df["ADURN"] = pd.Series(
        [
            (end - start).days + 1 if start is not None and end is not None else None
            for start, end in zip(df["ASTDT"], df["AENDT"], strict=True)
        ],
        index=df.index,
        dtype="Int64",
    )
    df["anchor_date"] = pd.Series(
        [anchors.get(s) for s in df["USUBJID"]], index=df.index, dtype=object
    )

    df = OCCURRENCE_DERIVATIONS[domain](df)
    df = _occurrence_flags(df, f"{domain}DECOD").drop(columns=["anchor_date"])

    if df["STUDYID"].isna().all():
        df["STUDYID"] = config.study_id
    df = carry_adsl_variables(df, adsl, config.subject_variable)

    order = [c.format(prefix=domain) for c in OCCDS_COLUMN_ORDER]
    ordered = [c for c in order if c in df.columns]
    df = df[ordered + [c for c in df.columns if c not in ordered]]

    for err in malformed.values():
        logger.warning("AD{}: rejected subject(s) {}: {}", domain, ", ".join(err.subject_ids), err)
    flag = "TRTEMFL" if domain == "AE" else "ACONFL"
    logger.info(
        "Created AD{}: {} records ({} {})",
        domain,
        len(df),
        int((df[flag] == "Y").sum()),
        flag,
    )
    return DerivedDataset(data=df, errors=errors)
