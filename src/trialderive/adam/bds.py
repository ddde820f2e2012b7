"""BDS (Basic Data Structure) analysis dataset assembly for ADVS, ADLB, ADEG.

Maps an SDTM Findings domain onto Observations, runs the longitudinal
derivation engine against the ADSL anchor, and lays the result out as an
ADaM BDS dataset. Study day, baseline, and change values come from the
engine unchanged; this module only renames, flags, and joins.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
import pandas as pd
from loguru import logger

from trialderive.adam.result import DerivedDataset
from trialderive.derivation.builder import AnalysisRecordBuilder, records_to_frame
from trialderive.derivation.reference_date import ReferenceDateResolver
from trialderive.mapping.ingest import observations_from_frame
from trialderive.models.config import StudyConfig
from trialderive.models.errors import StructuralInputError

RECORD_TO_ADAM: dict[str, str] = {
    "subject_id": "USUBJID",
    "parameter_code": "PARAMCD",
    "observation_date": "ADT",
    "study_day": "ADY",
    "value": "AVAL",
    "character_value": "AVALC",
    "baseline_value": "BASE",
    "baseline_character_value": "BASEC",
    "change_from_baseline": "CHG",
    "percent_change_from_baseline": "PCHG",
}

ADSL_CARRY: list[str] = [
    "TRT01P", "TRT01PN", "TRT01A", "TRT01AN", "TRTSDT", "TRTEDT", "SAFFL", "AGE", "SEX", "RACE",
]  # fmt: skip

BDS_COLUMN_ORDER: list[str] = [
    "STUDYID", "USUBJID", "{prefix}SEQ",
    "TRT01P", "TRT01PN", "TRT01A", "TRT01AN", "TRTSDT", "TRTEDT",
    "PARAMCD", "PARAM", "PARCAT1", "ATPT",
    "ADT", "ADY", "AVAL", "AVALC", "AVALU",
    "BASE", "BASEC", "CHG", "PCHG",
    "ANRLO", "ANRHI", "ANRIND", "BNRIND", "SHIFT1",
    "CRIT1", "CRIT1FL",
    "ABLFL", "ANL01FL", "SAFFL",
    "AGE", "SEX", "RACE",
]  # fmt: skip

_QTCF_BANDS: list[tuple[float, str]] = [
    (500, "QTcF > 500 msec"),
    (480, "QTcF > 480 msec"),
    (450, "QTcF > 450 msec"),
]


def _selected(conditions: list[pd.Series], choices: list[str], index: pd.Index) -> pd.Series:
    """np.select over the conditions, with None where none holds."""
    picked = np.select(conditions, choices, default="")
    return pd.Series([c if c else None for c in picked], index=index, dtype=object)


def carry_adsl_variables(df: pd.DataFrame, adsl: pd.DataFrame, subject_col: str) -> pd.DataFrame:
    """Left-join treatment and demographic variables from ADSL onto USUBJID.

    Subjects appearing more than once in ADSL get no carried values.
    """
    carry = [c for c in ADSL_CARRY if c in adsl.columns and c not in df.columns]
    if not carry:
        return df
    unique_adsl = adsl.loc[~adsl[subject_col].duplicated(keep=False), [subject_col, *carry]]
    unique_adsl = unique_adsl.rename(columns={subject_col: "USUBJID"})
    unique_adsl["USUBJID"] = unique_adsl["USUBJID"].astype(str)
    return df.merge(unique_adsl, on="USUBJID", how="left", validate="many_to_one")


def derive_reference_range_indicator(df: pd.DataFrame) -> pd.Series:
    """Compare AVAL against ANRLO/ANRHI: LOW, HIGH, NORMAL, or None."""
    aval = pd.to_numeric(df["AVAL"], errors="coerce")
    lo = pd.to_numeric(df["ANRLO"], errors="coerce") if "ANRLO" in df.columns else None
    hi = pd.to_numeric(df["ANRHI"], errors="coerce") if "ANRHI" in df.columns else None

    conditions: list[pd.Series] = []
    choices: list[str] = []
    if lo is not None:
        conditions.append(aval.notna() & lo.notna() & (aval < lo))
        choices.append("LOW")
    if hi is not None:
        conditions.append(aval.notna() & hi.notna() & (aval > hi))
        choices.append("HIGH")
    if lo is not None and hi is not None:
        conditions.append(aval.notna() & lo.notna() & hi.notna() & (aval >= lo) & (aval <= hi))
        choices.append("NORMAL")
    if not conditions:
        return pd.Series([None] * len(df), index=df.index, dtype=object)
    return _selected(conditions, choices, df.index)


def derive_lab_shift(df: pd.DataFrame) -> pd.DataFrame:
    """Derive BNRIND and SHIFT1 for ADLB.

    ANRIND is taken from LBNRIND when collected, otherwise derived from the
    reference range. BNRIND is the baseline record's ANRIND, spread to every
    record of the (USUBJID, PARAMCD) group. SHIFT1 is "<BNRIND> to <ANRIND>"
    when both are present.
    """
    collected = "ANRIND" in df.columns and df["ANRIND"].notna().any()
    if not collected:
        if "ANRLO" not in df.columns and "ANRHI" not in df.columns:
            return df
        df["ANRIND"] = derive_reference_range_indicator(df)

    base_ind = (
        df.loc[df["ABLFL"] == "Y", ["USUBJID", "PARAMCD", "ANRIND"]]
        .rename(columns={"ANRIND": "BNRIND"})
        .drop_duplicates(["USUBJID", "PARAMCD"])
    )
    keys = pd.MultiIndex.from_frame(df[["USUBJID", "PARAMCD"]])
    lookup = base_ind.set_index(["USUBJID", "PARAMCD"])["BNRIND"]
    df["BNRIND"] = lookup.reindex(keys).to_numpy()
    df["BNRIND"] = df["BNRIND"].map(lambda v: v if isinstance(v, str) else None)
    df["SHIFT1"] = [
        f"{b} to {a}" if isinstance(b, str) and isinstance(a, str) else None
        for b, a in zip(df["BNRIND"], df["ANRIND"], strict=True)
    ]
    return df


def derive_qtcf_criteria(df: pd.DataFrame) -> pd.DataFrame:
    """Derive CRIT1/CRIT1FL QTcF categorical bands for ADEG.

    The highest band exceeded wins; non-QTCF records get no band.
    """
    aval = pd.to_numeric(df["AVAL"], errors="coerce")
    is_qtcf = df["PARAMCD"] == "QTCF"
    conditions = [is_qtcf & (aval > threshold) for threshold, _ in _QTCF_BANDS]
    labels = [label for _, label in _QTCF_BANDS]

    df["CRIT1"] = _selected(conditions, labels, df.index)
    df["CRIT1FL"] = df["CRIT1"].map(lambda c: "Y" if c is not None else "N")
    return df


DOMAIN_DERIVATIONS: dict[str, Callable[[pd.DataFrame], pd.DataFrame]] = {
    "LB": derive_lab_shift,
    "EG": derive_qtcf_criteria,
}


def _analysis_flag(df: pd.DataFrame) -> pd.Series:
    """ANL01FL: post-anchor record with a numeric analysis value."""
    flags = []
    for adt, anchor, aval in zip(df["ADT"], df["anchor_date"], df["AVAL"], strict=True):
        post = adt is not None and anchor is not None and not pd.isna(adt) and adt > anchor
        flags.append("Y" if post and not pd.isna(aval) else "N")
    return pd.Series(flags, index=df.index)


def build_bds_dataset(
    findings: pd.DataFrame,
    adsl: pd.DataFrame,
    domain: str,
    config: StudyConfig,
) -> DerivedDataset:
    """Build a BDS analysis dataset from an SDTM Findings domain and ADSL.

    Args:
        findings: SDTM Findings DataFrame (VS, LB, EG, ...).
        adsl: Subject-level dataset holding the anchor variable.
        domain: SDTM domain code of ``findings``.
        config: Study configuration (anchor variable, strictness).

    Returns:
        DerivedDataset whose ``data`` has one row per ingested Findings row, in
        input order, and whose ``errors`` list the rejected subjects.

    Raises:
        StructuralInputError: If a required Findings column is missing.
        DuplicateReferenceAnchorError: If ADSL has duplicate subjects and
            ``config.strict_reference`` is set.
        KeyError: If ADSL lacks the anchor or subject variable.
    """
    domain = domain.upper()
    ingest = observations_from_frame(findings, domain)
    errors: list[StructuralInputError] = list(ingest.errors)

    resolver = ReferenceDateResolver.from_frame(
        adsl,
        anchor_col=config.anchor_variable,
        subject_col=config.subject_variable,
        strict=config.strict_reference,
    )
    errors.extend(resolver.errors)

    records = AnalysisRecordBuilder(resolver).build(ingest.observations)
    df = records_to_frame(records).rename(columns=RECORD_TO_ADAM)

    df["ABLFL"] = df["is_baseline"].map(lambda b: "Y" if b else "N")
    df["ANL01FL"] = _analysis_flag(df)
    df = df.drop(columns=["is_baseline", "is_post_baseline", "anchor_date"])

    if "STUDYID" not in df.columns or df["STUDYID"].isna().all():
        df["STUDYID"] = config.study_id

    df = carry_adsl_variables(df, adsl, config.subject_variable)

    derive = DOMAIN_DERIVATIONS.get(domain)
    if derive is not None and not df.empty:
        df = derive(df)

    order = [c.format(prefix=domain) for c in BDS_COLUMN_ORDER]
    ordered = [c for c in order if c in df.columns]
    df = df[ordered + [c for c in df.columns if c not in ordered]]

    logger.info(
        "Created AD{}: {} records ({} baseline, {} post-baseline analysis)",
        domain,
        len(df),
        int((df["ABLFL"] == "Y").sum()),
        int((df["ANL01FL"] == "Y").sum()),
    )
    return DerivedDataset(data=df, errors=errors)
