"""ADSL (Subject-Level Analysis Dataset) assembly.

Builds one row per subject from SDTM DM (and optionally DS). ADSL is where
each subject's reference anchor (TRTSDT) is fixed, so duplicate subjects in
DM are rejected rather than collapsed, and a subject with an unparseable
date is kept without dates and reported instead of failing the dataset.
"""

from __future__ import annotations

import math

import pandas as pd
from loguru import logger

from trialderive.adam.result import DerivedDataset
from trialderive.mapping.ingest import parse_subject_dates
from trialderive.mapping.rules import MappingRule, apply_mapping_rules
from trialderive.models.errors import DuplicateReferenceAnchorError, MalformedDateError

ADSL_RULES: list[MappingRule] = [
    MappingRule(source="STUDYID", target="STUDYID", transform="strip"),
    MappingRule(source="USUBJID", target="USUBJID", transform="strip", required=True),
    MappingRule(source="SUBJID", target="SUBJID", transform="strip"),
    MappingRule(source="SITEID", target="SITEID", transform="strip"),
    MappingRule(source="ARM", target="TRT01P", transform="strip"),
    MappingRule(source="ARMCD", target="ARMCD", transform="strip"),
    MappingRule(source="ACTARM", target="TRT01A", transform="strip"),
    MappingRule(source="ACTARMCD", target="ACTARMCD", transform="strip"),
    MappingRule(source="RFXSTDTC", target="TRTSDT", transform="strip"),
    MappingRule(source="RFXENDTC", target="TRTEDT", transform="strip"),
    MappingRule(source="RFICDTC", target="RANDDT", transform="strip"),
    MappingRule(source="DTHDTC", target="DTHDT", transform="strip"),
    MappingRule(source="DTHFL", target="DTHFL", transform="upper"),
    MappingRule(source="AGE", target="AGE", transform="to_numeric"),
    MappingRule(source="AGEU", target="AGEU", transform="upper"),
    MappingRule(source="SEX", target="SEX", transform="upper"),
    MappingRule(source="RACE", target="RACE", transform="upper"),
    MappingRule(source="ETHNIC", target="ETHNIC", transform="upper"),
    MappingRule(source="COUNTRY", target="COUNTRY", transform="upper"),
]

_DATE_VARIABLES: list[str] = ["TRTSDT", "TRTEDT", "RANDDT", "DTHDT"]

_AGE_GROUPS: list[tuple[float, float, str, int]] = [
    (float("-inf"), 18, "<18", 1),
    (18, 65, "18-64", 2),
    (65, 75, "65-74", 3),
    (75, float("inf"), ">=75", 4),
]

_RACE_CODES: dict[str, int] = {
    "WHITE": 1,
    "BLACK OR AFRICAN AMERICAN": 2,
    "ASIAN": 3,
}

ADSL_COLUMN_ORDER: list[str] = [
    "STUDYID", "USUBJID", "SUBJID", "SITEID",
    "TRT01P", "TRT01PN", "TRT01A", "TRT01AN",
    "TRTSDT", "TRTEDT", "TRTDURD", "RANDDT", "EOSDT", "DTHDT",
    "DCSREAS", "DCSREASP", "DTHFL",
    "SAFFL", "ITTFL", "PPROTFL", "EFFFL",
    "AGE", "AGEU", "AGEGR1", "AGEGR1N", "SEX", "RACE", "RACEN", "ETHNIC", "COUNTRY",
]  # fmt: skip


def _numeric_codes(codes: pd.Series) -> pd.Series:
    """Number treatment codes 1..n in sorted order (missing stays missing)."""
    levels = sorted({c for c in codes if _present(c)})
    lookup = {code: idx + 1 for idx, code in enumerate(levels)}
    return pd.Series(
        [lookup.get(c) if _present(c) else None for c in codes], index=codes.index, dtype="Int64"
    )


def _age_group(age: float | None) -> tuple[str | None, int | None]:
    if age is None or pd.isna(age):
        return None, None
    for low, high, label, code in _AGE_GROUPS:
        if low <= age < high:
            return label, code
    return None, None


def _present(value: object) -> bool:
    return value is not None and not (isinstance(value, float) and math.isnan(value))


def _flag(mask: pd.Series) -> pd.Series:
    return mask.map(lambda m: "Y" if m else "N")


def _parse_dates(
    frame: pd.DataFrame, column: str, malformed: dict[str, MalformedDateError]
) -> pd.Series:
    parsed = parse_subject_dates(frame["USUBJID"], frame[column], malformed)
    return pd.Series(parsed, index=frame.index, dtype=object)


def _disposition(
    ds: pd.DataFrame | None, malformed: dict[str, MalformedDateError]
) -> pd.DataFrame:
    """Extract end-of-study date and discontinuation reason per subject."""
    columns = ["USUBJID", "EOSDT_DS", "DCSREAS", "DCSREASP"]
    if ds is None or ds.empty or "DSDECOD" not in ds.columns:
        return pd.DataFrame(columns=columns)

    decod = ds["DSDECOD"].astype(str).str.strip().str.upper()

    completed = ds.loc[decod == "COMPLETED"]
    if "DSSTDTC" in completed.columns:
        comp = apply_mapping_rules(
            completed,
            [
                MappingRule(source="USUBJID", target="USUBJID", transform="strip", required=True),
                MappingRule(source="DSSTDTC", target="EOSDT_DS", transform="strip"),
            ],
        )
        comp["EOSDT_DS"] = _parse_dates(comp, "EOSDT_DS", malformed)
        comp = comp.drop_duplicates("USUBJID", keep="first")
    else:
        comp = pd.DataFrame(columns=["USUBJID", "EOSDT_DS"])

    disc_rows = ds.loc[decod == "DISCONTINUED"]
    disc = apply_mapping_rules(
        disc_rows,
        [
            MappingRule(source="USUBJID", target="USUBJID", transform="strip", required=True),
            MappingRule(source="DSTERM", target="DCSREAS", transform="strip"),
            MappingRule(source="DSDECOD", target="DCSREASP", transform="upper"),
        ],
    ).drop_duplicates("USUBJID", keep="first")

    return comp.merge(disc, on="USUBJID", how="outer")[columns]


def build_adsl(dm: pd.DataFrame, ds: pd.DataFrame | None = None) -> DerivedDataset:
    """Build ADSL from SDTM DM and DS.

    Derivations:
        - TRT01P/TRT01A from ARM/ACTARM; TRT01PN/TRT01AN number the sorted
          ARMCD/ACTARMCD levels from 1.
        - TRTSDT/TRTEDT/RANDDT/DTHDT from RFXSTDTC/RFXENDTC/RFICDTC/DTHDTC.
        - TRTDURD = TRTEDT - TRTSDT + 1 when both dates are present.
        - EOSDT from the DS COMPLETED record, else TRTEDT; DCSREAS from the
          DS DISCONTINUED term, else "COMPLETED".
        - SAFFL (TRTSDT present), ITTFL (RANDDT present), PPROTFL
          (DCSREAS == "COMPLETED"), EFFFL = ITTFL.
        - AGEGR1/AGEGR1N and RACEN.

    A subject with a malformed date in DM or DS keeps its ADSL row but all of
    its dates are cleared, so it has no anchor downstream; the parse error is
    returned in ``errors``.

    Args:
        dm: SDTM DM DataFrame, one row per subject.
        ds: Optional SDTM DS DataFrame.

    Returns:
        DerivedDataset with one ADSL row per subject in DM order.

    Raises:
        DuplicateReferenceAnchorError: If a USUBJID appears more than once in DM.
        StructuralInputError: If DM has no USUBJID column.
    """
    adsl = apply_mapping_rules(dm, ADSL_RULES).reset_index(drop=True)

    dupes = adsl.loc[adsl["USUBJID"].duplicated(keep=False), "USUBJID"]
    if not dupes.empty:
        raise DuplicateReferenceAnchorError(dupes.dropna().astype(str))

    malformed: dict[str, MalformedDateError] = {}
    for col in _DATE_VARIABLES:
        adsl[col] = _parse_dates(adsl, col, malformed)

    adsl["TRT01PN"] = _numeric_codes(adsl.pop("ARMCD"))
    adsl["TRT01AN"] = _numeric_codes(adsl.pop("ACTARMCD"))

    disp = _disposition(ds, malformed)
    adsl = adsl.merge(disp, on="USUBJID", how="left")
    adsl["EOSDT"] = [
        eos if _present(eos) else trt
        for eos, trt in zip(adsl.pop("EOSDT_DS"), adsl["TRTEDT"], strict=True)
    ]
    adsl["DCSREAS"] = adsl["DCSREAS"].map(lambda v: v if _present(v) else "COMPLETED")
    adsl["DCSREASP"] = adsl["DCSREASP"].map(lambda v: v if _present(v) else None)

    subjects = set(adsl["USUBJID"])
    errors = [err for subject, err in malformed.items() if subject in subjects]
    rejected = adsl["USUBJID"].isin([s for s in malformed if s in subjects])
    for col in [*_DATE_VARIABLES, "EOSDT"]:
        adsl[col] = pd.Series(
            [None if r else v for r, v in zip(rejected, adsl[col], strict=True)],
            index=adsl.index,
            dtype=object,
        )

    adsl["TRTDURD"] = pd.Series(
        [
            (end - start).days + 1 if start is not None and end is not None else None
            for start, end in zip(adsl["TRTSDT"], adsl["TRTEDT"], strict=True)
        ],
        index=adsl.index,
        dtype="Int64",
    )

    adsl["DTHFL"] = _flag(adsl["DTHFL"] == "Y")
    adsl["SAFFL"] = _flag(adsl["TRTSDT"].notna())
    adsl["ITTFL"] = _flag(adsl["RANDDT"].notna())
    adsl["PPROTFL"] = _flag(adsl["DCSREAS"] == "COMPLETED")
    adsl["EFFFL"] = adsl["ITTFL"]

    groups = adsl["AGE"].map(_age_group)
    adsl["AGEGR1"] = groups.map(lambda g: g[0])
    adsl["AGEGR1N"] = groups.map(lambda g: g[1]).astype("Int64")
    adsl["RACEN"] = pd.Series(
        [_RACE_CODES.get(r, 4) if _present(r) else None for r in adsl["RACE"]],
        index=adsl.index,
        dtype="Int64",
    )

    ordered = [c for c in ADSL_COLUMN_ORDER if c in adsl.columns]
    adsl = adsl[ordered + [c for c in adsl.columns if c not in ordered]]

    for err in errors:
        logger.warning("ADSL: dates cleared for {}: {}", ", ".join(err.subject_ids), err)
    logger.info(
        "Created ADSL: {} subjects (safety {}, ITT {}, per-protocol {})",
        len(adsl),
        int((adsl["SAFFL"] == "Y").sum()),
        int((adsl["ITTFL"] == "Y").sum()),
        int((adsl["PPROTFL"] == "Y").sum()),
    )
    return DerivedDataset(data=adsl, errors=errors)
