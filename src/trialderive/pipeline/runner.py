"""Batch runner: ADSL then each configured analysis dataset as an isolated unit."""

from __future__ import annotations

import time

import pandas as pd
from loguru import logger

from trialderive.adam.adsl import build_adsl
from trialderive.adam.bds import build_bds_dataset
from trialderive.adam.occurrence import OCCURRENCE_RULES, build_occurrence_dataset
from trialderive.models.config import StudyConfig
from trialderive.models.errors import ErrorKind, StructuralInputError
from trialderive.pipeline.report import BatchReport, UnitResult, UnitStatus


def _failed(unit: str, start: float, message: str, kind: ErrorKind | None) -> UnitResult:
    return UnitResult(
        unit=unit,
        status=UnitStatus.FAILED,
        elapsed_seconds=time.monotonic() - start,
        error_kind=kind,
        error_message=message,
    )


def _run_unit(
    unit: str,
    config: StudyConfig,
    sdtm: dict[str, pd.DataFrame],
    adsl: pd.DataFrame,
) -> tuple[pd.DataFrame | None, UnitResult]:
    domain = config.datasets[unit]
    start = time.monotonic()

    source = sdtm.get(domain.lower())
    if source is None:
        msg = f"Source domain {domain} not found"
        logger.error("{}: {}", unit, msg)
        return None, _failed(unit, start, msg, None)

    try:
        if domain in OCCURRENCE_RULES:
            built = build_occurrence_dataset(source, adsl, domain, config)
        else:
            built = build_bds_dataset(source, adsl, domain, config)
    except StructuralInputError as exc:
        logger.error("{} failed: {}", unit, exc)
        return None, _failed(unit, start, str(exc), exc.kind)
    except Exception as exc:
        logger.exception("{} failed unexpectedly", unit)
        return None, _failed(unit, start, str(exc), None)

    result = UnitResult(
        unit=unit,
        status=UnitStatus.SUCCESS,
        row_count=len(built.data),
        elapsed_seconds=time.monotonic() - start,
        rejected_subjects=built.rejected_subjects,
    )
    return built.data, result


def run_analysis(
    config: StudyConfig,
    sdtm: dict[str, pd.DataFrame],
    adsl: pd.DataFrame | None = None,
) -> tuple[dict[str, pd.DataFrame], BatchReport]:
    """Derive ADSL and every configured analysis dataset.

    Each dataset is an independent unit: a structural error or a missing
    source domain fails that unit only and the batch continues. Within a
    unit, a subject with a malformed date is left out (or, in ADSL, keeps
    its row with no dates) and is listed in the unit's ``rejected_subjects``.

    Args:
        config: Study configuration.
        sdtm: SDTM DataFrames keyed by lower-case domain code ("dm", "lb", ...).
        adsl: Pre-built ADSL. Built from ``sdtm["dm"]`` (and ``"ds"``) if omitted.

    Returns:
        Tuple of (datasets keyed by upper-case name, BatchReport). ADSL is
        included in both when it was built here.
    """
    report = BatchReport(study_id=config.study_id)
    datasets: dict[str, pd.DataFrame] = {}

    if adsl is None:
        start = time.monotonic()
        dm = sdtm.get("dm")
        if dm is None:
            report.add(_failed("ADSL", start, "Source domain DM not found", None))
            logger.error("ADSL: source domain DM not found; skipping analysis datasets")
            return datasets, report
        try:
            built = build_adsl(dm, sdtm.get("ds"))
        except StructuralInputError as exc:
            logger.error("ADSL failed: {}", exc)
            report.add(_failed("ADSL", start, str(exc), exc.kind))
            return datasets, report
        except Exception as exc:
            logger.exception("ADSL failed unexpectedly")
            report.add(_failed("ADSL", start, str(exc), None))
            return datasets, report
        adsl = built.data
        datasets["ADSL"] = adsl
        report.add(
            UnitResult(
                unit="ADSL",
                status=UnitStatus.SUCCESS,
                row_count=len(adsl),
                elapsed_seconds=time.monotonic() - start,
                rejected_subjects=built.rejected_subjects,
            )
        )

    for unit in config.datasets:
        data, result = _run_unit(unit, config, sdtm, adsl)
        report.add(result)
        if data is not None:
            datasets[unit] = data

    logger.info(
        "Batch {} complete: {} succeeded, {} failed",
        config.study_id,
        report.success_count,
        report.failure_count,
    )
    return datasets, report
