"""Study configuration passed explicitly into every pipeline entry point.

Replaces module-level study metadata and path tables: nothing in the
package reads configuration from globals or the environment. A config is
loaded from JSON once (typically by the CLI) and handed down.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, field_validator

ExportFormat = Literal["csv", "xpt"]


def _default_datasets() -> dict[str, str]:
    return {"ADVS": "VS", "ADLB": "LB", "ADEG": "EG"}


class ExportConfig(BaseModel):
    """Which serializations to produce for each output dataset."""

    formats: list[ExportFormat] = Field(
        default_factory=lambda: ["csv", "xpt"],
        description="Output formats written per dataset",
    )


class ValidationThresholds(BaseModel):
    """Tolerances applied by the ADaM conformance rules."""

    max_missing_baseline: int = Field(
        default=0,
        ge=0,
        description="Subject/parameter groups allowed without a baseline before warning",
    )


class StudyConfig(BaseModel):
    """Study-level constants for the ADaM derivation pipeline.

    ``datasets`` maps each analysis dataset to the SDTM domain it is derived
    from (e.g., ``{"ADLB": "LB"}``). Findings domains build BDS datasets;
    the event domains AE and CM build ADAE and ADCM.
    """

    study_id: str = Field(..., min_length=1, description="Study identifier (e.g., 'DQCC-001')")
    anchor_variable: str = Field(
        default="TRTSDT",
        description="ADSL variable holding each subject's reference anchor date",
    )
    subject_variable: str = Field(
        default="USUBJID", description="Subject identifier variable name"
    )
    datasets: dict[str, str] = Field(
        default_factory=_default_datasets,
        description="Analysis dataset name -> source SDTM domain",
    )
    export: ExportConfig = Field(default_factory=ExportConfig)
    validation: ValidationThresholds = Field(default_factory=ValidationThresholds)
    strict_reference: bool = Field(
        default=True,
        description="Raise on duplicate reference anchors instead of rejecting subjects",
    )

    @field_validator("datasets")
    @classmethod
    def _upper_dataset_names(cls, v: dict[str, str]) -> dict[str, str]:
        return {name.upper(): domain.upper() for name, domain in v.items()}


def load_study_config(path: str | Path) -> StudyConfig:
    """Load and validate a StudyConfig from a JSON file.

    Args:
        path: Path to a JSON document matching the StudyConfig schema.

    Returns:
        Validated StudyConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the content does not match the schema.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Study config not found: {path}"
        raise FileNotFoundError(msg)

    config = StudyConfig.model_validate_json(path.read_text())
    logger.info(
        "Loaded study config for {} ({} analysis datasets)",
        config.study_id,
        len(config.datasets),
    )
    return config
