"""Pydantic data models shared across all trialderive components.

All models are re-exported here for convenient imports:
    from trialderive.models import Observation, AnalysisRecord, StudyConfig
"""

from trialderive.models.config import (
    ExportConfig,
    StudyConfig,
    ValidationThresholds,
    load_study_config,
)
from trialderive.models.errors import (
    DuplicateReferenceAnchorError,
    ErrorKind,
    MalformedDateError,
    StructuralInputError,
)
from trialderive.models.observation import AnalysisRecord, Observation, ReferenceDate

__all__ = [
    # records
    "Observation",
    "ReferenceDate",
    "AnalysisRecord",
    # errors
    "ErrorKind",
    "StructuralInputError",
    "DuplicateReferenceAnchorError",
    "MalformedDateError",
    # config
    "StudyConfig",
    "ExportConfig",
    "ValidationThresholds",
    "load_study_config",
]
