"""ADaM dataset assembly: ADSL, BDS findings and occurrence datasets.

Re-exports:
    from trialderive.adam import build_adsl, build_bds_dataset, build_occurrence_dataset
"""

from trialderive.adam.adsl import ADSL_RULES, build_adsl
from trialderive.adam.bds import (
    build_bds_dataset,
    carry_adsl_variables,
    derive_lab_shift,
    derive_qtcf_criteria,
)
from trialderive.adam.labels import ADAM_LABELS, DATASET_LABELS
from trialderive.adam.occurrence import OCCURRENCE_RULES, build_occurrence_dataset
from trialderive.adam.result import DerivedDataset

__all__ = [
    "ADSL_RULES",
    "build_adsl",
    "DerivedDataset",
    "build_bds_dataset",
    "carry_adsl_variables",
    "derive_lab_shift",
    "derive_qtcf_criteria",
    "OCCURRENCE_RULES",
    "build_occurrence_dataset",
    "ADAM_LABELS",
    "DATASET_LABELS",
]
