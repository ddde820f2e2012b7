"""Dataset readers and CSV / XPT v5 writers."""

from trialderive.io.readers import read_dataset, read_study_folder
from trialderive.io.writer import write_dataset
from trialderive.io.xpt_writer import XPTValidationError, validate_for_xpt_v5, write_xpt_v5

__all__ = [
    "read_dataset",
    "read_study_folder",
    "write_dataset",
    "write_xpt_v5",
    "validate_for_xpt_v5",
    "XPTValidationError",
]
