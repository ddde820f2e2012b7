"""Per-subject longitudinal derivation engine.

Re-exports the core functions for convenient imports:
    from trialderive.derivation import calculate_study_day, select_baseline
    from trialderive.derivation import derive_change, AnalysisRecordBuilder
"""

from trialderive.derivation.baseline import baseline_position, select_baseline
from trialderive.derivation.builder import (
    AnalysisRecordBuilder,
    is_post_baseline,
    records_to_frame,
)
from trialderive.derivation.change import ChangeResult, derive_change
from trialderive.derivation.dates import coerce_date
from trialderive.derivation.reference_date import ReferenceDateResolver
from trialderive.derivation.study_day import (
    calculate_study_day,
    calculate_study_day_column,
    day,
)

__all__ = [
    # dates
    "coerce_date",
    # reference anchors
    "ReferenceDateResolver",
    # study day
    "calculate_study_day",
    "calculate_study_day_column",
    "day",
    # baseline
    "select_baseline",
    "baseline_position",
    # change
    "ChangeResult",
    "derive_change",
    # builder
    "AnalysisRecordBuilder",
    "is_post_baseline",
    "records_to_frame",
]
