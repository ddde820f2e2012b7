"""Batch orchestration of the ADaM derivations."""

from trialderive.pipeline.report import BatchReport, UnitResult, UnitStatus
from trialderive.pipeline.runner import run_analysis

__all__ = ["BatchReport", "UnitResult", "UnitStatus", "run_analysis"]
