"""Batch report models for the derivation pipeline.

Every unit of work (one analysis dataset) produces a UnitResult; the
BatchReport collects them so a failure in one unit never hides the others.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from trialderive.models.errors import ErrorKind


class UnitStatus(StrEnum):
    """Outcome of a single pipeline unit."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class UnitResult(BaseModel):
    """Outcome of building one analysis dataset."""

    unit: str = Field(..., description="Unit name (e.g., 'ADLB')")
    status: UnitStatus = Field(..., description="Whether the unit produced a dataset")
    row_count: int = Field(default=0, description="Rows in the produced dataset")
    elapsed_seconds: float = Field(default=0.0, description="Wall-clock time for the unit")
    error_kind: ErrorKind | None = Field(
        default=None, description="Structural error kind when the unit failed"
    )
    error_message: str | None = Field(default=None, description="Failure message")
    rejected_subjects: list[str] = Field(
        default_factory=list,
        description="Subjects excluded from an otherwise successful unit",
    )

    @property
    def ok(self) -> bool:
        return self.status == UnitStatus.SUCCESS


class BatchReport(BaseModel):
    """All unit results for one pipeline run."""

    study_id: str = Field(..., description="Study identifier")
    results: list[UnitResult] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def failed_units(self) -> list[str]:
        """Names of the units that did not produce a dataset."""
        return [r.unit for r in self.results if not r.ok]

    @property
    def rejected_subjects(self) -> dict[str, list[str]]:
        """Unit name -> subjects rejected within that unit (non-empty only)."""
        return {r.unit: r.rejected_subjects for r in self.results if r.rejected_subjects}

    def add(self, result: UnitResult) -> None:
        self.results.append(result)
