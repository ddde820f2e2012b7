"""Structural input error taxonomy.

Missing data is not an error anywhere in this package -- it propagates as
None. The exceptions here signal that an upstream collaborator produced data
that violates a stated precondition (duplicate anchors, unparseable dates,
absent required columns). They are raised by the core and ingestion layers
and converted into per-unit failures by the batch runner.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum


class ErrorKind(StrEnum):
    """Kinds of structural input errors.

    DUPLICATE_REFERENCE_ANCHOR: A subject has more than one reference row.
    MALFORMED_DATE: A non-empty date value that is not ISO 8601.
    MISSING_REQUIRED_COLUMN: A source column a mapping rule requires is absent.
    """

    DUPLICATE_REFERENCE_ANCHOR = "DuplicateReferenceAnchor"
    MALFORMED_DATE = "MalformedDate"
    MISSING_REQUIRED_COLUMN = "MissingRequiredColumn"


class StructuralInputError(Exception):
    """Raised when input data violates a structural precondition.

    Attributes:
        kind: The ErrorKind classifying the violation.
        subject_ids: Subjects affected (empty when the error is not
            subject-specific, e.g. a missing column).
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        subject_ids: Iterable[str] = (),
    ) -> None:
        self.kind = kind
        self.subject_ids = sorted(set(subject_ids))
        super().__init__(f"[{kind}] {message}")


class DuplicateReferenceAnchorError(StructuralInputError):
    """Raised when the reference table holds more than one row per subject."""

    def __init__(self, subject_ids: Iterable[str]) -> None:
        ids = sorted(set(subject_ids))
        preview = ", ".join(ids[:10])
        if len(ids) > 10:
            preview += f", ... ({len(ids)} total)"
        super().__init__(
            ErrorKind.DUPLICATE_REFERENCE_ANCHOR,
            f"Duplicate reference anchor rows for subject(s): {preview}",
            ids,
        )


class MalformedDateError(StructuralInputError):
    """Raised when a date value cannot be parsed as ISO 8601."""

    def __init__(self, value: object, subject_id: str | None = None) -> None:
        self.value = value
        where = f" for subject {subject_id}" if subject_id else ""
        super().__init__(
            ErrorKind.MALFORMED_DATE,
            f"Malformed date value {value!r}{where}",
            [subject_id] if subject_id else [],
        )
