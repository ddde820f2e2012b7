"""Per-subject reference anchor lookup.

ReferenceDateResolver is a pure key lookup over the subject-level reference
table (typically ADSL.TRTSDT). It never infers a fallback date: an unknown
subject or an empty anchor resolves to None and callers propagate absence.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import date

import pandas as pd
from loguru import logger

from trialderive.derivation.dates import coerce_date
from trialderive.models.errors import (
    DuplicateReferenceAnchorError,
    MalformedDateError,
    StructuralInputError,
)
from trialderive.models.observation import ReferenceDate


class ReferenceDateResolver:
    """Resolve each subject's fixed temporal anchor.

    Duplicate subject keys in the reference table are a structural error.
    In strict mode (default) construction raises DuplicateReferenceAnchorError.
    In non-strict mode the affected subjects are listed in
    ``rejected_subjects`` and resolve to None -- no row is ever picked.

    Subjects whose anchor could not be parsed are always rejected, never
    raised: the rest of the table stays usable.

    Args:
        references: One ReferenceDate per subject.
        strict: Raise on duplicate subject keys instead of rejecting them.
        malformed: Anchor parse failures for subjects left out of
            ``references``.
    """

    def __init__(
        self,
        references: Iterable[ReferenceDate],
        *,
        strict: bool = True,
        malformed: Iterable[MalformedDateError] = (),
    ) -> None:
        refs = list(references)
        counts = Counter(r.subject_id for r in refs)
        duplicates = sorted(s for s, n in counts.items() if n > 1)

        if duplicates and strict:
            raise DuplicateReferenceAnchorError(duplicates)

        self._errors: list[StructuralInputError] = []
        if duplicates:
            self._errors.append(DuplicateReferenceAnchorError(duplicates))
        self._errors.extend(malformed)

        self._rejected = frozenset(s for e in self._errors for s in e.subject_ids)
        self._anchors: dict[str, date | None] = {
            r.subject_id: r.anchor_date for r in refs if r.subject_id not in self._rejected
        }

        for err in self._errors:
            logger.warning(
                "Rejected reference subject(s) {}: {}", ", ".join(err.subject_ids), err
            )
        logger.debug(
            "Reference resolver ready: {} subjects ({} without anchor)",
            len(self._anchors),
            sum(1 for a in self._anchors.values() if a is None),
        )

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        anchor_col: str = "TRTSDT",
        subject_col: str = "USUBJID",
        *,
        strict: bool = True,
    ) -> ReferenceDateResolver:
        """Build a resolver from a subject-level DataFrame (e.g., ADSL).

        Rows without a subject identifier are skipped. A subject whose
        anchor cannot be parsed is rejected and reported in ``errors``.

        Args:
            df: Subject-level DataFrame, one row per subject.
            anchor_col: Column holding the anchor date.
            subject_col: Column holding the subject identifier.
            strict: Raise on duplicate subject keys.

        Raises:
            KeyError: If either column is missing.
            DuplicateReferenceAnchorError: On duplicate subjects in strict mode.
        """
        missing = [c for c in [subject_col, anchor_col] if c not in df.columns]
        if missing:
            raise KeyError(f"Missing required columns: {missing}")

        refs: list[ReferenceDate] = []
        malformed: dict[str, MalformedDateError] = {}
        for subject, anchor in zip(df[subject_col], df[anchor_col], strict=True):
            if subject is None or pd.isna(subject):
                continue
            subject_id = str(subject)
            try:
                anchor_date = coerce_date(anchor, subject_id)
            except MalformedDateError as exc:
                malformed.setdefault(subject_id, exc)
                continue
            refs.append(ReferenceDate(subject_id=subject_id, anchor_date=anchor_date))
        refs = [r for r in refs if r.subject_id not in malformed]
        return cls(refs, strict=strict, malformed=malformed.values())

    def resolve(self, subject_id: str) -> date | None:
        """Return the subject's anchor date, or None if unknown/empty/rejected."""
        return self._anchors.get(subject_id)

    @property
    def errors(self) -> list[StructuralInputError]:
        """Structural errors behind the rejected subjects."""
        return list(self._errors)

    @property
    def rejected_subjects(self) -> list[str]:
        """Subjects rejected for duplicate (non-strict) or malformed anchors."""
        return sorted(self._rejected)

    @property
    def subjects(self) -> list[str]:
        """Subjects with exactly one reference row."""
        return sorted(self._anchors)

    def as_dict(self) -> dict[str, date | None]:
        """Return a copy of the subject -> anchor mapping."""
        return dict(self._anchors)

    def __contains__(self, subject_id: object) -> bool:
        return subject_id in self._anchors

    def __len__(self) -> int:
        return len(self._anchors)
