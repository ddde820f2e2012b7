"""Result container shared by the analysis dataset builders."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from trialderive.models.errors import StructuralInputError


@dataclass
class DerivedDataset:
    """An analysis dataset plus the structural errors raised while building it.

    Subjects named in ``errors`` are rejected: they are either absent from
    ``data`` or present without derived values, depending on the builder.
    """

    data: pd.DataFrame
    errors: list[StructuralInputError] = field(default_factory=list)

    @property
    def rejected_subjects(self) -> list[str]:
        return sorted({s for e in self.errors for s in e.subject_ids})
