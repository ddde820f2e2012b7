"""Tests for AnalysisRecordBuilder: per-record study day, baseline, and change."""

from __future__ import annotations

from datetime import date

import pytest

from trialderive.derivation.builder import (
    AnalysisRecordBuilder,
    is_post_baseline,
    records_to_frame,
)
from trialderive.derivation.reference_date import ReferenceDateResolver
from trialderive.models.observation import AnalysisRecord, Observation, ReferenceDate


def _obs(subject: str, param: str, obs_date: date | None, value: float | None) -> Observation:
    return Observation(
        subject_id=subject,
        parameter_code=param,
        observation_date=obs_date,
        value=value,
        character_value=str(value) if value is not None else None,
    )


def _build(
    observations: list[Observation], anchors: dict[str, date | None]
) -> list[AnalysisRecord]:
    refs = [ReferenceDate(subject_id=s, anchor_date=d) for s, d in anchors.items()]
    return AnalysisRecordBuilder(ReferenceDateResolver(refs)).build(observations)


def _study_observations() -> tuple[list[Observation], dict[str, date | None]]:
    """Five interleaved subjects, each with a different baseline outcome."""
    obs = [
        _obs("S1", "HGB", date(2024, 1, 8), 13.0),
        _obs("S2", "ALT", date(2024, 3, 5), 0.0),
        _obs("S1", "HGB", date(2024, 1, 10), 13.2),
        _obs("S3", "HGB", date(2024, 1, 5), 11.0),
        _obs("S4", "BILI", date(2024, 1, 30), 0.0),
        _obs("S1", "HGB", date(2024, 1, 17), 12.5),
        _obs("S4", "BILI", date(2024, 2, 8), 0.5),
        _obs("S5", "WT", date(2024, 1, 1), 70.0),
        _obs("S5", "WT", date(2024, 1, 1), 71.0),
        _obs("S5", "WT", date(2024, 1, 15), 72.5),
    ]
    anchors = {
        "S1": date(2024, 1, 10),
        "S2": date(2024, 3, 1),
        "S3": None,
        "S4": date(2024, 2, 1),
        "S5": date(2024, 1, 1),
    }
    return obs, anchors


class TestSubjectOutcomes:
    """End-to-end derivation over the mixed subject set."""

    def test_latest_eligible_baseline(self) -> None:
        records = _build(
            [
                _obs("S1", "HGB", date(2024, 1, 8), 13.0),
                _obs("S1", "HGB", date(2024, 1, 10), 13.2),
                _obs("S1", "HGB", date(2024, 1, 17), 12.5),
            ],
            {"S1": date(2024, 1, 10)},
        )
        assert [r.study_day for r in records] == [-2, 1, 8]
        assert [r.is_baseline for r in records] == [False, True, False]
        assert all(r.baseline_value == 13.2 for r in records)
        assert records[2].change_from_baseline == pytest.approx(-0.7)
        assert records[2].percent_change_from_baseline == pytest.approx(-5.30, abs=0.01)

    def test_day_one_baseline_has_zero_change(self) -> None:
        records = _build(
            [
                _obs("S1", "HGB", date(2024, 1, 10), 13.2),
                _obs("S1", "HGB", date(2024, 1, 17), 12.5),
            ],
            {"S1": date(2024, 1, 10)},
        )
        assert records[0].study_day == 1
        assert records[0].is_baseline
        assert records[0].is_post_baseline
        assert records[0].change_from_baseline == 0.0
        assert records[0].percent_change_from_baseline == 0.0

    def test_no_eligible_baseline(self) -> None:
        records = _build([_obs("S2", "ALT", date(2024, 3, 5), 0.0)], {"S2": date(2024, 3, 1)})
        rec = records[0]
        assert rec.study_day == 5
        assert rec.value == 0.0
        assert rec.baseline_value is None
        assert rec.change_from_baseline is None
        assert rec.percent_change_from_baseline is None
        assert rec.is_baseline is False

    def test_no_anchor(self) -> None:
        records = _build([_obs("S3", "HGB", date(2024, 1, 5), 11.0)], {"S3": None})
        assert len(records) == 1
        rec = records[0]
        assert rec.study_day is None
        assert rec.baseline_value is None
        assert rec.change_from_baseline is None
        assert rec.percent_change_from_baseline is None

    def test_subject_not_on_file(self) -> None:
        records = _build([_obs("S3", "HGB", date(2024, 1, 5), 11.0)], {})
        assert len(records) == 1
        assert records[0].study_day is None

    def test_zero_baseline(self) -> None:
        records = _build(
            [
                _obs("S4", "BILI", date(2024, 1, 30), 0.0),
                _obs("S4", "BILI", date(2024, 2, 8), 0.5),
            ],
            {"S4": date(2024, 2, 1)},
        )
        assert records[0].is_baseline
        assert records[1].change_from_baseline == 0.5
        assert records[1].percent_change_from_baseline is None

    def test_same_day_tie(self) -> None:
        records = _build(
            [
                _obs("S5", "WT", date(2024, 1, 1), 70.0),
                _obs("S5", "WT", date(2024, 1, 1), 71.0),
            ],
            {"S5": date(2024, 1, 1)},
        )
        assert [r.is_baseline for r in records] == [False, True]
        assert all(r.baseline_value == 71.0 for r in records)


class TestProperties:
    """Invariants that hold across a mixed record set."""

    def test_day_numbering_never_zero(self) -> None:
        obs, anchors = _study_observations()
        assert all(r.study_day != 0 for r in _build(obs, anchors))

    def test_at_most_one_baseline_per_group(self) -> None:
        obs, anchors = _study_observations()
        counts: dict[tuple[str, str], int] = {}
        for r in _build(obs, anchors):
            key = (r.subject_id, r.parameter_code)
            counts[key] = counts.get(key, 0) + int(r.is_baseline)
        assert max(counts.values()) == 1
        assert counts[("S2", "ALT")] == 0
        assert counts[("S3", "HGB")] == 0

    def test_baseline_on_or_before_anchor(self) -> None:
        obs, anchors = _study_observations()
        for r in _build(obs, anchors):
            if r.is_baseline:
                assert r.observation_date <= anchors[r.subject_id]

    def test_change_is_exact_difference(self) -> None:
        obs, anchors = _study_observations()
        for r in _build(obs, anchors):
            if r.change_from_baseline is not None:
                assert r.change_from_baseline == r.value - r.baseline_value

    def test_zero_baseline_group_has_no_percent_change(self) -> None:
        obs, anchors = _study_observations()
        for r in _build(obs, anchors):
            if r.baseline_value == 0:
                assert r.percent_change_from_baseline is None

    def test_absent_anchor_propagates(self) -> None:
        obs, anchors = _study_observations()
        for r in _build(obs, anchors):
            if anchors[r.subject_id] is None:
                assert r.study_day is None
                assert r.baseline_value is None
                assert r.change_from_baseline is None
                assert r.percent_change_from_baseline is None

    def test_one_record_per_observation_in_order(self) -> None:
        obs, anchors = _study_observations()
        records = _build(obs, anchors)
        assert len(records) == len(obs)
        assert [(r.subject_id, r.observation_date, r.value) for r in records] == [
            (o.subject_id, o.observation_date, o.value) for o in obs
        ]

    def test_character_value_retained(self) -> None:
        obs = [
            Observation(subject_id="S1", parameter_code="GLUC",
                        observation_date=date(2024, 1, 9), value=None, character_value="<2"),
        ]  # fmt: skip
        records = _build(obs, {"S1": date(2024, 1, 10)})
        assert records[0].character_value == "<2"
        assert records[0].value is None


class TestPostBaseline:
    """Change is derived for positive study days only."""

    def test_baseline_day_record_gets_zero_change(self) -> None:
        """A Day 1 baseline is itself post-baseline and changes by zero."""
        records = _build(
            [_obs("S1", "HGB", date(2024, 1, 10), 13.2)], {"S1": date(2024, 1, 10)}
        )
        assert records[0].is_baseline
        assert records[0].change_from_baseline == 0.0

    def test_pre_anchor_records_get_no_change(self) -> None:
        records = _build(
            [_obs("S1", "HGB", date(2024, 1, 8), 13.0), _obs("S1", "HGB", date(2024, 1, 9), 13.1)],
            {"S1": date(2024, 1, 10)},
        )
        assert records[0].change_from_baseline is None
        assert records[0].baseline_value == 13.1

    def test_missing_observation_date(self) -> None:
        records = _build(
            [_obs("S1", "HGB", date(2024, 1, 9), 13.0), _obs("S1", "HGB", None, 14.0)],
            {"S1": date(2024, 1, 10)},
        )
        assert records[1].study_day is None
        assert records[1].change_from_baseline is None
        assert records[1].baseline_value == 13.0

    def test_is_post_baseline_fallback(self) -> None:
        assert is_post_baseline(1, None, None)
        assert not is_post_baseline(-1, None, None)
        assert is_post_baseline(None, date(2024, 1, 11), date(2024, 1, 10))
        assert not is_post_baseline(None, None, date(2024, 1, 10))


class TestRecordsToFrame:
    """Flattening records for the ADaM layer."""

    def test_columns_and_dtypes(self) -> None:
        obs, anchors = _study_observations()
        df = records_to_frame(_build(obs, anchors))
        assert len(df) == len(obs)
        assert str(df["study_day"].dtype) == "Int64"
        assert df["value"].dtype == float
        assert df.loc[df["subject_id"] == "S3", "study_day"].isna().all()

    def test_extras_become_columns(self) -> None:
        obs = [
            Observation(subject_id="S1", parameter_code="HGB", value=13.0,
                        observation_date=date(2024, 1, 10), extras={"AVALU": "g/dL"}),
        ]  # fmt: skip
        df = records_to_frame(_build(obs, {"S1": date(2024, 1, 10)}))
        assert df["AVALU"].tolist() == ["g/dL"]

    def test_empty(self) -> None:
        df = records_to_frame([])
        assert df.empty
        assert "study_day" in df.columns
