"""
Unit tests for earliest qualifying ART start date resolution.
"""
import itertools
from datetime import date, datetime, timedelta, timezone

import pytest

from packages.shared.models import (
    CalculationConfig,
    CandidateDate,
    HistoricalObservation,
    SourceKind,
    StructuredObservation,
    VisitCategory,
)
from apps.worker.lib.start_date import (
    admitted_candidates,
    build_candidates,
    earliest,
    earliest_candidate,
    resolve_candidates,
    resolve_start_date,
)

CONFIG = CalculationConfig()
START_DRUGS = CONFIG.start_drugs_concept_id
CONTINUE_REGIMEN = 1257

ENROLLED = date(2020, 3, 1)
STRUCTURED = date(2020, 2, 15)
HISTORICAL = date(2019, 12, 1)
PHARMACY = date(2020, 1, 10)


def _structured(d=STRUCTURED, coded=START_DRUGS, visit=VisitCategory.ADULT_FOLLOW_UP):
    return StructuredObservation(coded_value=coded, visit_category=visit, obs_datetime=d)


def _historical(d=HISTORICAL, visit=VisitCategory.PHARMACY):
    return HistoricalObservation(visit_category=visit, value_datetime=d)


class TestEarliest:
    def test_both_none(self):
        assert earliest(None, None) is None

    def test_one_none(self):
        assert earliest(ENROLLED, None) == ENROLLED
        assert earliest(None, ENROLLED) == ENROLLED

    def test_earlier_wins_either_order(self):
        assert earliest(ENROLLED, PHARMACY) == PHARMACY
        assert earliest(PHARMACY, ENROLLED) == PHARMACY

    def test_mixed_date_and_datetime(self):
        assert earliest(datetime(2020, 1, 10, 9, 30), date(2020, 1, 9)) == date(2020, 1, 9)
        assert earliest(date(2020, 1, 11), datetime(2020, 1, 10, 23, 59)) == datetime(2020, 1, 10, 23, 59)

    def test_aware_datetimes_compare_by_instant(self):
        utc_late = datetime(2020, 1, 9, 22, 0, tzinfo=timezone.utc)
        plus_five = datetime(2020, 1, 10, 1, 0, tzinfo=timezone(timedelta(hours=5)))  # 20:00 UTC
        assert earliest(utc_late, plus_five) == plus_five
        assert earliest(plus_five, utc_late) == plus_five

    def test_same_instant_different_offsets_keeps_first(self):
        utc = datetime(2020, 1, 10, 0, 0, tzinfo=timezone.utc)
        minus_three = datetime(2020, 1, 9, 21, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert earliest(utc, minus_three).tzinfo is timezone.utc


class TestScenarios:
    def test_mixed_offsets_pick_earliest_instant(self):
        result = resolve_start_date(
            program_enrollment_date=datetime(2020, 1, 9, 22, 0, tzinfo=timezone.utc),
            pharmacy_visit_date=datetime(2020, 1, 10, 1, 0, tzinfo=timezone(timedelta(hours=5))),
        )
        assert result == datetime(2020, 1, 9, 20, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(hours=5)

    def test_only_pharmacy_visit(self):
        assert resolve_start_date(pharmacy_visit_date=date(2020, 1, 10)) == date(2020, 1, 10)

    def test_structured_earlier_than_enrollment(self):
        result = resolve_start_date(
            program_enrollment_date=date(2020, 3, 1),
            structured_observation=_structured(d=date(2020, 2, 15)),
        )
        assert result == date(2020, 2, 15)

    def test_structured_under_non_qualifying_visit_is_undetermined(self):
        obs = _structured(visit=VisitCategory.OTHER)
        assert resolve_start_date(structured_observation=obs) is None

    def test_all_four_with_tie(self):
        result = resolve_start_date(
            program_enrollment_date=date(2021, 5, 1),
            structured_observation=_structured(d=date(2021, 4, 20)),
            historical_observation=_historical(d=date(2021, 6, 1)),
            pharmacy_visit_date=date(2021, 4, 20),
        )
        assert result == date(2021, 4, 20)

    def test_no_signals(self):
        assert resolve_start_date() is None

    def test_all_present_but_ineligible(self):
        result = resolve_start_date(
            structured_observation=_structured(coded=CONTINUE_REGIMEN),
            historical_observation=_historical(visit=None),
        )
        assert result is None


class TestExhaustiveCombinations:
    @pytest.mark.parametrize("mask", list(itertools.product([False, True], repeat=4)))
    def test_present_signals(self, mask):
        use_enrolled, use_structured, use_historical, use_pharmacy = mask
        result = resolve_start_date(
            program_enrollment_date=ENROLLED if use_enrolled else None,
            structured_observation=_structured() if use_structured else None,
            historical_observation=_historical() if use_historical else None,
            pharmacy_visit_date=PHARMACY if use_pharmacy else None,
        )
        admitted = [d for d, on in zip([ENROLLED, STRUCTURED, HISTORICAL, PHARMACY], mask) if on]
        assert result == (min(admitted) if admitted else None)

    @pytest.mark.parametrize("mask", list(itertools.product([False, True], repeat=4)))
    def test_eligible_signals(self, mask):
        """All four present; mask decides which observation sources qualify."""
        enrolled_ok, structured_ok, historical_ok, pharmacy_ok = mask
        result = resolve_start_date(
            program_enrollment_date=ENROLLED if enrolled_ok else None,
            structured_observation=_structured(coded=START_DRUGS if structured_ok else CONTINUE_REGIMEN),
            historical_observation=_historical(visit=VisitCategory.PHARMACY if historical_ok else VisitCategory.OTHER),
            pharmacy_visit_date=PHARMACY if pharmacy_ok else None,
        )
        admitted = [d for d, on in zip([ENROLLED, STRUCTURED, HISTORICAL, PHARMACY], mask) if on]
        assert result == (min(admitted) if admitted else None)


class TestEligibilityEdges:
    @pytest.mark.parametrize("visit", list(VisitCategory))
    def test_wrong_coded_value_never_admitted(self, visit):
        assert resolve_start_date(structured_observation=_structured(coded=CONTINUE_REGIMEN, visit=visit)) is None

    def test_missing_coded_value(self):
        assert resolve_start_date(structured_observation=_structured(coded=None)) is None

    @pytest.mark.parametrize("visit", [VisitCategory.OTHER, None])
    def test_non_qualifying_visit_never_admitted(self, visit):
        assert resolve_start_date(structured_observation=_structured(visit=visit)) is None
        assert resolve_start_date(historical_observation=_historical(visit=visit)) is None

    @pytest.mark.parametrize(
        "visit",
        [VisitCategory.PHARMACY, VisitCategory.ADULT_FOLLOW_UP, VisitCategory.PEDIATRIC_FOLLOW_UP],
    )
    def test_qualifying_visits_admitted(self, visit):
        assert resolve_start_date(structured_observation=_structured(visit=visit)) == STRUCTURED
        assert resolve_start_date(historical_observation=_historical(visit=visit)) == HISTORICAL

    def test_historical_null_date_not_admitted(self):
        obs = _historical(d=None, visit=VisitCategory.ADULT_FOLLOW_UP)
        assert resolve_start_date(historical_observation=obs) is None
        assert resolve_start_date(historical_observation=obs, pharmacy_visit_date=PHARMACY) == PHARMACY

    def test_structured_null_date_not_admitted(self):
        obs = _structured(d=None)
        assert resolve_start_date(structured_observation=obs) is None

    def test_ineligible_source_does_not_block_others(self):
        result = resolve_start_date(
            structured_observation=_structured(d=date(2000, 1, 1), visit=VisitCategory.OTHER),
            pharmacy_visit_date=PHARMACY,
        )
        assert result == PHARMACY


class TestCandidates:
    def test_build_skips_absent_sources(self):
        candidates = build_candidates(pharmacy_visit_date=PHARMACY)
        assert [c.source for c in candidates] == [SourceKind.PHARMACY_VISIT]

    def test_build_keeps_present_but_null_observation(self):
        candidates = build_candidates(historical_observation=HistoricalObservation())
        assert len(candidates) == 1
        assert admitted_candidates(candidates) == []

    def test_fold_over_more_than_four_sources(self):
        dates = [date(2020, m, 1) for m in range(12, 0, -1)]
        candidates = [CandidateDate(source=SourceKind.PHARMACY_VISIT, value=d) for d in dates]
        assert resolve_candidates(candidates) == date(2020, 1, 1)

    def test_fold_matches_pairwise_earliest(self):
        values = [datetime(2021, 3, 5, 8, 0), date(2021, 3, 5), datetime(2021, 3, 4, 23, 0), date(2021, 3, 6)]
        candidates = [CandidateDate(source=SourceKind.PROGRAM_ENROLLMENT, value=v) for v in values]
        expected = None
        for v in values:
            expected = earliest(expected, v)
        assert resolve_candidates(candidates) == expected == datetime(2021, 3, 4, 23, 0)
        assert earliest_candidate(candidates).value == expected

    def test_winner_reports_source(self):
        candidates = build_candidates(
            program_enrollment_date=ENROLLED,
            historical_observation=_historical(),
        )
        winner = earliest_candidate(candidates)
        assert winner.source == SourceKind.HISTORICAL_START_OBSERVATION
        assert winner.value == HISTORICAL

    def test_tie_keeps_first_admitted(self):
        candidates = build_candidates(program_enrollment_date=PHARMACY, pharmacy_visit_date=PHARMACY)
        assert earliest_candidate(candidates).source == SourceKind.PROGRAM_ENROLLMENT

    def test_custom_start_drugs_concept(self):
        config = CalculationConfig(start_drugs_concept_id=9999)
        obs = _structured(coded=9999)
        assert resolve_start_date(structured_observation=obs, config=config) == STRUCTURED
        assert resolve_start_date(structured_observation=obs) is None


def test_resolution_is_idempotent():
    kwargs = dict(
        program_enrollment_date=ENROLLED,
        structured_observation=_structured(),
        historical_observation=_historical(),
        pharmacy_visit_date=PHARMACY,
    )
    first = resolve_start_date(**kwargs)
    assert all(resolve_start_date(**kwargs) == first for _ in range(5))
    assert first == HISTORICAL
