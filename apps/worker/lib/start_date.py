"""
Earliest qualifying ART start date for a single patient.

Pure functions over already-fetched signals: no I/O, no state. Missing,
null or ineligible signals are simply not admitted.
"""
from __future__ import annotations

from datetime import date
from functools import reduce
from typing import Iterable, Optional

from packages.shared.models import (
    CalculationConfig,
    CandidateDate,
    HistoricalObservation,
    SourceKind,
    StructuredObservation,
    sort_key,
)
from apps.worker.lib.eligibility import is_admitted


def _before(a: date, b: date) -> bool:
    return sort_key(a) < sort_key(b)


def earliest(a: Optional[date], b: Optional[date]) -> Optional[date]:
    """Return the earlier of two dates. A None argument yields the other one."""
    if a is None:
        return b
    if b is None:
        return a
    return b if _before(b, a) else a


def build_candidates(
    program_enrollment_date: Optional[date] = None,
    structured_observation: Optional[StructuredObservation] = None,
    historical_observation: Optional[HistoricalObservation] = None,
    pharmacy_visit_date: Optional[date] = None,
) -> list[CandidateDate]:
    """Turn the four raw signals into candidates, skipping absent ones."""
    candidates: list[CandidateDate] = []
    if program_enrollment_date is not None:
        candidates.append(CandidateDate(source=SourceKind.PROGRAM_ENROLLMENT, value=program_enrollment_date))
    if structured_observation is not None:
        candidates.append(CandidateDate(
            source=SourceKind.STRUCTURED_START_OBSERVATION,
            value=structured_observation.obs_datetime,
            visit_category=structured_observation.visit_category,
            coded_value=structured_observation.coded_value,
        ))
    if historical_observation is not None:
        candidates.append(CandidateDate(
            source=SourceKind.HISTORICAL_START_OBSERVATION,
            value=historical_observation.value_datetime,
            visit_category=historical_observation.visit_category,
        ))
    if pharmacy_visit_date is not None:
        candidates.append(CandidateDate(source=SourceKind.PHARMACY_VISIT, value=pharmacy_visit_date))
    return candidates


def admitted_candidates(
    candidates: Iterable[CandidateDate],
    config: CalculationConfig | None = None,
) -> list[CandidateDate]:
    config = config or CalculationConfig()
    return [c for c in candidates if is_admitted(c, config)]


def earliest_candidate(
    candidates: Iterable[CandidateDate],
    config: CalculationConfig | None = None,
) -> Optional[CandidateDate]:
    """Admitted candidate with the earliest date, or None. Ties keep the first seen."""
    admitted = admitted_candidates(candidates, config)
    if not admitted:
        return None
    return reduce(lambda best, c: c if _before(c.value, best.value) else best, admitted)


def resolve_candidates(
    candidates: Iterable[CandidateDate],
    config: CalculationConfig | None = None,
) -> Optional[date]:
    """Fold minimum over every admitted candidate. Any number of sources."""
    return reduce(earliest, (c.value for c in admitted_candidates(candidates, config)), None)


def resolve_start_date(
    program_enrollment_date: Optional[date] = None,
    structured_observation: Optional[StructuredObservation] = None,
    historical_observation: Optional[HistoricalObservation] = None,
    pharmacy_visit_date: Optional[date] = None,
    config: CalculationConfig | None = None,
) -> Optional[date]:
    """
    Earliest admitted date across the four ART start signals.

    Returns None ("undetermined") when no signal is admitted.
    """
    candidates = build_candidates(
        program_enrollment_date,
        structured_observation,
        historical_observation,
        pharmacy_visit_date,
    )
    return resolve_candidates(candidates, config)
