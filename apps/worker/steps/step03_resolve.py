"""
Step 3 — Per-patient resolution.

Runs the four bulk lookups once for the cohort, then resolves each patient
independently from the already-fetched values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from packages.shared.models import (
    CalculationConfig,
    HistoricalObservation,
    ObsRecord,
    PatientStartDate,
    StructuredObservation,
)
from apps.worker.lib.start_date import build_candidates, earliest_candidate
from apps.worker.steps.step02_lookups import first_encounter, first_obs, first_program_enrollment

logger = logging.getLogger(__name__)


@dataclass
class CohortSignals:
    """Raw lookup results for a cohort, keyed by patient id."""
    program_enrollment: dict[int, datetime] = field(default_factory=dict)
    arv_plan: dict[int, ObsRecord] = field(default_factory=dict)
    historical_start: dict[int, ObsRecord] = field(default_factory=dict)
    pharmacy_visit: dict[int, datetime] = field(default_factory=dict)


def fetch_signals(
    session: Session,
    cohort: Sequence[int],
    config: CalculationConfig,
    as_of: date | None = None,
) -> CohortSignals:
    chunk = config.lookup_chunk_size
    return CohortSignals(
        program_enrollment=first_program_enrollment(session, cohort, config.hiv_program_id, as_of, chunk),
        arv_plan=first_obs(session, config.arv_plan_concept_id, cohort, as_of, chunk),
        historical_start=first_obs(session, config.historical_start_concept_id, cohort, as_of, chunk),
        pharmacy_visit=first_encounter(session, config.pharmacy_encounter_type_id, cohort, as_of, chunk),
    )


def _structured(obs: ObsRecord | None, config: CalculationConfig) -> Optional[StructuredObservation]:
    if obs is None:
        return None
    return StructuredObservation(
        coded_value=obs.value_coded,
        visit_category=config.visit_category(obs.encounter_type_id),
        obs_datetime=obs.obs_datetime,
    )


def _historical(obs: ObsRecord | None, config: CalculationConfig) -> Optional[HistoricalObservation]:
    if obs is None:
        return None
    return HistoricalObservation(
        visit_category=config.visit_category(obs.encounter_type_id),
        value_datetime=obs.value_datetime,
    )


def resolve_patient(patient_id: int, signals: CohortSignals, config: CalculationConfig) -> PatientStartDate:
    candidates = build_candidates(
        signals.program_enrollment.get(patient_id),
        _structured(signals.arv_plan.get(patient_id), config),
        _historical(signals.historical_start.get(patient_id), config),
        signals.pharmacy_visit.get(patient_id),
    )
    winner = earliest_candidate(candidates, config)
    if winner is None:
        if candidates:
            logger.debug(f"Patient {patient_id}: {len(candidates)} signal(s), none admitted")
        return PatientStartDate(patient_id=patient_id)
    return PatientStartDate(patient_id=patient_id, art_start_date=winner.value, source=winner.source)


def resolve_cohort(
    cohort: Sequence[int],
    signals: CohortSignals,
    config: CalculationConfig,
) -> dict[int, PatientStartDate]:
    return {pid: resolve_patient(pid, signals, config) for pid in cohort}


def evaluate_cohort(
    session: Session,
    cohort: Sequence[int],
    config: CalculationConfig | None = None,
    as_of: date | None = None,
) -> dict[int, date | None]:
    """
    ART start date for every patient in *cohort*.
    Every id is present in the result; undetermined patients map to None.
    """
    config = config or CalculationConfig()
    signals = fetch_signals(session, cohort, config, as_of)
    return {pid: r.art_start_date for pid, r in resolve_cohort(cohort, signals, config).items()}
