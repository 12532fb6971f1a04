"""
Step 2 — Bulk lookups.

Each lookup runs once per cohort and returns the first matching record per
patient. Patients with no record are absent from the returned dict.
Records dated after the optional as_of cut-off are ignored, as are voided
rows and observations attached to voided encounters.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterator, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from packages.db.models import Encounter, Obs, PatientProgram
from packages.shared import metadata
from packages.shared.models import ObsRecord

logger = logging.getLogger(__name__)


def _chunks(ids: Sequence[int], size: int) -> Iterator[list[int]]:
    for start in range(0, len(ids), size):
        yield list(ids[start:start + size])


def _cutoff(as_of: date | None) -> datetime | None:
    """Exclusive upper bound: records on the as_of day itself still count."""
    if as_of is None:
        return None
    if isinstance(as_of, datetime):
        as_of = as_of.date()
    return datetime.combine(as_of + timedelta(days=1), time.min)


def first_program_enrollment(
    session: Session,
    cohort: Sequence[int],
    program_id: int,
    as_of: date | None = None,
    chunk_size: int = metadata.LOOKUP_CHUNK_SIZE,
) -> dict[int, datetime]:
    """Earliest enrollment date into *program_id* per patient."""
    results: dict[int, datetime] = {}
    if not cohort:
        return results
    cutoff = _cutoff(as_of)

    for chunk in _chunks(cohort, chunk_size):
        query = (
            session.query(PatientProgram.patient_id, PatientProgram.date_enrolled)
            .filter(PatientProgram.program_id == program_id)
            .filter(PatientProgram.patient_id.in_(chunk))
            .filter(PatientProgram.voided.is_(False))
            .filter(PatientProgram.date_enrolled.isnot(None))
        )
        if cutoff is not None:
            query = query.filter(PatientProgram.date_enrolled < cutoff)
        for patient_id, date_enrolled in query.order_by(PatientProgram.date_enrolled):
            results.setdefault(patient_id, date_enrolled)

    logger.debug(f"Program {program_id} enrollment: {len(results)}/{len(cohort)} patients")
    return results


def first_obs(
    session: Session,
    concept_id: int,
    cohort: Sequence[int],
    as_of: date | None = None,
    chunk_size: int = metadata.LOOKUP_CHUNK_SIZE,
) -> dict[int, ObsRecord]:
    """Earliest observation of *concept_id* per patient, with its encounter type."""
    results: dict[int, ObsRecord] = {}
    if not cohort:
        return results
    cutoff = _cutoff(as_of)

    for chunk in _chunks(cohort, chunk_size):
        query = (
            session.query(Obs, Encounter.encounter_type)
            .outerjoin(Encounter, Obs.encounter_id == Encounter.encounter_id)
            .filter(Obs.concept_id == concept_id)
            .filter(Obs.person_id.in_(chunk))
            .filter(Obs.voided.is_(False))
            .filter(or_(Encounter.encounter_id.is_(None), Encounter.voided.is_(False)))
        )
        if cutoff is not None:
            query = query.filter(Obs.obs_datetime < cutoff)
        query = query.order_by(Obs.person_id, Obs.obs_datetime, Obs.obs_id)

        for obs, encounter_type_id in query:
            if obs.person_id in results:
                continue
            results[obs.person_id] = ObsRecord(
                obs_id=obs.obs_id,
                patient_id=obs.person_id,
                obs_datetime=obs.obs_datetime,
                value_coded=obs.value_coded,
                value_datetime=obs.value_datetime,
                encounter_type_id=encounter_type_id,
            )

    logger.debug(f"Concept {concept_id} first obs: {len(results)}/{len(cohort)} patients")
    return results


def first_encounter(
    session: Session,
    encounter_type_id: int,
    cohort: Sequence[int],
    as_of: date | None = None,
    chunk_size: int = metadata.LOOKUP_CHUNK_SIZE,
) -> dict[int, datetime]:
    """Earliest encounter datetime of *encounter_type_id* per patient."""
    results: dict[int, datetime] = {}
    if not cohort:
        return results
    cutoff = _cutoff(as_of)

    for chunk in _chunks(cohort, chunk_size):
        query = (
            session.query(Encounter.patient_id, Encounter.encounter_datetime)
            .filter(Encounter.encounter_type == encounter_type_id)
            .filter(Encounter.patient_id.in_(chunk))
            .filter(Encounter.voided.is_(False))
        )
        if cutoff is not None:
            query = query.filter(Encounter.encounter_datetime < cutoff)
        query = query.order_by(Encounter.patient_id, Encounter.encounter_datetime, Encounter.encounter_id)
        for patient_id, encounter_datetime in query:
            results.setdefault(patient_id, encounter_datetime)

    logger.debug(f"Encounter type {encounter_type_id} first visit: {len(results)}/{len(cohort)} patients")
    return results
