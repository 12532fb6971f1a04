"""
Step 1 — Cohort resolution.
"""
from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from packages.db.models import Patient
from packages.shared import metadata

logger = logging.getLogger(__name__)


def load_cohort(
    session: Session,
    patient_ids: Iterable[int] | None = None,
    chunk_size: int = metadata.LOOKUP_CHUNK_SIZE,
) -> list[int]:
    """
    Return the sorted, de-duplicated cohort.
    Explicit ids are used as given; otherwise every non-voided patient.
    Explicit ids with no non-voided patient row are kept (they resolve to
    None) but logged as a warning.
    """
    if patient_ids is not None:
        cohort = sorted({int(pid) for pid in patient_ids})
        known: set[int] = set()
        for start in range(0, len(cohort), chunk_size):
            chunk = cohort[start:start + chunk_size]
            rows = (
                session.query(Patient.patient_id)
                .filter(Patient.patient_id.in_(chunk))
                .filter(Patient.voided.is_(False))
                .all()
            )
            known.update(r.patient_id for r in rows)
        missing = [pid for pid in cohort if pid not in known]
        if missing:
            logger.warning(
                f"Cohort: {len(missing)} of {len(cohort)} patient ids have no active patient record: "
                f"{missing[:20]}"
            )
        logger.info(f"Cohort: {len(cohort)} explicit patient ids")
        return cohort

    rows = (
        session.query(Patient.patient_id)
        .filter(Patient.voided.is_(False))
        .order_by(Patient.patient_id)
        .all()
    )
    cohort = [r.patient_id for r in rows]
    logger.info(f"Cohort: {len(cohort)} non-voided patients")
    return cohort
