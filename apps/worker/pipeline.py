"""
Pipeline orchestrator — cohort, lookups, resolution.
"""
from __future__ import annotations

import logging
import time
from collections import Counter
from datetime import date
from typing import Iterable

from sqlalchemy.orm import Session

from packages.shared.models import CalculationConfig, CalculationSummary, PatientStartDate

from apps.worker.steps.step01_cohort import load_cohort
from apps.worker.steps.step03_resolve import fetch_signals, resolve_cohort

logger = logging.getLogger(__name__)


def summarize(
    results: dict[int, PatientStartDate],
    as_of: date | None = None,
    processing_seconds: float = 0.0,
) -> CalculationSummary:
    by_source = Counter(r.source.value for r in results.values() if r.source is not None)
    resolved = sum(by_source.values())
    return CalculationSummary(
        cohort_size=len(results),
        resolved=resolved,
        undetermined=len(results) - resolved,
        by_source=dict(sorted(by_source.items())),
        as_of=as_of,
        processing_seconds=round(processing_seconds, 3),
    )


def run_calculation(
    session: Session,
    patient_ids: Iterable[int] | None = None,
    config: CalculationConfig | None = None,
    as_of: date | None = None,
) -> tuple[dict[int, PatientStartDate], CalculationSummary]:
    """
    Compute ART start dates for a cohort.
    Returns the per-patient results and a summary of the run.
    """
    config = config or CalculationConfig()
    start_time = time.time()

    try:
        # ── Step 1: Cohort ────────────────────────────────────────────
        cohort = load_cohort(session, patient_ids, config.lookup_chunk_size)

        # ── Step 2: Bulk lookups (once per cohort) ────────────────────
        logger.info(f"Step 2: Fetching start date signals for {len(cohort)} patients (as_of={as_of})")
        signals = fetch_signals(session, cohort, config, as_of)

        # ── Step 3: Resolve each patient ──────────────────────────────
        logger.info("Step 3: Resolving earliest qualifying start dates")
        results = resolve_cohort(cohort, signals, config)
    except Exception:
        logger.exception("ART start date calculation failed")
        raise

    summary = summarize(results, as_of, time.time() - start_time)
    logger.info(
        f"Resolved {summary.resolved}/{summary.cohort_size} patients "
        f"({summary.undetermined} undetermined) in {summary.processing_seconds}s"
    )
    return results, summary
