"""
Metadata identifiers for the ART start date calculation.

Concept and encounter type ids differ between deployments, so every id can be
overridden from the environment. The module constants hold the values seen at
import time; read_env() re-reads the environment on demand.
"""
from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


# setting -> (environment variable, default)
SETTINGS: dict[str, tuple[str, int]] = {
    "hiv_program_id": ("ARTSTART_HIV_PROGRAM_ID", 2),
    # Concepts
    "arv_plan_concept_id": ("ARTSTART_ARV_PLAN_CONCEPT_ID", 1255),
    "start_drugs_concept_id": ("ARTSTART_START_DRUGS_CONCEPT_ID", 1256),
    "historical_start_concept_id": ("ARTSTART_HISTORICAL_START_CONCEPT_ID", 1190),
    # Encounter types
    "pharmacy_encounter_type_id": ("ARTSTART_PHARMACY_ENCOUNTER_TYPE_ID", 18),
    "adult_followup_encounter_type_id": ("ARTSTART_ADULT_FOLLOWUP_ENCOUNTER_TYPE_ID", 6),
    "pediatric_followup_encounter_type_id": ("ARTSTART_PEDIATRIC_FOLLOWUP_ENCOUNTER_TYPE_ID", 9),
    "lookup_chunk_size": ("ARTSTART_LOOKUP_CHUNK_SIZE", 500),
}


def read_env() -> dict[str, int]:
    """Current value of every setting, environment overrides applied."""
    return {key: _env_int(env, default) for key, (env, default) in SETTINGS.items()}


_current = read_env()

HIV_PROGRAM_ID = _current["hiv_program_id"]
ARV_PLAN_CONCEPT_ID = _current["arv_plan_concept_id"]
START_DRUGS_CONCEPT_ID = _current["start_drugs_concept_id"]
HISTORICAL_START_CONCEPT_ID = _current["historical_start_concept_id"]
PHARMACY_ENCOUNTER_TYPE_ID = _current["pharmacy_encounter_type_id"]
ADULT_FOLLOWUP_ENCOUNTER_TYPE_ID = _current["adult_followup_encounter_type_id"]
PEDIATRIC_FOLLOWUP_ENCOUNTER_TYPE_ID = _current["pediatric_followup_encounter_type_id"]
LOOKUP_CHUNK_SIZE = _current["lookup_chunk_size"]
