from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from packages.shared import metadata

from .enums import SourceKind, VisitCategory


class CalculationConfig(BaseModel):
    """Metadata ids and tuning for one calculation run."""
    hiv_program_id: int = metadata.HIV_PROGRAM_ID
    arv_plan_concept_id: int = metadata.ARV_PLAN_CONCEPT_ID
    start_drugs_concept_id: int = metadata.START_DRUGS_CONCEPT_ID
    historical_start_concept_id: int = metadata.HISTORICAL_START_CONCEPT_ID
    pharmacy_encounter_type_id: int = metadata.PHARMACY_ENCOUNTER_TYPE_ID
    adult_followup_encounter_type_id: int = metadata.ADULT_FOLLOWUP_ENCOUNTER_TYPE_ID
    pediatric_followup_encounter_type_id: int = metadata.PEDIATRIC_FOLLOWUP_ENCOUNTER_TYPE_ID
    lookup_chunk_size: int = Field(default=metadata.LOOKUP_CHUNK_SIZE, gt=0)

    @classmethod
    def from_env(cls, **overrides) -> "CalculationConfig":
        """Build a config from the current environment, re-reading every ARTSTART_* override."""
        values = metadata.read_env()
        values.update(overrides)
        return cls(**values)

    def visit_category(self, encounter_type_id: Optional[int]) -> Optional[VisitCategory]:
        """Map an encounter type id onto a visit category. None stays None."""
        if encounter_type_id is None:
            return None
        return {
            self.pharmacy_encounter_type_id: VisitCategory.PHARMACY,
            self.adult_followup_encounter_type_id: VisitCategory.ADULT_FOLLOW_UP,
            self.pediatric_followup_encounter_type_id: VisitCategory.PEDIATRIC_FOLLOW_UP,
        }.get(encounter_type_id, VisitCategory.OTHER)


class ObsRecord(BaseModel):
    """First observation of a concept for one patient, as read from the store."""
    obs_id: int
    patient_id: int
    obs_datetime: Optional[datetime] = None
    value_coded: Optional[int] = None
    value_datetime: Optional[datetime] = None
    encounter_type_id: Optional[int] = None


class PatientStartDate(BaseModel):
    patient_id: int
    art_start_date: datetime | date | None = None
    source: Optional[SourceKind] = None


class CalculationSummary(BaseModel):
    cohort_size: int = 0
    resolved: int = 0
    undetermined: int = 0
    by_source: dict[str, int] = Field(default_factory=dict)
    as_of: Optional[date] = None
    processing_seconds: float = 0.0
