from .enums import QUALIFYING_VISIT_CATEGORIES, SourceKind, VisitCategory
from .common import CandidateDate, HistoricalObservation, StructuredObservation, sort_key
from .domain import CalculationConfig, CalculationSummary, ObsRecord, PatientStartDate

__all__ = [
    "QUALIFYING_VISIT_CATEGORIES",
    "SourceKind",
    "VisitCategory",
    "CandidateDate",
    "HistoricalObservation",
    "StructuredObservation",
    "sort_key",
    "CalculationConfig",
    "CalculationSummary",
    "ObsRecord",
    "PatientStartDate",
]
