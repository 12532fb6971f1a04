from enum import Enum


class SourceKind(str, Enum):
    PROGRAM_ENROLLMENT = "program_enrollment"
    STRUCTURED_START_OBSERVATION = "structured_start_observation"  # ARV plan == start drugs
    HISTORICAL_START_OBSERVATION = "historical_start_observation"  # Historical drug start date
    PHARMACY_VISIT = "pharmacy_visit"


class VisitCategory(str, Enum):
    PHARMACY = "pharmacy"
    ADULT_FOLLOW_UP = "adult_follow_up"
    PEDIATRIC_FOLLOW_UP = "pediatric_follow_up"
    OTHER = "other"


QUALIFYING_VISIT_CATEGORIES = frozenset({
    VisitCategory.PHARMACY,
    VisitCategory.ADULT_FOLLOW_UP,
    VisitCategory.PEDIATRIC_FOLLOW_UP,
})
