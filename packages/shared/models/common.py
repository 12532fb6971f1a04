from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .enums import SourceKind, VisitCategory


def sort_key(value: date) -> datetime:
    """
    Comparable key for a date or datetime. Plain dates sort as midnight.
    Aware datetimes are converted to UTC before the offset is dropped.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)
    return datetime(value.year, value.month, value.day)


class StructuredObservation(BaseModel):
    """First ARV plan observation for a patient."""
    model_config = ConfigDict(frozen=True)

    coded_value: Optional[int] = None  # concept id of the answer
    visit_category: Optional[VisitCategory] = None
    obs_datetime: datetime | date | None = None


class HistoricalObservation(BaseModel):
    """First historical drug start date observation for a patient."""
    model_config = ConfigDict(frozen=True)

    visit_category: Optional[VisitCategory] = None
    value_datetime: datetime | date | None = None  # the recorded start date, not the obs datetime


class CandidateDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: SourceKind
    value: datetime | date | None = None
    visit_category: Optional[VisitCategory] = None
    coded_value: Optional[int] = None
