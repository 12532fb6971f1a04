"""
Admission rules for ART start date candidates.

Program enrollment and pharmacy visits count whenever a date exists. The two
observation sources only count when recorded during a pharmacy, adult
follow-up or paediatric follow-up visit; the ARV plan observation must also
carry the "start drugs" answer.
"""
from __future__ import annotations

from typing import Callable

from packages.shared.models import (
    QUALIFYING_VISIT_CATEGORIES,
    CalculationConfig,
    CandidateDate,
    SourceKind,
)

EligibilityRule = Callable[[CandidateDate, CalculationConfig], bool]


def _has_date(candidate: CandidateDate, config: CalculationConfig) -> bool:
    return candidate.value is not None


def _qualifying_visit(candidate: CandidateDate, config: CalculationConfig) -> bool:
    return candidate.visit_category is not None and candidate.visit_category in QUALIFYING_VISIT_CATEGORIES


def _structured_start(candidate: CandidateDate, config: CalculationConfig) -> bool:
    return (
        _has_date(candidate, config)
        and candidate.coded_value == config.start_drugs_concept_id
        and _qualifying_visit(candidate, config)
    )


def _historical_start(candidate: CandidateDate, config: CalculationConfig) -> bool:
    return _has_date(candidate, config) and _qualifying_visit(candidate, config)


RULES: dict[SourceKind, EligibilityRule] = {
    SourceKind.PROGRAM_ENROLLMENT: _has_date,
    SourceKind.STRUCTURED_START_OBSERVATION: _structured_start,
    SourceKind.HISTORICAL_START_OBSERVATION: _historical_start,
    SourceKind.PHARMACY_VISIT: _has_date,
}


def is_admitted(candidate: CandidateDate | None, config: CalculationConfig | None = None) -> bool:
    """True when *candidate* passes the rule for its source."""
    if candidate is None:
        return False
    rule = RULES.get(candidate.source)
    if rule is None:
        return False
    return rule(candidate, config or CalculationConfig())
