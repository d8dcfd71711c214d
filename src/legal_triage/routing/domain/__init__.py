"""
Routing Domain Layer
====================

Domain layer for the routing module.

Contains:
- Entities: ExtractedInfo, TriageRule, LegalTerm, Specialist, EmployeeContext
- TermNormalizer: fuzzy mapping onto the synonym table
- Rule matcher: static, priority ordered rules
- SpecialistScorer: additive affinity scoring

This layer is framework-agnostic and contains pure business logic.
"""

from legal_triage.routing.domain.entities import (
    Availability,
    AvailabilityDay,
    Condition,
    EmployeeContext,
    EmployeeMetadata,
    ExtractedInfo,
    LegalTerm,
    Specialist,
    TriageRule,
)
from legal_triage.routing.domain.normalizer import (
    FieldMatch,
    NormalizationResult,
    NormalizedInfo,
    TermNormalizer,
    similarity,
)
from legal_triage.routing.domain.rules import (
    evaluate_rule,
    find_matching_rule,
    missing_fields_for,
    referenced_fields,
    sort_rules,
)
from legal_triage.routing.domain.scoring import (
    ScoredSpecialist,
    SpecialistMatch,
    SpecialistScorer,
    routing_explanation,
)

__all__ = [
    "Availability",
    "AvailabilityDay",
    "Condition",
    "EmployeeContext",
    "EmployeeMetadata",
    "ExtractedInfo",
    "LegalTerm",
    "Specialist",
    "TriageRule",
    "FieldMatch",
    "NormalizationResult",
    "NormalizedInfo",
    "TermNormalizer",
    "similarity",
    "evaluate_rule",
    "find_matching_rule",
    "missing_fields_for",
    "referenced_fields",
    "sort_rules",
    "ScoredSpecialist",
    "SpecialistMatch",
    "SpecialistScorer",
    "routing_explanation",
]
