"""
Routing Application Services
============================

Application services coordinate the routing domain logic over one
consistent catalog snapshot.

Following SOLID principles:
- Single Responsibility: the catalog provider only supplies snapshots,
  the routing service only routes
- Dependency Inversion: the triage layer depends on the interfaces below
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from legal_triage.routing.application.dto import RoutingCatalogSchema
from legal_triage.routing.domain import (
    EmployeeContext, ExtractedInfo, LegalTerm, NormalizedInfo, Specialist,
    SpecialistMatch, SpecialistScorer, TermNormalizer, TriageRule,
    find_matching_rule, missing_fields_for, sort_rules
)
from legal_triage.routing.domain.normalizer import DEFAULT_THRESHOLD
from legal_triage.routing.domain.scoring import DEFAULT_MIN_SCORE, DEFAULT_WINDOW_DAYS


# ========== Catalog Snapshot ==========

@dataclass(frozen=True)
class RoutingCatalog:
    """
    Immutable snapshot of everything a triage run reads.

    Rules are stored in evaluation order (ascending priority, stable).
    """
    rules: Tuple[TriageRule, ...] = ()
    legal_terms: Tuple[LegalTerm, ...] = ()
    specialists: Tuple[Specialist, ...] = ()
    employees: Tuple[EmployeeContext, ...] = ()
    loaded_at: Optional[datetime] = None

    @classmethod
    def from_schema(
        cls,
        schema: RoutingCatalogSchema,
        loaded_at: Optional[datetime] = None
    ) -> "RoutingCatalog":
        return cls(
            rules=tuple(sort_rules([r.to_domain() for r in schema.rules])),
            legal_terms=tuple(t.to_domain() for t in schema.legal_terms),
            specialists=tuple(s.to_domain() for s in schema.specialists),
            employees=tuple(e.to_domain() for e in schema.employees),
            loaded_at=loaded_at,
        )

    def find_employee(self, email: str) -> Optional[EmployeeContext]:
        """Look up an employee by email, case-insensitively."""
        wanted = email.strip().lower()
        for employee in self.employees:
            if employee.email.lower() == wanted:
                return employee
        return None


# ========== Provider Interfaces ==========

class IRoutingCatalogProvider(ABC):
    """Interface for catalog access."""

    @abstractmethod
    def snapshot(self) -> RoutingCatalog:
        """Return the current catalog as one consistent snapshot."""


class IEmployeeDirectory(ABC):
    """Employee profile lookups from outside the routing catalog."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[EmployeeContext]:
        """Get an employee profile, or None when unknown."""


class StaticCatalogProvider(IRoutingCatalogProvider):
    """Serves a fixed catalog (tests, embedded use)."""

    def __init__(self, catalog: RoutingCatalog):
        self._catalog = catalog

    def snapshot(self) -> RoutingCatalog:
        return self._catalog


# ========== Application Services ==========

@dataclass(frozen=True)
class RuleEvaluation:
    """Outcome of the static rule fallback, for observability."""
    rules_evaluated: int
    matched_rule: Optional[TriageRule] = None
    missing_fields: List[str] = field(default_factory=list)


class RoutingService:
    """
    Routes one request over one catalog snapshot.

    Created per triage run; holds no state besides the snapshot and the
    domain components built from it.
    """

    def __init__(
        self,
        catalog: RoutingCatalog,
        normalization_threshold: float = DEFAULT_THRESHOLD,
        min_match_score: int = DEFAULT_MIN_SCORE,
        availability_window_days: int = DEFAULT_WINDOW_DAYS
    ):
        self._catalog = catalog
        self._normalizer = TermNormalizer(catalog.legal_terms, normalization_threshold)
        self._scorer = SpecialistScorer(min_match_score, availability_window_days)

    @property
    def catalog(self) -> RoutingCatalog:
        return self._catalog

    def normalize(self, info: ExtractedInfo) -> NormalizedInfo:
        """Map recognized fields onto canonical vocabulary."""
        return self._normalizer.normalize_extracted_info(info)

    def select_specialist(
        self,
        request: ExtractedInfo,
        employee: Optional[EmployeeContext],
        now: Optional[datetime] = None
    ) -> Optional[SpecialistMatch]:
        """Best qualifying specialist, or None."""
        return self._scorer.select_best(request, employee, self._catalog.specialists, now)

    def evaluate_rules(self, request: ExtractedInfo) -> RuleEvaluation:
        """Run the static rule fallback and work out what to ask next."""
        rules = self._catalog.rules
        matched = find_matching_rule(request, rules)
        missing = [] if matched is not None else missing_fields_for(request, rules)
        return RuleEvaluation(
            rules_evaluated=len(rules),
            matched_rule=matched,
            missing_fields=missing,
        )

    def summary(self) -> Dict[str, int]:
        return {
            "rules": len(self._catalog.rules),
            "legal_terms": len(self._catalog.legal_terms),
            "specialists": len(self._catalog.specialists),
        }
