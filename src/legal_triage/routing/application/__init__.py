"""
Routing Application Layer
=========================

Application layer for the routing module.

Contains:
- Services: RoutingService over a catalog snapshot
- DTOs: Pydantic schema of the routing catalog file
- Interfaces: catalog provider and employee directory
"""

from legal_triage.routing.application.dto import (
    AvailabilitySchema,
    ConditionSchema,
    EmployeeSchema,
    LegalTermSchema,
    RoutingCatalogSchema,
    SpecialistSchema,
    TriageRuleSchema,
)
from legal_triage.routing.application.services import (
    IEmployeeDirectory,
    IRoutingCatalogProvider,
    RoutingCatalog,
    RoutingService,
    RuleEvaluation,
    StaticCatalogProvider,
)

__all__ = [
    # DTOs
    "AvailabilitySchema",
    "ConditionSchema",
    "EmployeeSchema",
    "LegalTermSchema",
    "RoutingCatalogSchema",
    "SpecialistSchema",
    "TriageRuleSchema",
    # Services
    "RoutingCatalog",
    "RoutingService",
    "RuleEvaluation",
    "StaticCatalogProvider",
    # Interfaces
    "IEmployeeDirectory",
    "IRoutingCatalogProvider",
]
