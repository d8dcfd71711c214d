"""
Routing Infrastructure Layer
============================

Infrastructure implementations for the routing module.

Contains:
- External: YAML routing catalog manager
"""

from legal_triage.routing.infrastructure.external import (
    CatalogFileHandler,
    RoutingCatalogManager,
)

__all__ = [
    "CatalogFileHandler",
    "RoutingCatalogManager",
]
